# src/__init__.py - v1
"""portalsync: offline-first cache and sync layer for campus portal data."""

from portalsync.version import __version__

__all__ = ["__version__"]
