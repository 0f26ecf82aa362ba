# src/sources/base_source.py - v1
"""Abstract fetch collaborator consumed by the sync orchestrator.

Implementations return typed, already-parsed data. Turning raw portal
markup into records is the implementation's business, not the cache's.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from portalsync.core.models import DocumentSnapshot, FeedPage, ResourceKind


class BaseResourceSource(ABC):
    """Remote data source for every resource kind."""

    @abstractmethod
    async def fetch_feed_page(self, cursor: Any | None) -> FeedPage:
        """Fetch one feed page; cursor None means the first page."""

    @abstractmethod
    async def fetch_document(self, kind: ResourceKind) -> DocumentSnapshot:
        """Fetch a complete snapshot of a whole-document resource."""
