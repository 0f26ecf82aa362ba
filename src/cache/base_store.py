# src/cache/base_store.py - v1
"""Abstract durable key-value byte store.

Contract: ``get`` returns None for missing, corrupt or unreadable entries
and never raises; ``set`` and ``remove`` raise StorageError when the
backend cannot be written. ``init`` is awaited once per process before
first use; calling it again is a no-op.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseDurableStore(ABC):
    """Unified interface for device-scoped storage backends."""

    @abstractmethod
    async def init(self) -> None:
        """Acquire underlying resources (idempotent)."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None when absent or unreadable."""

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store bytes under key (upsert)."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove key; removing a missing key is not an error."""

    async def close(self) -> None:
        """Release underlying resources."""
