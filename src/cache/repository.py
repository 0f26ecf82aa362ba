# src/cache/repository.py - v1
"""Typed access to cache records and throttle metadata on a durable store.

Reads never raise: a missing, corrupt or unreadable entry is None. A
write that fails with StorageError switches the repository to an
in-memory store for the rest of the process.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel

from portalsync.cache.base_store import BaseDurableStore
from portalsync.cache.codec import (
    decode_record,
    decode_timestamp,
    encode_record,
    encode_timestamp,
)
from portalsync.cache.identity import check_key, record_key
from portalsync.cache.memory_store import MemoryStore
from portalsync.cache.models import ResourceCacheRecord
from portalsync.core.errors import StorageError
from portalsync.core.models import RESOURCE_KINDS, IdentityKey, SessionIdentity

logger = logging.getLogger(__name__)


class CacheRepository:
    """Reads and writes ResourceCacheRecords addressed by IdentityKey."""

    def __init__(self, store: BaseDurableStore) -> None:
        self._store = store
        self._initialized = False
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True once the repository fell back to in-memory storage."""
        return self._degraded

    async def init(self) -> None:
        """Initialize the underlying store once per process."""
        if self._initialized:
            return
        try:
            await self._store.init()
        except StorageError as e:
            self._degrade(e)
        self._initialized = True

    async def load(
        self,
        identity: IdentityKey,
        item_model: type[BaseModel],
        dedup_key: Callable[[Any], str | None] | None = None,
    ) -> ResourceCacheRecord | None:
        """Load and decode the record for identity; None when absent."""
        await self.init()
        data = await self._store.get(record_key(identity))
        return decode_record(data, identity.kind, item_model, dedup_key)

    async def save(self, identity: IdentityKey, record: ResourceCacheRecord) -> None:
        """Persist a record (never raises for storage failures)."""
        await self._write(record_key(identity), encode_record(record))
        logger.debug(
            "Saved %s record: %d items, has_more=%s",
            identity.kind, len(record.payload), record.has_more,
        )

    async def last_checked(self, identity: IdentityKey) -> datetime | None:
        """Timestamp of the last throttled check, if any."""
        await self.init()
        return decode_timestamp(await self._store.get(check_key(identity)))

    async def mark_checked(self, identity: IdentityKey, when: datetime) -> None:
        """Reset the throttle timer without touching the record."""
        await self._write(check_key(identity), encode_timestamp(when))

    async def clear_session(self, session: SessionIdentity) -> None:
        """Remove every kind's record and throttle entry for one session."""
        await self.init()
        for kind in RESOURCE_KINDS:
            identity = session.for_kind(kind)
            for key in (record_key(identity), check_key(identity)):
                try:
                    await self._store.remove(key)
                except StorageError as e:
                    logger.warning("Failed to remove %s: %s", key, e)
        logger.info("Cleared cached resources for user %s", session.user_id)

    async def _write(self, key: str, value: bytes) -> None:
        await self.init()
        try:
            await self._store.set(key, value)
        except StorageError as e:
            self._degrade(e)
            await self._store.set(key, value)

    def _degrade(self, error: StorageError) -> None:
        if self._degraded:
            return
        logger.warning(
            "Durable store unavailable, continuing in memory only: %s", error
        )
        self._store = MemoryStore()
        self._degraded = True
