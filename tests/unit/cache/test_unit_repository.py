# tests/unit/cache/test_unit_repository.py - v1
"""Tests for cache/repository.py - typed record access and degradation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from portalsync.cache.base_store import BaseDurableStore
from portalsync.cache.identity import check_key, record_key
from portalsync.cache.memory_store import MemoryStore
from portalsync.cache.models import ResourceCacheRecord
from portalsync.cache.repository import CacheRepository
from portalsync.core.errors import StorageError
from portalsync.core.models import RESOURCE_KINDS, FeedItem
from portalsync.sync.merge import feed_dedup_key

NOW = datetime(2025, 12, 3, 9, 0, tzinfo=timezone.utc)


class BrokenStore(BaseDurableStore):
    """Store whose writes always fail."""

    def __init__(self, fail_init: bool = False) -> None:
        self.fail_init = fail_init
        self.writes = 0

    async def init(self) -> None:
        if self.fail_init:
            raise StorageError("disk gone")

    async def get(self, key: str) -> bytes | None:
        return None

    async def set(self, key: str, value: bytes) -> None:
        self.writes += 1
        raise StorageError("read-only file system")

    async def remove(self, key: str) -> None:
        raise StorageError("read-only file system")


def _record(make_item) -> ResourceCacheRecord:
    return ResourceCacheRecord(
        kind="feed", payload=[make_item("1", 100)], fetched_at=NOW
    )


class TestLoadSave:
    @pytest.mark.asyncio
    async def test_missing(self, repository, session):
        assert await repository.load(session.for_kind("feed"), FeedItem) is None

    @pytest.mark.asyncio
    async def test_save_then_load(self, repository, session, make_item):
        identity = session.for_kind("feed")
        await repository.save(identity, _record(make_item))
        loaded = await repository.load(identity, FeedItem, feed_dedup_key)
        assert loaded.payload == [make_item("1", 100)]
        assert loaded.seen_item_keys == {"1-100"}

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_absent(self, repository, memory_store, session):
        identity = session.for_kind("feed")
        await memory_store.set(record_key(identity), b"{broken")
        assert await repository.load(identity, FeedItem) is None

    @pytest.mark.asyncio
    async def test_users_isolated(self, repository, session, make_item):
        await repository.save(session.for_kind("feed"), _record(make_item))
        other = session.model_copy(update={"user_id": "someone-else"})
        assert await repository.load(other.for_kind("feed"), FeedItem) is None


class TestThrottleMetadata:
    @pytest.mark.asyncio
    async def test_mark_and_read(self, repository, session):
        identity = session.for_kind("feed")
        assert await repository.last_checked(identity) is None
        await repository.mark_checked(identity, NOW)
        assert await repository.last_checked(identity) == NOW

    @pytest.mark.asyncio
    async def test_mark_does_not_touch_record(self, repository, session, make_item):
        identity = session.for_kind("feed")
        await repository.save(identity, _record(make_item))
        await repository.mark_checked(identity, NOW)
        assert (await repository.load(identity, FeedItem)).payload


class TestClearSession:
    @pytest.mark.asyncio
    async def test_removes_all_kinds(self, repository, memory_store, session, make_item):
        for kind in RESOURCE_KINDS:
            identity = session.for_kind(kind)
            await memory_store.set(record_key(identity), b"x")
            await memory_store.set(check_key(identity), b"x")
        await repository.clear_session(session)
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_other_sessions_untouched(self, repository, memory_store, session, make_item):
        other = session.model_copy(update={"session_id": "2024-25"})
        await repository.save(other.for_kind("feed"), _record(make_item))
        await repository.clear_session(session)
        assert await repository.load(other.for_kind("feed"), FeedItem) is not None

    @pytest.mark.asyncio
    async def test_remove_failures_logged(self, session, caplog):
        repository = CacheRepository(BrokenStore())
        await repository.clear_session(session)
        assert "Failed to remove" in caplog.text


class TestDegradation:
    @pytest.mark.asyncio
    async def test_write_failure_degrades_to_memory(self, session, make_item):
        store = BrokenStore()
        repository = CacheRepository(store)
        identity = session.for_kind("feed")
        await repository.save(identity, _record(make_item))
        assert repository.degraded is True
        assert store.writes == 1
        loaded = await repository.load(identity, FeedItem)
        assert loaded is not None

    @pytest.mark.asyncio
    async def test_init_failure_degrades(self, session):
        repository = CacheRepository(BrokenStore(fail_init=True))
        await repository.init()
        assert repository.degraded is True
        assert await repository.load(session.for_kind("feed"), FeedItem) is None

    @pytest.mark.asyncio
    async def test_healthy_store_not_degraded(self, repository, session, make_item):
        await repository.save(session.for_kind("feed"), _record(make_item))
        assert repository.degraded is False
        assert isinstance(repository._store, MemoryStore)
