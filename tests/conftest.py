# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, a scripted fetch source, sample feed
items and an in-memory repository. No network access; file I/O only
under tmp_path.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from portalsync.cache.memory_store import MemoryStore
from portalsync.cache.repository import CacheRepository
from portalsync.config.settings import Settings
from portalsync.core.models import (
    DocumentSnapshot,
    FeedItem,
    FeedPage,
    ResourceKind,
    SessionIdentity,
)
from portalsync.sources.base_source import BaseResourceSource
from portalsync.sync.resources import build_resource_specs


# === HELPERS ===


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 12, 3, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class ScriptedSource(BaseResourceSource):
    """Fetch source returning queued results in order.

    Each queued entry is either a value to return or an exception to
    raise. When ``gate`` is set, every fetch waits on it first.
    """

    def __init__(self) -> None:
        self.feed_results: list[FeedPage | Exception] = []
        self.document_results: dict[ResourceKind, list[DocumentSnapshot | Exception]] = {}
        self.feed_cursors: list[Any] = []
        self.document_calls: list[ResourceKind] = []
        self.gate: asyncio.Event | None = None

    def queue_page(self, *results: FeedPage | Exception) -> None:
        self.feed_results.extend(results)

    def queue_document(
        self, kind: ResourceKind, *results: DocumentSnapshot | Exception
    ) -> None:
        self.document_results.setdefault(kind, []).extend(results)

    @property
    def fetch_count(self) -> int:
        return len(self.feed_cursors) + len(self.document_calls)

    async def fetch_feed_page(self, cursor: Any | None) -> FeedPage:
        self.feed_cursors.append(cursor)
        if self.gate is not None:
            await self.gate.wait()
        result = self.feed_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_document(self, kind: ResourceKind) -> DocumentSnapshot:
        self.document_calls.append(kind)
        if self.gate is not None:
            await self.gate.wait()
        result = self.document_results[kind].pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _make_item(
    item_id: str,
    timestamp: int = 1_700_000_000,
    created_date: str | None = "01-12-2025",
    title: str | None = None,
) -> FeedItem:
    return FeedItem(
        item_id=item_id,
        timestamp=timestamp,
        created_date=created_date,
        title=title or f"Notice {item_id}",
    )


# === FIXTURES ===


@pytest.fixture
def make_item():
    """Factory for FeedItem instances."""
    return _make_item


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> SessionIdentity:
    return SessionIdentity(user_id="u42", tenant="gdgu", session_id="2025-26")


@pytest.fixture
def source() -> ScriptedSource:
    return ScriptedSource()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(memory_store: MemoryStore) -> CacheRepository:
    return CacheRepository(memory_store)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def specs(settings: Settings):
    return build_resource_specs(settings)
