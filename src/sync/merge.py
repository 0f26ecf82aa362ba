# src/sync/merge.py - v1
"""Merge engine: combine freshly fetched data with a cached record.

Two algorithms, selected by resource kind:
  - AppendMergeStrategy: paginated, time-ordered collections (feed).
    Deduplicates against the cached key set and within the incoming
    batch, inserts at the front (refresh) or back (older page), then
    re-sorts newest-first.
  - ReplaceMergeStrategy: whole-document kinds. The new snapshot
    unconditionally replaces the old payload.

Neither strategy performs I/O or raises for empty input.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal

from portalsync.cache.models import ResourceCacheRecord
from portalsync.core.models import DocumentSnapshot, FeedItem, FeedPage, ResourceKind

MergePosition = Literal["front", "back"]

SortKey = tuple[datetime, int]

_EPOCH_MS_THRESHOLD = 100_000_000_000
_DATE_SPLIT = re.compile(r"[-/.]")
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class MergeResult:
    """Merged record plus the items that were genuinely new.

    ``changed`` is False when the fetch added nothing and ``record`` is the
    cached record itself, untouched.
    """

    record: ResourceCacheRecord
    new_items: list[Any] = field(default_factory=list)
    changed: bool = True

    @property
    def new_count(self) -> int:
        return len(self.new_items)


# === FEED KEYS ===


def feed_dedup_key(item: FeedItem) -> str | None:
    """Natural key 'itemId-timestamp'; None for items without an id."""
    if not item.item_id:
        return None
    stamp = "" if item.timestamp is None else str(item.timestamp)
    return f"{item.item_id}-{stamp}"


def parse_feed_date(value: str | None) -> datetime | None:
    """Best-effort parse of DD-MM-YYYY, DD/MM/YYYY or YYYY-MM-DD.

    A trailing time component ("03-12-2025 10:30") is ignored.
    """
    if not value:
        return None
    token = value.strip().split(" ")[0]
    parts = _DATE_SPLIT.split(token)
    if len(parts) != 3:
        return None
    try:
        if len(parts[0]) == 4:
            year, month, day = (int(p) for p in parts)
        else:
            day, month, year = (int(p) for p in parts)
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def timestamp_to_datetime(timestamp: int | None) -> datetime | None:
    """Interpret a numeric feed timestamp as epoch seconds or milliseconds."""
    if timestamp is None or timestamp <= 0:
        return None
    seconds = timestamp / 1000 if timestamp >= _EPOCH_MS_THRESHOLD else timestamp
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def feed_sort_key(item: FeedItem) -> SortKey:
    """Newest-first sort key: parsed date, else timestamp, else oldest."""
    sort_date = (
        parse_feed_date(item.created_date)
        or timestamp_to_datetime(item.timestamp)
        or _OLDEST
    )
    return sort_date, item.timestamp or 0


# === STRATEGIES ===


class BaseMergeStrategy(ABC):
    """Resource-kind-specific merge algorithm."""

    mode: Literal["paginated", "document"]

    def __init__(self, kind: ResourceKind) -> None:
        self.kind = kind

    def dedup_key(self, item: Any) -> str | None:
        """Key used to detect an item already present; None = no dedup."""
        return None


class AppendMergeStrategy(BaseMergeStrategy):
    """Append-mostly merge for paginated, time-ordered collections."""

    mode = "paginated"

    def __init__(
        self,
        kind: ResourceKind,
        dedup_key: Callable[[Any], str | None],
        sort_key: Callable[[Any], SortKey],
    ) -> None:
        super().__init__(kind)
        self._dedup_key = dedup_key
        self._sort_key = sort_key

    def dedup_key(self, item: Any) -> str | None:
        return self._dedup_key(item)

    def sort(self, items: list[Any]) -> list[Any]:
        """Return items ordered newest-first (stable for equal keys)."""
        return sorted(items, key=self._sort_key, reverse=True)

    def merge(
        self,
        existing: ResourceCacheRecord | None,
        page: FeedPage,
        position: MergePosition,
        now: datetime,
    ) -> MergeResult:
        """Merge one fetched page into the cached collection.

        Args:
            existing: Cached record (None or empty = first load).
            page: Items in server order plus the server's next cursor.
            position: "front" for a refresh from page 0, "back" for an
                older page.
            now: Fetch time recorded as ``fetched_at``. A page-0 refresh
                that adds nothing keeps the cached ``fetched_at``.
        """
        existing_items = list(existing.payload) if existing else []
        seen = set(existing.seen_item_keys) if existing else set()

        batch_keys: set[str] = set()
        new_items: list[Any] = []
        for item in page.items:
            key = self._dedup_key(item)
            if not key or key in seen or key in batch_keys:
                continue
            batch_keys.add(key)
            new_items.append(item)

        if position == "front":
            combined = new_items + existing_items
        else:
            combined = existing_items + new_items

        if position == "front" and existing is not None and existing_items:
            if not new_items:
                # Checked, nothing new: the cached record stays as stored.
                return MergeResult(record=existing, changed=False)
            # The page-0 cursor points back into pages already cached.
            has_more = existing.has_more
            continuation = existing.continuation
        else:
            # A cursor with nothing new means the server is looping.
            has_more = page.next_cursor is not None and bool(new_items)
            continuation = page.next_cursor if has_more else None

        record = ResourceCacheRecord(
            kind=self.kind,
            payload=self.sort(combined),
            attributes=dict(existing.attributes) if existing else {},
            fetched_at=now,
            continuation=continuation,
            has_more=has_more,
            seen_item_keys=seen | batch_keys,
        )
        return MergeResult(record=record, new_items=new_items)


class ReplaceMergeStrategy(BaseMergeStrategy):
    """Whole-document replace: the latest snapshot wins."""

    mode = "document"

    def merge(
        self,
        existing: ResourceCacheRecord | None,
        snapshot: DocumentSnapshot,
        now: datetime,
    ) -> MergeResult:
        record = ResourceCacheRecord(
            kind=self.kind,
            payload=list(snapshot.items),
            attributes=dict(snapshot.attributes),
            fetched_at=now,
        )
        return MergeResult(record=record, new_items=list(snapshot.items))
