# src/cache/staleness.py - v1
"""Staleness policy: pure decisions from record age and resource kind."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from portalsync.cache.models import ResourceCacheRecord


@dataclass(frozen=True)
class StalenessVerdict:
    """Three independent answers about one cached record."""

    is_usable_offline: bool
    should_background_refresh: bool
    should_throttle_check: bool


class StalenessPolicy:
    """Decide whether a cached record may be shown and whether to refresh it.

    Args:
        refresh_after: Age beyond which a background refresh is warranted.
            None means the record never triggers a background refresh.
        min_check_interval: Minimum time between two checks of a
            throttled resource. None disables throttling.
    """

    def __init__(
        self,
        refresh_after: timedelta | None,
        min_check_interval: timedelta | None = None,
    ) -> None:
        self._refresh_after = refresh_after
        self._min_check_interval = min_check_interval

    def evaluate(
        self,
        record: ResourceCacheRecord | None,
        now: datetime,
        last_checked: datetime | None = None,
    ) -> StalenessVerdict:
        # A present-but-empty record is equivalent to absent.
        usable = False
        refresh = False
        if record is not None and not record.is_empty:
            usable = True
            if self._refresh_after is not None:
                refresh = now - record.fetched_at >= self._refresh_after
        return StalenessVerdict(
            is_usable_offline=usable,
            should_background_refresh=refresh,
            should_throttle_check=self.is_throttled(now, last_checked),
        )

    def is_throttled(self, now: datetime, last_checked: datetime | None) -> bool:
        """True when the previous check is more recent than the minimum interval."""
        if self._min_check_interval is None or last_checked is None:
            return False
        return now - last_checked < self._min_check_interval


def age_label(fetched_at: datetime | None, now: datetime) -> str:
    """Human-readable age: 'just now', '5m ago', '3h ago', '2d ago'."""
    if fetched_at is None:
        return ""
    age = now - fetched_at
    minutes = int(age.total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"
