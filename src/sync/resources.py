# src/sync/resources.py - v1
"""Registry of resource kinds and how each one is cached.

One generic engine serves every kind; a ResourceSpec supplies the
per-kind parts: item model, merge strategy (which carries the dedup and
sort extractors), staleness policy, and whether checks are throttled.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

from portalsync.cache.staleness import StalenessPolicy
from portalsync.config.settings import Settings
from portalsync.core.models import (
    RESOURCE_KINDS,
    AcademicSession,
    AttendanceSubject,
    FeedItem,
    FeeReceipt,
    PersonalInfoSection,
    ResourceKind,
    SemesterResult,
    Subject,
    TimetablePeriod,
)
from portalsync.sync.merge import (
    AppendMergeStrategy,
    BaseMergeStrategy,
    ReplaceMergeStrategy,
    feed_dedup_key,
    feed_sort_key,
)

ITEM_MODELS: dict[ResourceKind, type[BaseModel]] = {
    "feed": FeedItem,
    "personal_info": PersonalInfoSection,
    "attendance": AttendanceSubject,
    "report_card": SemesterResult,
    "subjects": Subject,
    "timetable": TimetablePeriod,
    "fee_receipts": FeeReceipt,
    "sessions": AcademicSession,
}

# Kinds whose last-check time is persisted and rate-limited.
THROTTLED_KINDS: frozenset[ResourceKind] = frozenset({"feed"})


@dataclass(frozen=True)
class ResourceSpec:
    """Everything the engine needs to cache one resource kind."""

    kind: ResourceKind
    item_model: type[BaseModel]
    merge: BaseMergeStrategy
    policy: StalenessPolicy
    throttled: bool = False

    @property
    def paginated(self) -> bool:
        return self.merge.mode == "paginated"


def build_resource_specs(settings: Settings) -> dict[ResourceKind, ResourceSpec]:
    """Build the ResourceSpec of every resource kind from configuration."""
    specs: dict[ResourceKind, ResourceSpec] = {}
    for kind in RESOURCE_KINDS:
        throttled = kind in THROTTLED_KINDS
        merge: BaseMergeStrategy
        if kind == "feed":
            merge = AppendMergeStrategy(kind, feed_dedup_key, feed_sort_key)
        else:
            merge = ReplaceMergeStrategy(kind)
        specs[kind] = ResourceSpec(
            kind=kind,
            item_model=ITEM_MODELS[kind],
            merge=merge,
            policy=StalenessPolicy(
                refresh_after=settings.refresh_after(kind),
                min_check_interval=(
                    settings.feed_min_check_interval if throttled else None
                ),
            ),
            throttled=throttled,
        )
    return specs
