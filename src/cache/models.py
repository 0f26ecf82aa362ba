# src/cache/models.py - v1
"""Cache domain models: ResourceCacheRecord and CacheStatus."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from portalsync.core.models import ResourceKind

CURRENT_SCHEMA_VERSION = 1


class ResourceCacheRecord(BaseModel):
    """Versioned envelope persisted per (identity, resource kind).

    ``seen_item_keys`` is materialized from ``payload`` and is never
    written to the store.
    """

    schema_version: int = CURRENT_SCHEMA_VERSION
    kind: ResourceKind
    payload: list[Any] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    fetched_at: datetime
    continuation: Any | None = None
    has_more: bool = False
    seen_item_keys: set[str] = Field(default_factory=set, exclude=True)

    @property
    def is_empty(self) -> bool:
        return not self.payload


class CacheStatus(BaseModel):
    """Summary of one resource kind's cache record for a session."""

    kind: ResourceKind
    has_cached_data: bool = False
    item_count: int = 0
    fetched_at: datetime | None = None
    age_label: str = ""
    has_more: bool = False
    last_checked_at: datetime | None = None
