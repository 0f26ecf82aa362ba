# src/sync/fallback.py - v1
"""Fallback chain applied when a refresh fails.

Order: keep the in-memory payload (offline), else reload the last
persisted record (offline), else surface a hard error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal

from portalsync.cache.models import ResourceCacheRecord
from portalsync.core.errors import USER_MESSAGES, FailureCategory, classify_failure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackOutcome:
    """What to show after a failed fetch."""

    action: Literal["keep_memory", "serve_stored", "hard_error"]
    category: FailureCategory
    message: str
    record: ResourceCacheRecord | None = None


def offline_notice(age: str, category: FailureCategory = "network") -> str:
    """Passive notice shown while cached data is displayed."""
    prefix = "Offline" if category == "network" else "Could not refresh"
    if age:
        return f"{prefix} - showing cached data ({age})"
    return f"{prefix} - showing cached data"


class FallbackChain:
    """Resolve a fetch failure into one of three outcomes."""

    def __init__(
        self, reload: Callable[[], Awaitable[ResourceCacheRecord | None]]
    ) -> None:
        self._reload = reload

    async def resolve(
        self,
        error: BaseException,
        in_memory: ResourceCacheRecord | None,
    ) -> FallbackOutcome:
        category = classify_failure(error)
        message = USER_MESSAGES[category]

        if in_memory is not None and not in_memory.is_empty:
            logger.info("Fetch failed (%s); keeping in-memory data", category)
            return FallbackOutcome("keep_memory", category, message, in_memory)

        stored = await self._reload()
        if stored is not None and not stored.is_empty:
            logger.info("Fetch failed (%s); serving persisted cache", category)
            return FallbackOutcome("serve_stored", category, message, stored)

        logger.warning("Fetch failed (%s) with no cached data: %s", category, error)
        return FallbackOutcome("hard_error", category, message)
