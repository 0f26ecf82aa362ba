# src/sync/orchestrator.py - v1
"""Per-resource sync orchestrator: cache-first load, background refresh.

One orchestrator owns one IdentityKey. Every entry point
(load_and_sync, pull_to_refresh, load_more) funnels through a single
in-flight flag, so at most one fetch per key runs at any time and a
second trigger while one is running is dropped, not queued.

State flow:
    usable cache  -> Ready (immediately) -> background refresh if stale
    no cache      -> Loading -> Ready | Error
    fetch failure -> FallbackChain -> Ready(offline) | Error
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal, TypeVar

from pydantic import ValidationError

from portalsync.cache.models import ResourceCacheRecord
from portalsync.cache.repository import CacheRepository
from portalsync.cache.staleness import age_label
from portalsync.core.errors import PortalSyncError, ServerDataError, as_fetch_error
from portalsync.core.models import DocumentSnapshot, IdentityKey
from portalsync.logging.context import set_resource_context, set_session_context
from portalsync.sources.base_source import BaseResourceSource
from portalsync.sync.fallback import FallbackChain, offline_notice
from portalsync.sync.merge import (
    AppendMergeStrategy,
    MergePosition,
    MergeResult,
    ReplaceMergeStrategy,
)
from portalsync.sync.resources import ResourceSpec
from portalsync.sync.state import (
    EmptyState,
    ErrorState,
    LoadingState,
    ReadyState,
    SyncState,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[SyncState], None]
RefreshMode = Literal["background", "pull", "initial"]

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def _classified(fetch: Awaitable[T]) -> T:
    """Await a fetch, mapping foreign exceptions into the error taxonomy."""
    try:
        return await fetch
    except PortalSyncError:
        raise
    except Exception as e:
        raise as_fetch_error(e) from e


class SyncOrchestrator:
    """Drive cache reads, refreshes and fallbacks for one resource key.

    Args:
        identity: Key of the record this orchestrator owns.
        spec: Per-kind merge strategy, staleness policy and item model.
        repository: Typed access to the durable store.
        source: Fetch collaborator.
        clock: Injected time source (UTC).
    """

    def __init__(
        self,
        identity: IdentityKey,
        spec: ResourceSpec,
        repository: CacheRepository,
        source: BaseResourceSource,
        clock: Clock = utc_now,
    ) -> None:
        self.identity = identity
        self.spec = spec
        self._repository = repository
        self._source = source
        self._clock = clock

        self._record: ResourceCacheRecord | None = None
        self._state: SyncState = EmptyState()
        self._listeners: list[Listener] = []
        self._in_flight = False
        self._mounted = True
        self._tasks: set[asyncio.Task[None]] = set()
        self._fallback = FallbackChain(self._load_record)

    # --- observation ---

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def record(self) -> ResourceCacheRecord | None:
        """In-memory payload currently displayed."""
        return self._record

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def mounted(self) -> bool:
        return self._mounted

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispose(self) -> None:
        """Mark the consumer gone: pending refreshes finish but apply nothing."""
        self._mounted = False
        self._listeners.clear()

    async def wait_idle(self) -> None:
        """Wait until every background refresh started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # --- operations ---

    async def load_and_sync(self) -> SyncState:
        """Show cached data at once when usable, refreshing it in the background.

        Without a usable record this performs a blocking fetch instead.
        """
        self._bind_log_context("load")
        record = await self._load_record()
        now = self._clock()
        last_checked = (
            await self._repository.last_checked(self.identity)
            if self.spec.throttled
            else None
        )
        verdict = self.spec.policy.evaluate(record, now, last_checked)

        if record is not None and verdict.is_usable_offline:
            self._record = record
            self._emit(self._ready(record, refreshing=self._in_flight))
            if not verdict.should_background_refresh:
                logger.debug("Cached %s is fresh", self.identity.kind)
            elif verdict.should_throttle_check:
                logger.debug("Skipping %s check: throttled", self.identity.kind)
            else:
                self._start_background_refresh()
            return self._state

        await self._foreground_load()
        return self._state

    async def pull_to_refresh(self) -> SyncState:
        """Explicit user refresh. Ignores staleness and throttling."""
        self._bind_log_context("pull")
        if not self._begin_flight():
            return self._state
        try:
            if isinstance(self._state, ReadyState):
                self._emit(self._state.model_copy(update={"refreshing": True}))
            else:
                self._emit(LoadingState())
            await self._refresh("pull")
        finally:
            self._end_flight()
        return self._state

    async def load_more(self) -> SyncState:
        """Fetch the next older page of a paginated resource."""
        self._bind_log_context("load_more")
        record = self._record
        if not self.spec.paginated or record is None:
            return self._state
        if not record.has_more or record.continuation is None:
            logger.debug("No more %s pages", self.identity.kind)
            return self._state
        if not self._begin_flight():
            return self._state
        try:
            try:
                result = await self._fetch_and_merge("back", record.continuation)
            except PortalSyncError as e:
                logger.warning("Loading more %s failed: %s", self.identity.kind, e)
                if self._mounted and self._record is not None:
                    self._emit(
                        self._ready(self._record, notice=f"Failed to load more: {e}")
                    )
            else:
                await self._apply(result, mark_checked=False)
        finally:
            self._end_flight()
        return self._state

    # --- internals ---

    async def _foreground_load(self) -> None:
        if not self._begin_flight():
            return
        try:
            self._emit(LoadingState())
            await self._refresh("initial")
        finally:
            self._end_flight()

    def _start_background_refresh(self) -> None:
        if not self._begin_flight():
            return
        if isinstance(self._state, ReadyState):
            self._emit(self._state.model_copy(update={"refreshing": True}))
        task = asyncio.create_task(self._background_refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_refresh(self) -> None:
        try:
            if not self._mounted:
                logger.debug("Skipping %s refresh: consumer gone", self.identity.kind)
                return
            if self.spec.throttled:
                await self._repository.mark_checked(self.identity, self._clock())
            await self._refresh("background")
        finally:
            self._end_flight()

    async def _refresh(self, mode: RefreshMode) -> None:
        """Fetch the newest data and either apply it or run the fallback chain."""
        try:
            result = await self._fetch_and_merge("front")
        except PortalSyncError as e:
            await self._handle_failure(e)
            return
        await self._apply(result, mark_checked=self.spec.throttled)
        logger.info(
            "Refreshed %s (%s): %d new items",
            self.identity.kind, mode, result.new_count,
        )

    async def _fetch_and_merge(
        self, position: MergePosition, cursor: Any | None = None
    ) -> MergeResult:
        merge = self.spec.merge
        existing = self._record
        if isinstance(merge, AppendMergeStrategy):
            page = await _classified(self._source.fetch_feed_page(cursor))
            return merge.merge(existing, page, position, self._clock())
        if not isinstance(merge, ReplaceMergeStrategy):
            raise TypeError(f"Unsupported merge strategy {type(merge).__name__}")

        snapshot = await _classified(self._fetch_document())
        if snapshot.is_empty and existing is not None and not existing.is_empty:
            raise ServerDataError(
                f"Parsed {self.identity.kind} is empty; keeping cached data"
            )
        return merge.merge(existing, snapshot, self._clock())

    async def _fetch_document(self) -> DocumentSnapshot:
        snapshot = await self._source.fetch_document(self.identity.kind)
        try:
            items = [
                self.spec.item_model.model_validate(item)
                for item in snapshot.items
            ]
        except ValidationError as e:
            raise ServerDataError(
                f"Unexpected {self.identity.kind} item shape: {e.error_count()} errors"
            ) from e
        return snapshot.model_copy(update={"items": items})

    async def _apply(self, result: MergeResult, mark_checked: bool) -> None:
        if not self._mounted:
            logger.debug("Discarding %s result: consumer gone", self.identity.kind)
            return
        record = result.record
        if result.changed and not record.is_empty:
            await self._repository.save(self.identity, record)
        if mark_checked and self._mounted:
            await self._repository.mark_checked(self.identity, self._clock())
        self._record = record
        new_count = result.new_count if self.spec.paginated else 0
        self._emit(self._ready(record, new_item_count=new_count))

    async def _handle_failure(self, error: PortalSyncError) -> None:
        outcome = await self._fallback.resolve(error, self._record)
        if not self._mounted:
            return
        if outcome.record is None:
            self._emit(ErrorState(category=outcome.category, message=outcome.message))
            return
        self._record = outcome.record
        age = age_label(outcome.record.fetched_at, self._clock())
        self._emit(
            self._ready(
                outcome.record,
                offline=True,
                notice=offline_notice(age, outcome.category),
            )
        )

    async def _load_record(self) -> ResourceCacheRecord | None:
        return await self._repository.load(
            self.identity, self.spec.item_model, self.spec.merge.dedup_key
        )

    def _ready(
        self,
        record: ResourceCacheRecord,
        *,
        offline: bool = False,
        refreshing: bool = False,
        new_item_count: int = 0,
        notice: str | None = None,
    ) -> ReadyState:
        return ReadyState(
            payload=tuple(record.payload),
            attributes=dict(record.attributes),
            offline=offline,
            age_label=age_label(record.fetched_at, self._clock()),
            has_more=record.has_more,
            refreshing=refreshing,
            new_item_count=new_item_count,
            notice=notice,
        )

    def _begin_flight(self) -> bool:
        if self._in_flight:
            logger.debug("Fetch for %s already in flight; dropped", self.identity.kind)
            return False
        self._in_flight = True
        return True

    def _end_flight(self) -> None:
        self._in_flight = False

    def _emit(self, state: SyncState) -> None:
        if not self._mounted:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed for %s", self.identity.kind)

    def _bind_log_context(self, operation: str) -> None:
        set_session_context(
            self.identity.user_id, self.identity.tenant, self.identity.session_id
        )
        set_resource_context(self.identity.kind, operation)
