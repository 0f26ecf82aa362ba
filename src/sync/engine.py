# src/sync/engine.py - v1
"""Sync engine: one shared orchestrator per resource key.

Screens ask the engine for the orchestrator of (session, kind) instead
of building their own, so two screens showing the same resource share a
single in-flight flag and a single state stream.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from portalsync.cache.base_store import BaseDurableStore
from portalsync.cache.models import CacheStatus
from portalsync.cache.repository import CacheRepository
from portalsync.cache.staleness import age_label
from portalsync.cache.store_factory import create_durable_store
from portalsync.config.settings import Settings, load_settings
from portalsync.core.models import (
    RESOURCE_KINDS,
    IdentityKey,
    ResourceKind,
    SessionIdentity,
)
from portalsync.sources.base_source import BaseResourceSource
from portalsync.sync.orchestrator import Clock, SyncOrchestrator, utc_now
from portalsync.sync.resources import ResourceSpec, build_resource_specs
from portalsync.sync.state import SyncState

logger = logging.getLogger(__name__)


async def collect_cache_status(
    repository: CacheRepository,
    specs: Mapping[ResourceKind, ResourceSpec],
    session: SessionIdentity,
    clock: Clock = utc_now,
) -> list[CacheStatus]:
    """Describe what is cached for every resource kind of one session."""
    now = clock()
    statuses: list[CacheStatus] = []
    for kind in RESOURCE_KINDS:
        spec = specs[kind]
        identity = session.for_kind(kind)
        record = await repository.load(identity, spec.item_model, spec.merge.dedup_key)
        last_checked = (
            await repository.last_checked(identity) if spec.throttled else None
        )
        if record is None:
            statuses.append(CacheStatus(kind=kind, last_checked_at=last_checked))
            continue
        statuses.append(
            CacheStatus(
                kind=kind,
                has_cached_data=not record.is_empty,
                item_count=len(record.payload),
                fetched_at=record.fetched_at,
                age_label=age_label(record.fetched_at, now),
                has_more=record.has_more,
                last_checked_at=last_checked,
            )
        )
    return statuses


class SyncEngine:
    """Entry point for consumers of cached portal resources.

    Args:
        repository: Record access on the configured durable store.
        source: Fetch collaborator for the signed-in account.
        specs: Per-kind configuration (see build_resource_specs).
        clock: Injected UTC time source shared by every orchestrator.
    """

    def __init__(
        self,
        repository: CacheRepository,
        source: BaseResourceSource,
        specs: Mapping[ResourceKind, ResourceSpec],
        clock: Clock = utc_now,
    ) -> None:
        self.repository = repository
        self._source = source
        self._specs = dict(specs)
        self._clock = clock
        self._orchestrators: dict[IdentityKey, SyncOrchestrator] = {}

    def orchestrator(
        self, session: SessionIdentity, kind: ResourceKind
    ) -> SyncOrchestrator:
        """Return the shared orchestrator for (session, kind)."""
        identity = session.for_kind(kind)
        current = self._orchestrators.get(identity)
        if current is None or not current.mounted:
            current = SyncOrchestrator(
                identity,
                self._specs[kind],
                self.repository,
                self._source,
                clock=self._clock,
            )
            self._orchestrators[identity] = current
        return current

    async def load_and_sync(
        self, session: SessionIdentity, kind: ResourceKind
    ) -> SyncState:
        return await self.orchestrator(session, kind).load_and_sync()

    async def pull_to_refresh(
        self, session: SessionIdentity, kind: ResourceKind
    ) -> SyncState:
        return await self.orchestrator(session, kind).pull_to_refresh()

    async def load_more(
        self, session: SessionIdentity, kind: ResourceKind
    ) -> SyncState:
        return await self.orchestrator(session, kind).load_more()

    async def clear_all(self, session: SessionIdentity) -> None:
        """Drop every cached resource of one session (sign-out, manual clear).

        Orchestrators of that session are disposed so a refresh still in
        flight cannot write its result back afterwards.
        """
        for identity in [i for i in self._orchestrators if i.session == session]:
            self._orchestrators.pop(identity).dispose()
        await self.repository.clear_session(session)

    async def cache_status(self, session: SessionIdentity) -> list[CacheStatus]:
        return await collect_cache_status(
            self.repository, self._specs, session, self._clock
        )

    async def wait_idle(self) -> None:
        """Wait for all background refreshes across every orchestrator."""
        await asyncio.gather(*(o.wait_idle() for o in self._orchestrators.values()))


def create_sync_engine(
    source: BaseResourceSource,
    settings: Settings | None = None,
    store: BaseDurableStore | None = None,
    clock: Clock = utc_now,
) -> SyncEngine:
    """Build a SyncEngine wired from configuration."""
    settings = settings or load_settings()
    store = store or create_durable_store(settings)
    logger.debug("Creating sync engine on %s store", type(store).__name__)
    return SyncEngine(
        CacheRepository(store), source, build_resource_specs(settings), clock
    )
