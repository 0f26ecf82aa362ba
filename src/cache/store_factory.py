# src/cache/store_factory.py - v1
"""Factory for durable store instantiation."""

from __future__ import annotations

from portalsync.cache.base_store import BaseDurableStore
from portalsync.config.settings import Settings


def create_durable_store(settings: Settings | None = None) -> BaseDurableStore:
    """Instantiate the configured store backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseDurableStore implementation (not yet initialized).
    """
    backend = "json" if settings is None else settings.store_backend
    store_root = "~/.portalsync/store" if settings is None else str(settings.store_root)

    if backend == "json":
        from portalsync.cache.json_store import JsonFileStore
        return JsonFileStore(store_root=store_root)

    if backend == "sqlite":
        from portalsync.cache.sqlite_store import SqliteStore
        return SqliteStore(db_path=f"{store_root}/portalsync.db")

    if backend == "memory":
        from portalsync.cache.memory_store import MemoryStore
        return MemoryStore()

    if backend == "redis":
        from portalsync.cache.redis_store import RedisStore
        if settings is None or not settings.store_redis_url:
            raise ValueError(
                "STORE_REDIS_URL must be set when STORE_BACKEND=redis"
            )
        return RedisStore(redis_url=settings.store_redis_url)

    raise ValueError(f"Unsupported store backend: {backend!r}")
