# src/cache/redis_store.py - v1
"""Redis-based store (STORE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Useful when several client processes share one cache, e.g. a web build
of the portal client served from one host.
"""

from __future__ import annotations

import logging

from portalsync.cache.base_store import BaseDurableStore
from portalsync.core.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "portalsync:store:"


class RedisStore(BaseDurableStore):
    """Redis-backed key-value store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._redis = redis
        self._client = redis.Redis.from_url(redis_url, decode_responses=False)

    async def init(self) -> None:
        return None

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key."""
        try:
            data = self._client.get(f"{_KEY_PREFIX}{key}")
        except self._redis.RedisError as e:
            logger.warning("Failed to read store entry %s: %s", key, e)
            return None
        return None if data is None else bytes(data)

    async def set(self, key: str, value: bytes) -> None:
        """Store bytes."""
        try:
            self._client.set(f"{_KEY_PREFIX}{key}", value)
        except self._redis.RedisError as e:
            raise StorageError(f"Cannot write store entry {key}: {e}") from e

    async def remove(self, key: str) -> None:
        """Remove an entry."""
        try:
            self._client.delete(f"{_KEY_PREFIX}{key}")
        except self._redis.RedisError as e:
            raise StorageError(f"Cannot remove store entry {key}: {e}") from e

    async def close(self) -> None:
        self._client.close()
