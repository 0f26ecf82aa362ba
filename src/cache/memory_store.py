# src/cache/memory_store.py - v1
"""Process-local in-memory store (STORE_BACKEND=memory).

Also the degradation target when the configured backend fails.
"""

from __future__ import annotations

from portalsync.cache.base_store import BaseDurableStore


class MemoryStore(BaseDurableStore):
    """Dict-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    async def init(self) -> None:
        return None

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)
