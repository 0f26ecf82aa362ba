# src/cache/json_store.py - v1
"""File-based store (default STORE_BACKEND=json).

Stores each key as an individual file under STORE_ROOT. Writes go to a
temporary sibling first and are moved into place, so a crash never leaves
a half-written entry behind.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from portalsync.cache.base_store import BaseDurableStore
from portalsync.core.errors import StorageError

logger = logging.getLogger(__name__)


class JsonFileStore(BaseDurableStore):
    """One file per key; values are the raw (JSON) bytes."""

    def __init__(self, store_root: Path | str) -> None:
        self._root = Path(store_root).expanduser()
        self._ready = False

    async def init(self) -> None:
        if self._ready:
            return
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create store root {self._root}: {e}") from e
        self._ready = True

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key."""
        path = self._entry_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read store entry %s: %s", key, e)
            return None

    async def set(self, key: str, value: bytes) -> None:
        """Store bytes atomically."""
        await self.init()
        path = self._entry_path(key)
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_bytes(value)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Cannot write store entry {key}: {e}") from e

    async def remove(self, key: str) -> None:
        """Remove an entry."""
        try:
            self._entry_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove store entry {key}: {e}") from e

    def _entry_path(self, key: str) -> Path:
        """Return file path for a key.

        Keys may contain characters that are unsafe in file names, so the
        file name is a digest of the key.
        """
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._root / f"{digest}.json"
