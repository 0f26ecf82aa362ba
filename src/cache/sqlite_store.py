# src/cache/sqlite_store.py - v1
"""SQLite-based store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. Keeps every entry in one
database file, which suits devices with many small records.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from portalsync.cache.base_store import BaseDurableStore
from portalsync.core.errors import StorageError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS store_entries (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteStore(BaseDurableStore):
    """SQLite-backed key-value store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    async def init(self) -> None:
        await self._connection()

    async def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open store database {self._db_path}: {e}") from e
        self._conn = conn
        return conn

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key."""
        try:
            conn = await self._connection()
            row = conn.execute(
                "SELECT value FROM store_entries WHERE key = ?", (key,)
            ).fetchone()
        except (StorageError, sqlite3.Error) as e:
            logger.warning("Failed to read store entry %s: %s", key, e)
            return None
        return None if row is None else bytes(row[0])

    async def set(self, key: str, value: bytes) -> None:
        """Store bytes (upsert)."""
        conn = await self._connection()
        try:
            conn.execute(
                """INSERT OR REPLACE INTO store_entries (key, value, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)""",
                (key, sqlite3.Binary(value)),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write store entry {key}: {e}") from e

    async def remove(self, key: str) -> None:
        """Remove an entry."""
        conn = await self._connection()
        try:
            conn.execute("DELETE FROM store_entries WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove store entry {key}: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
