# tests/unit/cache/test_unit_store_factory.py - v1
"""Tests for cache/store_factory.py."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from portalsync.cache.json_store import JsonFileStore
from portalsync.cache.memory_store import MemoryStore
from portalsync.cache.sqlite_store import SqliteStore
from portalsync.cache.store_factory import create_durable_store
from portalsync.config.settings import Settings


class TestCreateDurableStore:
    def test_default_is_json(self):
        assert isinstance(create_durable_store(), JsonFileStore)

    def test_json(self, tmp_path):
        s = Settings(_env_file=None, store_root=tmp_path)
        assert isinstance(create_durable_store(s), JsonFileStore)

    def test_sqlite(self, tmp_path):
        s = Settings(_env_file=None, store_backend="sqlite", store_root=tmp_path)
        store = create_durable_store(s)
        assert isinstance(store, SqliteStore)
        assert store._db_path == tmp_path / "portalsync.db"

    def test_memory(self):
        s = Settings(_env_file=None, store_backend="memory")
        assert isinstance(create_durable_store(s), MemoryStore)

    def test_redis(self):
        s = Settings(
            _env_file=None, store_backend="redis", store_redis_url="redis://x:6379"
        )
        with patch("portalsync.cache.redis_store.RedisStore.__init__", return_value=None):
            from portalsync.cache.redis_store import RedisStore
            assert isinstance(create_durable_store(s), RedisStore)

    def test_unsupported(self):
        s = Settings(_env_file=None).model_copy(update={"store_backend": "mongo"})
        with pytest.raises(ValueError, match="Unsupported"):
            create_durable_store(s)
