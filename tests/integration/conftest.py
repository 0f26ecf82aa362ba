# tests/integration/conftest.py - v1
"""Shared fixtures for integration tests.

Integration tests exercise real durable stores under tmp_path and a
real httpx client against a MockTransport portal. A Redis server is
used only when REDIS_URL is set.
"""

from __future__ import annotations

import os

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring a Redis server")


@pytest.fixture
def redis_url() -> str:
    """URL of a live Redis server; skips the test when unavailable."""
    pytest.importorskip("redis")
    url = os.environ.get("REDIS_URL")
    if not url:
        pytest.skip("REDIS_URL not set")
    return url
