# tests/unit/cache/test_unit_identity.py - v1
"""Tests for cache/identity.py - storage key derivation."""

from __future__ import annotations

from portalsync.cache.identity import cache_key, check_key, parse_key, record_key
from portalsync.core.models import IdentityKey


def _identity(**overrides) -> IdentityKey:
    values = dict(user_id="u42", tenant="gdgu", session_id="2025-26", kind="feed")
    values.update(overrides)
    return IdentityKey(**values)


class TestCacheKey:
    def test_layout(self):
        assert cache_key("u42", "gdgu", "2025-26", "feed") == (
            "portalsync:record:feed:gdgu:u42:2025-26"
        )

    def test_deterministic(self):
        assert record_key(_identity()) == record_key(_identity())

    def test_distinct_tuples_distinct_keys(self):
        keys = {
            record_key(_identity()),
            record_key(_identity(user_id="u43")),
            record_key(_identity(tenant="other")),
            record_key(_identity(session_id="2024-25")),
            record_key(_identity(kind="attendance")),
        }
        assert len(keys) == 5

    def test_separator_in_component_cannot_collide(self):
        a = cache_key("a:b", "t", "s", "feed")
        b = cache_key("a", "b:t", "s", "feed")
        assert a != b

    def test_check_key_separate_namespace(self):
        identity = _identity()
        assert check_key(identity) != record_key(identity)
        assert check_key(identity).startswith("portalsync:checked:")


class TestParseKey:
    def test_round_trip_with_special_characters(self):
        identity = _identity(user_id="john.doe@uni:edu", session_id="2025/26")
        assert parse_key(record_key(identity)) == identity

    def test_foreign_key(self):
        assert parse_key("other:record:feed:a:b:c") is None

    def test_wrong_arity(self):
        assert parse_key("portalsync:record:feed") is None

    def test_unknown_kind(self):
        assert parse_key("portalsync:record:grades:t:u:s") is None
