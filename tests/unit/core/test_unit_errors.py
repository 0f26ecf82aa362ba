# tests/unit/core/test_unit_errors.py - v1
"""Tests for core/errors.py - taxonomy and failure classification."""

from __future__ import annotations

import pytest

from portalsync.core.errors import (
    USER_MESSAGES,
    PortalSyncError,
    ServerDataError,
    StorageError,
    TransientNetworkError,
    as_fetch_error,
    classify_failure,
)


class TestTaxonomy:
    @pytest.mark.parametrize(
        "cls", [TransientNetworkError, ServerDataError, StorageError]
    )
    def test_subclasses_base(self, cls):
        assert issubclass(cls, PortalSyncError)

    def test_user_messages(self):
        assert USER_MESSAGES["network"] == "No internet connection"
        assert USER_MESSAGES["server"] == "Data not available"


class TestClassifyFailure:
    def test_known_types(self):
        assert classify_failure(TransientNetworkError("x")) == "network"
        assert classify_failure(ServerDataError("x")) == "server"
        assert classify_failure(StorageError("x")) == "storage"

    def test_builtin_connection_errors(self):
        assert classify_failure(ConnectionResetError()) == "network"
        assert classify_failure(TimeoutError()) == "network"

    @pytest.mark.parametrize(
        "message",
        [
            "SocketException: Failed host lookup",
            "Connection refused",
            "Network is unreachable",
            "request timed out",
        ],
    )
    def test_message_matching(self, message):
        assert classify_failure(RuntimeError(message)) == "network"

    def test_unknown_is_server(self):
        assert classify_failure(KeyError("feed")) == "server"


class TestAsFetchError:
    def test_passthrough(self):
        err = ServerDataError("bad")
        assert as_fetch_error(err) is err

    def test_wraps_network(self):
        wrapped = as_fetch_error(OSError("Connection reset by peer"))
        assert isinstance(wrapped, TransientNetworkError)

    def test_wraps_other(self):
        wrapped = as_fetch_error(ValueError("unexpected token"))
        assert isinstance(wrapped, ServerDataError)
