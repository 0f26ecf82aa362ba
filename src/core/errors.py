# src/core/errors.py - v1
"""Error taxonomy and best-effort failure classification.

Stores, codec, staleness policy and merge engine never raise past their
boundary for recoverable conditions; only the sync orchestrator decides
when one of these errors becomes user-visible.
"""

from __future__ import annotations

from typing import Literal

FailureCategory = Literal["network", "server", "storage"]

_NETWORK_MARKERS = ("socket", "connection", "network", "timeout", "timed out", "host")


class PortalSyncError(Exception):
    """Base class for all portalsync errors."""


class TransientNetworkError(PortalSyncError):
    """Connectivity or timeout failure; retried only on the next user action."""


class ServerDataError(PortalSyncError):
    """Fetch succeeded but the payload did not have the expected shape."""


class StorageError(PortalSyncError):
    """Durable store could not be read or written."""


USER_MESSAGES: dict[FailureCategory, str] = {
    "network": "No internet connection",
    "server": "Data not available",
    "storage": "Storage unavailable",
}


def classify_failure(error: BaseException) -> FailureCategory:
    """Classify an exception into a failure category.

    Known types map directly; anything else falls back to message
    matching on the transport error text.
    """
    if isinstance(error, TransientNetworkError):
        return "network"
    if isinstance(error, ServerDataError):
        return "server"
    if isinstance(error, StorageError):
        return "storage"
    if isinstance(error, (ConnectionError, TimeoutError)):
        return "network"

    msg = f"{type(error).__name__} {error}".lower()
    if any(marker in msg for marker in _NETWORK_MARKERS):
        return "network"
    return "server"


def as_fetch_error(error: Exception) -> PortalSyncError:
    """Wrap an arbitrary collaborator exception into the fetch taxonomy."""
    if isinstance(error, (TransientNetworkError, ServerDataError)):
        return error
    if classify_failure(error) == "network":
        return TransientNetworkError(str(error))
    return ServerDataError(str(error))
