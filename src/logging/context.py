# src/logging/context.py - v1
"""Contextual logging support: attach user, tenant, session and resource to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per orchestrator operation.
_user_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "user_id", default=None
)
_tenant: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tenant", default=None
)
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_resource: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "resource", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    user_id: str | None = None
    tenant: str | None = None
    session_id: str | None = None
    resource: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        user_id=_user_id.get(),
        tenant=_tenant.get(),
        session_id=_session_id.get(),
        resource=_resource.get(),
        operation=_operation.get(),
    )


def set_session_context(user_id: str, tenant: str, session_id: str) -> None:
    """Set session-level context (called once per orchestrator operation)."""
    _user_id.set(user_id)
    _tenant.set(tenant)
    _session_id.set(session_id)


def set_resource_context(resource: str, operation: str | None = None) -> None:
    """Set resource-level context (kind + load/refresh/paginate)."""
    _resource.set(resource)
    _operation.set(operation)


def clear_context() -> None:
    """Reset all context variables."""
    _user_id.set(None)
    _tenant.set(None)
    _session_id.set(None)
    _resource.set(None)
    _operation.set(None)
