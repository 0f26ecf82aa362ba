# src/sync/state.py - v1
"""Immutable SyncState values emitted per resource key.

A single tagged variant replaces the loading/error/offline booleans a
screen would otherwise juggle: Empty, Loading, Ready or Error.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from portalsync.core.errors import FailureCategory


class _FrozenState(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class EmptyState(_FrozenState):
    """Nothing loaded yet."""

    status: Literal["empty"] = "empty"


class LoadingState(_FrozenState):
    """Blocking first fetch in progress; no cached data to show."""

    status: Literal["loading"] = "loading"


class ReadyState(_FrozenState):
    """Data available for display.

    ``offline`` is a passive indicator (last refresh failed, cached data
    shown), not an error.
    """

    status: Literal["ready"] = "ready"
    payload: tuple[Any, ...] = ()
    attributes: dict[str, str] = Field(default_factory=dict)
    offline: bool = False
    age_label: str = ""
    has_more: bool = False
    refreshing: bool = False
    new_item_count: int = 0
    notice: str | None = None


class ErrorState(_FrozenState):
    """No data anywhere and the fetch failed."""

    status: Literal["error"] = "error"
    category: FailureCategory
    message: str
    retryable: bool = True


SyncState = Annotated[
    Union[EmptyState, LoadingState, ReadyState, ErrorState],
    Field(discriminator="status"),
]
