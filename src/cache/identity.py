# src/cache/identity.py - v1
"""Stable, injective storage keys derived from an identity tuple.

Key layout: ``portalsync:<namespace>:<kind>:<tenant>:<user>:<session>``.
Every component is percent-encoded, so the ':' separator never appears
inside a component and distinct tuples never collide.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import quote, unquote

from portalsync.core.models import IdentityKey, ResourceKind

KEY_PREFIX = "portalsync"

KeyNamespace = Literal["record", "checked"]


def _encode(component: str) -> str:
    return quote(component, safe="")


def cache_key(
    user_id: str,
    tenant: str,
    session_id: str,
    kind: ResourceKind,
    namespace: KeyNamespace = "record",
) -> str:
    """Derive the storage key for one user's view of one resource kind."""
    parts = [namespace, kind, tenant, user_id, session_id]
    return ":".join([KEY_PREFIX, *(_encode(p) for p in parts)])


def record_key(identity: IdentityKey) -> str:
    """Key of the serialized Resource Cache Record."""
    return cache_key(
        identity.user_id, identity.tenant, identity.session_id, identity.kind
    )


def check_key(identity: IdentityKey) -> str:
    """Key of the lightweight last-check timestamp used for throttling."""
    return cache_key(
        identity.user_id,
        identity.tenant,
        identity.session_id,
        identity.kind,
        namespace="checked",
    )


def parse_key(key: str) -> IdentityKey | None:
    """Inverse of cache_key(); None when the key is not a portalsync key."""
    parts = key.split(":")
    if len(parts) != 6 or parts[0] != KEY_PREFIX:
        return None
    _, _namespace, kind, tenant, user_id, session_id = (unquote(p) for p in parts)
    try:
        return IdentityKey(
            user_id=user_id, tenant=tenant, session_id=session_id, kind=kind  # type: ignore[arg-type]
        )
    except ValueError:
        return None
