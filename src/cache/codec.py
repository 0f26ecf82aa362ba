# src/cache/codec.py - v1
"""Round-trip ResourceCacheRecord <-> stored bytes.

Decoding is tolerant of schema evolution: anything unrecognized or only
partially decodable comes back as None, so a cache written by an older
client is treated as absent instead of crashing a newer one.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter, ValidationError

from portalsync.cache.models import CURRENT_SCHEMA_VERSION, ResourceCacheRecord
from portalsync.core.models import ResourceKind

logger = logging.getLogger(__name__)

DedupKeyFn = Callable[[Any], "str | None"]


@lru_cache(maxsize=None)
def payload_adapter(item_model: type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(list[item_model])  # type: ignore[valid-type]


def encode_record(record: ResourceCacheRecord) -> bytes:
    """Serialize a record to UTF-8 JSON bytes."""
    return record.model_dump_json().encode("utf-8")


def decode_record(
    data: bytes | None,
    kind: ResourceKind,
    item_model: type[BaseModel],
    dedup_key: DedupKeyFn | None = None,
) -> ResourceCacheRecord | None:
    """Deserialize stored bytes into a typed record.

    Args:
        data: Raw bytes from the durable store (None = absent).
        kind: Expected resource kind.
        item_model: Pydantic model every payload item must validate against.
        dedup_key: Optional extractor used to rebuild ``seen_item_keys``.

    Returns:
        The decoded record, or None when the bytes cannot be trusted.
    """
    if not data:
        return None

    try:
        raw = json.loads(data)
    except ValueError as e:
        logger.warning("Discarding undecodable %s record: %s", kind, e)
        return None

    if not isinstance(raw, dict):
        logger.warning("Discarding %s record with unexpected shape", kind)
        return None
    if raw.get("schema_version") != CURRENT_SCHEMA_VERSION:
        logger.info(
            "Discarding %s record with schema version %r",
            kind, raw.get("schema_version"),
        )
        return None
    if raw.get("kind") != kind:
        logger.warning("Discarding record of kind %r under %s key", raw.get("kind"), kind)
        return None

    try:
        record = ResourceCacheRecord.model_validate(raw)
        items = payload_adapter(item_model).validate_python(record.payload)
    except ValidationError as e:
        logger.warning(
            "Discarding partially decodable %s record (%d errors)", kind, e.error_count()
        )
        return None

    seen: set[str] = set()
    if dedup_key is not None:
        seen = {key for key in (dedup_key(item) for item in items) if key}

    return record.model_copy(
        update={
            "payload": items,
            "seen_item_keys": seen,
            "fetched_at": _as_utc(record.fetched_at),
        }
    )


def encode_timestamp(moment: datetime) -> bytes:
    """Serialize a throttle timestamp."""
    return _as_utc(moment).isoformat().encode("utf-8")


def decode_timestamp(data: bytes | None) -> datetime | None:
    """Deserialize a throttle timestamp; None when absent or malformed."""
    if not data:
        return None
    try:
        return _as_utc(datetime.fromisoformat(data.decode("utf-8").strip()))
    except ValueError:
        return None


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
