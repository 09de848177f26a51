"""msgpack serialization of cache entries.

A persisted record is a msgpack map::

    {"v": 1, "key": str, "payload": <JSON-like>, "stored_at": float, "ttl": float}

where ``stored_at`` is POSIX seconds (UTC) and ``ttl`` is seconds.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import msgpack

from federation_sync.domain.entities import CacheEntry
from federation_sync.domain.exceptions import CacheStorageError, CorruptCacheEntryError

RECORD_VERSION = 1


def encode_entry(entry: CacheEntry[Any]) -> bytes:
    """Serialize an entry into one record.

    Raises:
        CacheStorageError: If the payload is not msgpack-serializable
    """
    record = {
        "v": RECORD_VERSION,
        "key": entry.key,
        "payload": entry.payload,
        "stored_at": entry.stored_at.timestamp(),
        "ttl": entry.ttl.total_seconds(),
    }
    try:
        return msgpack.packb(record, use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise CacheStorageError("serialize", key=entry.key, reason=str(e)) from e


def decode_entry(key: str, data: bytes) -> CacheEntry[Any]:
    """Deserialize a record read under ``key``.

    Raises:
        CorruptCacheEntryError: If the bytes are not a well-formed record for ``key``
    """
    try:
        record = msgpack.unpackb(data, raw=False)
    except (msgpack.exceptions.UnpackException, ValueError, TypeError) as e:
        raise CorruptCacheEntryError(key, f"undecodable record: {e}") from e

    if not isinstance(record, dict):
        raise CorruptCacheEntryError(key, f"expected a map, got {type(record).__name__}")
    if record.get("v") != RECORD_VERSION:
        raise CorruptCacheEntryError(key, f"unsupported record version {record.get('v')!r}")
    if record.get("key") != key:
        raise CorruptCacheEntryError(key, "record belongs to a different key")
    if "payload" not in record:
        raise CorruptCacheEntryError(key, "record has no payload")

    stored_at = record.get("stored_at")
    ttl = record.get("ttl")
    if isinstance(stored_at, bool) or not isinstance(stored_at, int | float):
        raise CorruptCacheEntryError(key, "stored_at is not a timestamp")
    if isinstance(ttl, bool) or not isinstance(ttl, int | float) or ttl <= 0:
        raise CorruptCacheEntryError(key, "ttl is not a positive number")

    try:
        return CacheEntry(
            key=key,
            payload=record["payload"],
            stored_at=datetime.fromtimestamp(stored_at, UTC),
            ttl=timedelta(seconds=ttl),
        )
    except (ValueError, OverflowError, OSError) as e:
        raise CorruptCacheEntryError(key, str(e)) from e
