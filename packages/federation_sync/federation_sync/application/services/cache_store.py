"""Cache store fronting the local key-value backend.

Reads and writes are synchronous and never touch the remote system. Backend
failures are absorbed: the store logs them and behaves as if it held nothing,
so a broken disk slows the dashboard down instead of breaking it.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any

from federation_sync.domain.clock import Clock, utc_now
from federation_sync.domain.entities import DEFAULT_TTL, CacheEntry
from federation_sync.domain.exceptions import CacheStorageError, CorruptCacheEntryError
from federation_sync.domain.interfaces import KeyValueStore
from federation_sync.infrastructure.logging import get_logger
from federation_sync.infrastructure.monitoring import SyncMetricsCollector
from federation_sync.infrastructure.storage import decode_entry, encode_entry

logger = get_logger(__name__)


class CacheStore:
    """Time-bounded cache of JSON-like payloads keyed by subject-derived keys.

    ``get`` returns stale entries too; whether a stale entry is good enough is
    the caller's decision, made with ``is_fresh``.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        clock: Clock = utc_now,
        default_ttl: timedelta = DEFAULT_TTL,
        metrics: SyncMetricsCollector | None = None,
    ) -> None:
        """Initialize the cache store.

        Args:
            backend: Key-value store holding serialized entries
            clock: Source of the current time
            default_ttl: TTL applied to entries written without an explicit one
            metrics: Optional metrics collector
        """
        if default_ttl <= timedelta(0):
            raise ValueError("Default TTL must be positive")
        self._backend = backend
        self._clock = clock
        self._default_ttl = default_ttl
        self._metrics = metrics
        self._write_lock = threading.Lock()
        self._storage_failures = 0
        # Invalidation marks, by exact key and by prefix, tagged with the
        # generation they advanced the counter to.
        self._generation = 0
        self._key_marks: dict[str, int] = {}
        self._prefix_marks: dict[str, int] = {}

    @property
    def default_ttl(self) -> timedelta:
        """TTL applied by ``put`` when none is given."""
        return self._default_ttl

    @property
    def generation(self) -> int:
        """Counter advanced by every invalidation."""
        return self._generation

    @property
    def storage_failures(self) -> int:
        """Number of backend failures absorbed since creation."""
        return self._storage_failures

    def now(self) -> datetime:
        """Current time according to the injected clock."""
        return self._clock()

    def get(self, key: str) -> CacheEntry[Any] | None:
        """Look up an entry, fresh or stale.

        A record that cannot be decoded is removed and reported as absent.

        Args:
            key: Cache key

        Returns:
            The entry, or None if absent, corrupt or unreadable
        """
        try:
            data = self._backend.get(key)
        except CacheStorageError as e:
            self._absorb(e, "get", key)
            return None
        if data is None:
            return None

        try:
            return decode_entry(key, data)
        except CorruptCacheEntryError as e:
            logger.warning(
                "Discarding corrupt cache entry",
                extra={"key": key, "error_code": e.error_code, "reason": e.details.get("reason")},
            )
            if self._metrics:
                self._metrics.record_cache_read(key, "corrupt")
            self._discard_corrupt(key, data)
            return None

    def peek(self, key: str) -> CacheEntry[Any] | None:
        """Alias of ``get``; reads never filter by freshness."""
        return self.get(key)

    def put(
        self,
        key: str,
        payload: Any,
        now: datetime | None = None,
        ttl: timedelta | None = None,
        since: int | None = None,
    ) -> CacheEntry[Any] | None:
        """Create or overwrite the entry for ``key``.

        The record is written in one backend operation, so concurrent readers
        see either the previous or the new entry.

        Args:
            key: Cache key
            payload: JSON-like payload
            now: Time stored as ``stored_at``; defaults to the clock
            ttl: Entry TTL; defaults to the store's TTL
            since: ``generation`` read before the payload was loaded. If the
                key was invalidated after that, the payload is outdated and
                nothing is written.

        Returns:
            The written entry, or None if it was skipped or could not be persisted
        """
        entry = CacheEntry(
            key=key,
            payload=payload,
            stored_at=now if now is not None else self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
        )
        try:
            data = encode_entry(entry)
            with self._write_lock:
                if since is not None and self._invalidated_since(key, since):
                    logger.debug(
                        "Skipping write of entry invalidated during its load",
                        extra={"key": key, "generation": since},
                    )
                    return None
                self._backend.set(key, data)
        except CacheStorageError as e:
            self._absorb(e, e.details.get("operation", "set"), key)
            return None

        logger.debug(
            "Cache entry stored",
            extra={"key": key, "stored_at": entry.stored_at.isoformat()},
        )
        return entry

    def invalidated_since(self, key: str, generation: int) -> bool:
        """True if ``key`` was invalidated after ``generation`` was read."""
        with self._write_lock:
            return self._invalidated_since(key, generation)

    def forget_invalidations(self, up_to: int) -> None:
        """Drop invalidation marks at or below ``up_to``.

        A mark only affects writes guarded by an older generation, so marks at
        or below the generation of the oldest running load can be dropped.
        """
        with self._write_lock:
            self._key_marks = {k: g for k, g in self._key_marks.items() if g > up_to}
            self._prefix_marks = {p: g for p, g in self._prefix_marks.items() if g > up_to}

    def invalidate(self, key: str) -> bool:
        """Remove the entry for ``key`` unconditionally.

        Returns:
            True if an entry was removed
        """
        with self._write_lock:
            self._mark(self._key_marks, key)
        return self._delete(key)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``.

        Keys under ``prefix`` with no entry yet are covered too: a load for
        them that is still running will not write its result.

        Returns:
            Number of entries removed
        """
        with self._write_lock:
            self._mark(self._prefix_marks, prefix)
        try:
            keys = self._backend.keys(prefix)
        except CacheStorageError as e:
            self._absorb(e, "keys", prefix)
            return 0
        removed = sum(1 for key in keys if self._delete(key))
        if removed:
            logger.info(
                "Cache entries invalidated",
                extra={"prefix": prefix, "count": removed},
            )
        return removed

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        return self.invalidate_prefix("")

    def keys(self, prefix: str = "") -> list[str]:
        """Keys currently held, empty if the backend cannot be listed."""
        try:
            return self._backend.keys(prefix)
        except CacheStorageError as e:
            self._absorb(e, "keys", prefix)
            return []

    def is_fresh(
        self,
        entry: CacheEntry[Any],
        now: datetime | None = None,
        ttl: timedelta | None = None,
    ) -> bool:
        """Check ``now - entry.stored_at < ttl``.

        Args:
            entry: Entry to check
            now: Defaults to the clock
            ttl: Defaults to the entry's own TTL
        """
        return entry.is_fresh(now if now is not None else self._clock(), ttl)

    def _delete(self, key: str) -> bool:
        try:
            with self._write_lock:
                removed = self._backend.delete(key)
        except CacheStorageError as e:
            self._absorb(e, "delete", key)
            return False
        if removed:
            logger.debug("Cache entry invalidated", extra={"key": key})
        return removed

    def _mark(self, marks: dict[str, int], name: str) -> None:
        # Caller holds the write lock.
        self._generation += 1
        marks[name] = self._generation

    def _invalidated_since(self, key: str, generation: int) -> bool:
        if self._key_marks.get(key, 0) > generation:
            return True
        return any(
            mark > generation and key.startswith(prefix)
            for prefix, mark in self._prefix_marks.items()
        )

    def _discard_corrupt(self, key: str, data: bytes) -> None:
        try:
            with self._write_lock:
                # A writer may have replaced the record since it was read.
                if self._backend.get(key) == data:
                    self._backend.delete(key)
        except CacheStorageError as e:
            self._absorb(e, "delete", key)

    def _absorb(self, error: CacheStorageError, operation: str, key: str) -> None:
        self._storage_failures += 1
        if self._metrics:
            self._metrics.record_storage_error(operation)
        logger.warning(
            "Cache storage failure, continuing without cache",
            extra={
                "operation": operation,
                "key": key,
                "error_code": error.error_code,
                "reason": error.details.get("reason"),
            },
        )
