"""In-memory key-value store."""

from __future__ import annotations

import threading
from collections import OrderedDict

from federation_sync.domain.interfaces import KeyValueStore
from federation_sync.infrastructure.logging import get_logger

logger = get_logger(__name__)


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store with optional LRU capacity.

    Records are immutable bytes swapped under a lock, so readers never see a
    partially written record.
    """

    def __init__(self, capacity: int | None = None) -> None:
        """Initialize the store.

        Args:
            capacity: Maximum number of records; the least recently used
                record is evicted beyond it. None means unbounded.
        """
        if capacity is not None and capacity < 1:
            raise ValueError("Capacity must be at least 1")
        self._capacity = capacity
        self._records: OrderedDict[str, bytes] = OrderedDict()
        self._lock = threading.Lock()
        self._evictions = 0

    def get(self, key: str) -> bytes | None:
        with self._lock:
            value = self._records.get(key)
            if value is not None:
                self._records.move_to_end(key)
            return value

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._records[key] = bytes(value)
            self._records.move_to_end(key)
            while self._capacity is not None and len(self._records) > self._capacity:
                evicted, _ = self._records.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted cache record", extra={"key": evicted, "reason": "capacity"})

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return [key for key in self._records if key.startswith(prefix)]

    @property
    def evictions(self) -> int:
        """Number of records evicted for capacity."""
        return self._evictions

    def __len__(self) -> int:
        return len(self._records)
