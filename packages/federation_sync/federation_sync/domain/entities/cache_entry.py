"""Cache entry entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_TTL = timedelta(minutes=5)


@dataclass
class CacheEntry(Generic[T]):
    """A cached payload with the time it was last populated.

    Freshness is evaluated lazily by the reader; a stale entry stays readable
    until it is overwritten or invalidated.

    Attributes:
        key: Cache key derived from subject identity, role and query
        payload: The cached JSON-like value
        stored_at: Wall-clock time of the last successful population (UTC)
        ttl: Time to live
    """

    key: str
    payload: T
    stored_at: datetime
    ttl: timedelta = DEFAULT_TTL

    def __post_init__(self) -> None:
        """Validate entry after initialization."""
        if not self.key:
            raise ValueError("Cache key cannot be empty")
        if self.ttl <= timedelta(0):
            raise ValueError("Cache TTL must be positive")
        if self.stored_at.tzinfo is None:
            self.stored_at = self.stored_at.replace(tzinfo=UTC)

    @property
    def expires_at(self) -> datetime:
        """Instant from which the entry is stale."""
        return self.stored_at + self.ttl

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the entry was stored."""
        return now - self.stored_at

    def is_fresh(self, now: datetime, ttl: timedelta | None = None) -> bool:
        """Check freshness: ``now - stored_at < ttl``.

        Args:
            now: Current time
            ttl: Optional override of the entry's own TTL

        Returns:
            True while the entry is younger than the TTL
        """
        return self.age(now) < (ttl if ttl is not None else self.ttl)
