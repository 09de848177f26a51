"""Unit tests for the cache entry entity."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from federation_sync.domain.entities import DEFAULT_TTL, CacheEntry

T0 = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)


class TestCacheEntry:
    """Test CacheEntry freshness and validation."""

    def test_cache_entry_creation(self) -> None:
        """Test creating a cache entry."""
        entry = CacheEntry(key="dashboard:1:club:", payload={"total": 5}, stored_at=T0)

        assert entry.payload == {"total": 5}
        assert entry.ttl == DEFAULT_TTL
        assert entry.expires_at == T0 + timedelta(minutes=5)

    @pytest.mark.parametrize(
        "elapsed",
        [timedelta(0), timedelta(seconds=1), timedelta(minutes=4, seconds=59, microseconds=999999)],
    )
    def test_fresh_before_ttl(self, elapsed: timedelta) -> None:
        """Test that the entry is fresh for every instant before stored_at + ttl."""
        entry = CacheEntry(key="k", payload=1, stored_at=T0, ttl=timedelta(minutes=5))
        assert entry.is_fresh(T0 + elapsed)

    @pytest.mark.parametrize("elapsed", [timedelta(minutes=5), timedelta(hours=3)])
    def test_stale_from_ttl(self, elapsed: timedelta) -> None:
        """Test that the entry is stale from stored_at + ttl on."""
        entry = CacheEntry(key="k", payload=1, stored_at=T0, ttl=timedelta(minutes=5))
        assert not entry.is_fresh(T0 + elapsed)

    def test_ttl_override(self) -> None:
        """Test that a reader may judge freshness with its own TTL."""
        entry = CacheEntry(key="k", payload=1, stored_at=T0, ttl=timedelta(minutes=5))

        assert not entry.is_fresh(T0 + timedelta(minutes=2), ttl=timedelta(minutes=1))
        assert entry.is_fresh(T0 + timedelta(minutes=8), ttl=timedelta(minutes=10))

    def test_age(self) -> None:
        """Test age computation."""
        entry = CacheEntry(key="k", payload=1, stored_at=T0)
        assert entry.age(T0 + timedelta(seconds=90)) == timedelta(seconds=90)

    def test_naive_stored_at_is_utc(self) -> None:
        """Test that a naive timestamp is interpreted as UTC."""
        entry = CacheEntry(key="k", payload=1, stored_at=datetime(2024, 5, 15, 12, 0))
        assert entry.stored_at == T0

    def test_empty_key_rejected(self) -> None:
        """Test that an entry needs a key."""
        with pytest.raises(ValueError, match="key"):
            CacheEntry(key="", payload=1, stored_at=T0)

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_ttl_rejected(self, ttl: timedelta) -> None:
        """Test that the TTL must be positive."""
        with pytest.raises(ValueError, match="TTL"):
            CacheEntry(key="k", payload=1, stored_at=T0, ttl=ttl)
