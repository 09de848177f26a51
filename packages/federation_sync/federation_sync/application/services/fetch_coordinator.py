"""Fetch-or-serve coordinator with per-key request collapsing.

Callers ask for a key together with a loader. A fresh cache entry is served
without touching the remote system. Otherwise at most one loader runs per key
at any time: concurrent callers, forced or not, attach to the load already in
flight and all observe its single outcome.

The loader runs in a task owned by the coordinator and callers await it
through ``asyncio.shield``. A caller that is cancelled (its view was torn
down) stops waiting, but the load still runs to completion and populates the
cache; a result nobody is waiting for is simply dropped.

A load whose key is invalidated while it runs still answers its waiters but
does not write the cache.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from federation_sync.application.services.cache_store import CacheStore
from federation_sync.domain.clock import Clock
from federation_sync.domain.enums import ReadOrigin
from federation_sync.infrastructure.logging import get_logger
from federation_sync.infrastructure.monitoring import SyncMetricsCollector

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """A value returned by the coordinator and where it came from.

    Attributes:
        key: Cache key
        payload: The value
        stored_at: When the value was loaded from the remote system
        origin: Remote load, fresh cache hit, or stale cache read
    """

    key: str
    payload: T
    stored_at: datetime
    origin: ReadOrigin

    @property
    def stale(self) -> bool:
        """True if the caller was served a stale entry it opted into."""
        return self.origin is ReadOrigin.STALE_CACHE

    @property
    def from_cache(self) -> bool:
        """True if no remote call produced this value."""
        return self.origin is not ReadOrigin.REMOTE

    def age(self, now: datetime) -> timedelta:
        """Age of the value at ``now``, for "last updated" indicators."""
        return now - self.stored_at


@dataclass
class InFlightLoad:
    """Marker for a remote load currently executing for one key.

    Attributes:
        key: Cache key being loaded
        task: Task every waiter observes
        started_at: When the load started
        forced: Whether the load was started by a forced refresh
        waiters: Callers currently awaiting the task
        generation: Cache store generation read when the load started
    """

    key: str
    task: asyncio.Task[FetchResult[Any]]
    started_at: datetime
    forced: bool = False
    waiters: int = 0
    generation: int = 0


class FetchCoordinator:
    """Serves cached values and collapses concurrent remote loads per key."""

    def __init__(
        self,
        cache_store: CacheStore,
        clock: Clock | None = None,
        metrics: SyncMetricsCollector | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            cache_store: Store consulted before and populated after remote loads
            clock: Source of the current time; defaults to the store's clock
            metrics: Optional metrics collector
        """
        self._store = cache_store
        self._clock = clock or cache_store.now
        self._metrics = metrics
        self._in_flight: dict[str, InFlightLoad] = {}
        self._last_updated: dict[str, datetime] = {}

    @property
    def cache_store(self) -> CacheStore:
        """The underlying cache store."""
        return self._store

    async def load(
        self,
        key: str,
        loader: Loader[T],
        *,
        force_refresh: bool = False,
        accept_stale: bool = False,
    ) -> FetchResult[T]:
        """Return the value for ``key``, loading it remotely only when needed.

        Args:
            key: Cache key
            loader: Zero-argument coroutine function fetching the value
            force_refresh: Skip the cache lookup; still joins an in-flight load
            accept_stale: Serve a stale entry instead of loading

        Returns:
            The value with its origin

        Raises:
            Exception: Whatever the loader raised; every waiter of the same
                load receives the same exception
        """
        if not force_refresh:
            cached = self._serve_cached(key, accept_stale)
            if cached is not None:
                return cached

        flight = self._in_flight.get(key)
        if flight is None:
            flight = self._start(key, loader, force_refresh)
        else:
            if self._metrics:
                self._metrics.record_collapsed_request(key)
            logger.debug(
                "Joining in-flight load",
                extra={"key": key, "forced": force_refresh, "waiters": flight.waiters},
            )

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1

    def _serve_cached(self, key: str, accept_stale: bool) -> FetchResult[Any] | None:
        entry = self._store.get(key)
        if entry is None:
            self._record_read(key, "miss")
            return None

        if entry.is_fresh(self._clock()):
            self._record_read(key, "hit")
            return FetchResult(key, entry.payload, entry.stored_at, ReadOrigin.FRESH_CACHE)

        self._record_read(key, "stale")
        if accept_stale:
            logger.info(
                "Serving stale cache entry",
                extra={"key": key, "stored_at": entry.stored_at.isoformat()},
            )
            return FetchResult(key, entry.payload, entry.stored_at, ReadOrigin.STALE_CACHE)
        return None

    def _start(self, key: str, loader: Loader[Any], forced: bool) -> InFlightLoad:
        # No await between the lookup in load() and this registration.
        generation = self._store.generation
        task = asyncio.get_running_loop().create_task(self._run(key, loader, generation))
        task.add_done_callback(_consume_outcome)
        flight = InFlightLoad(
            key=key,
            task=task,
            started_at=self._clock(),
            forced=forced,
            generation=generation,
        )
        self._in_flight[key] = flight
        logger.debug("Starting remote load", extra={"key": key, "forced": forced})
        return flight

    async def _run(self, key: str, loader: Loader[Any], generation: int) -> FetchResult[Any]:
        started = time.perf_counter()
        try:
            try:
                payload = await loader()
            except Exception as e:
                if self._metrics:
                    self._metrics.record_remote_load(key, False, time.perf_counter() - started)
                logger.warning(
                    "Remote load failed",
                    extra={
                        "key": key,
                        "error_type": type(e).__name__,
                        "error_code": getattr(e, "error_code", None),
                    },
                )
                raise

            # The entry is stored before the marker goes away, so a caller
            # arriving after the release finds it in the cache.
            now = self._clock()
            self._store.put(key, payload, now, since=generation)
            self._last_updated[key] = now
            if self._metrics:
                self._metrics.record_remote_load(key, True, time.perf_counter() - started)
            logger.debug("Remote load completed", extra={"key": key})
            return FetchResult(key, payload, now, ReadOrigin.REMOTE)
        finally:
            self._release(key)

    def _release(self, key: str) -> None:
        flight = self._in_flight.get(key)
        if flight is not None and flight.task is asyncio.current_task():
            del self._in_flight[key]
            if self._in_flight:
                oldest = min(f.generation for f in self._in_flight.values())
            else:
                oldest = self._store.generation
            self._store.forget_invalidations(oldest)

    def _record_read(self, key: str, outcome: str) -> None:
        if self._metrics:
            self._metrics.record_cache_read(key, outcome)

    def is_loading(self, key: str) -> bool:
        """True while a remote load for ``key`` is executing."""
        return key in self._in_flight

    def in_flight(self, key: str) -> InFlightLoad | None:
        """The in-flight marker for ``key``, if any."""
        return self._in_flight.get(key)

    def in_flight_keys(self) -> list[str]:
        """Keys with a remote load currently executing."""
        return list(self._in_flight)

    def last_updated(self, key: str) -> datetime | None:
        """When this coordinator last loaded ``key`` successfully."""
        return self._last_updated.get(key)

    def peek(self, key: str) -> FetchResult[Any] | None:
        """Cached value for ``key`` without loading, fresh or stale."""
        entry = self._store.get(key)
        if entry is None:
            return None
        origin = ReadOrigin.FRESH_CACHE if entry.is_fresh(self._clock()) else ReadOrigin.STALE_CACHE
        return FetchResult(key, entry.payload, entry.stored_at, origin)

    async def drain(self) -> None:
        """Wait until every in-flight load has settled, ignoring outcomes."""
        tasks = [flight.task for flight in self._in_flight.values()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


def _consume_outcome(task: asyncio.Task[Any]) -> None:
    # Retrieve the exception so a failed load nobody awaited is not reported.
    if not task.cancelled():
        task.exception()
