"""Metrics collection for the cache, fetch coordinator and workflow engine."""

from __future__ import annotations

import threading
from collections import Counter as TallyCounter

from prometheus_client import Counter, Histogram

from federation_sync.domain.cache_keys import key_namespace
from federation_sync.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Cache metrics
cache_reads_total = Counter(
    "federation_sync_cache_reads_total",
    "Total number of cache reads by outcome",
    ["client_name", "namespace", "outcome"],
)

cache_storage_errors_total = Counter(
    "federation_sync_cache_storage_errors_total",
    "Total number of local store failures absorbed by the cache",
    ["client_name", "operation"],
)

# Remote load metrics
remote_loads_total = Counter(
    "federation_sync_remote_loads_total",
    "Total number of remote loads by outcome",
    ["client_name", "namespace", "outcome"],
)

collapsed_requests_total = Counter(
    "federation_sync_collapsed_requests_total",
    "Total number of requests served by joining an in-flight load",
    ["client_name", "namespace"],
)

remote_load_duration = Histogram(
    "federation_sync_remote_load_duration_seconds",
    "Remote load duration in seconds",
    ["client_name", "namespace"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Workflow metrics
transitions_total = Counter(
    "federation_sync_transitions_total",
    "Total number of invitation transitions by action and outcome",
    ["client_name", "action", "outcome"],
)


class SyncMetricsCollector:
    """Records prometheus metrics and keeps per-instance tallies.

    Labels carry the key namespace, never the full key, so subject
    identifiers do not end up in metric series.
    """

    def __init__(self, client_name: str = "federation-sync") -> None:
        """Initialize metrics collector.

        Args:
            client_name: Label identifying this client process
        """
        self.client_name = client_name
        self._tally: TallyCounter[str] = TallyCounter()
        self._lock = threading.Lock()

    def _count(self, name: str) -> None:
        with self._lock:
            self._tally[name] += 1

    def record_cache_read(self, key: str, outcome: str) -> None:
        """Record a cache read.

        Args:
            key: Cache key read
            outcome: hit, miss, stale or corrupt
        """
        cache_reads_total.labels(
            client_name=self.client_name,
            namespace=key_namespace(key),
            outcome=outcome,
        ).inc()
        self._count(f"cache_{outcome}")

    def record_storage_error(self, operation: str) -> None:
        """Record a local store failure that was degraded to a cache miss.

        Args:
            operation: Store operation that failed
        """
        cache_storage_errors_total.labels(
            client_name=self.client_name,
            operation=operation,
        ).inc()
        self._count("storage_error")

    def record_remote_load(self, key: str, success: bool, duration_seconds: float) -> None:
        """Record a settled remote load.

        Args:
            key: Cache key the load populates
            success: Whether the loader returned a value
            duration_seconds: Time the loader took
        """
        namespace = key_namespace(key)
        outcome = "success" if success else "failure"
        remote_loads_total.labels(
            client_name=self.client_name,
            namespace=namespace,
            outcome=outcome,
        ).inc()
        remote_load_duration.labels(
            client_name=self.client_name,
            namespace=namespace,
        ).observe(duration_seconds)
        self._count(f"remote_{outcome}")

    def record_collapsed_request(self, key: str) -> None:
        """Record a request that joined an in-flight load.

        Args:
            key: Cache key of the in-flight load
        """
        collapsed_requests_total.labels(
            client_name=self.client_name,
            namespace=key_namespace(key),
        ).inc()
        self._count("collapsed")

    def record_transition(self, action: str, outcome: str) -> None:
        """Record a workflow transition attempt.

        Args:
            action: accept, reject or cancel
            outcome: committed, denied, conflict or failed
        """
        transitions_total.labels(
            client_name=self.client_name,
            action=action,
            outcome=outcome,
        ).inc()
        self._count(f"transition_{outcome}")

        logger.debug(
            "Transition recorded",
            extra={
                "client_name": self.client_name,
                "action": action,
                "outcome": outcome,
                "metric": "transitions_total",
            },
        )

    def snapshot(self) -> dict[str, int]:
        """Per-instance tallies, e.g. ``{"cache_hit": 3, "remote_success": 1}``."""
        with self._lock:
            return dict(self._tally)
