"""Application services for federation-sync."""

from __future__ import annotations

from .cache_store import CacheStore
from .fetch_coordinator import FetchCoordinator, FetchResult, InFlightLoad
from .workflow_engine import WorkflowEngine
from .dashboard_service import DashboardService, DashboardView

__all__ = [
    "CacheStore",
    "DashboardService",
    "DashboardView",
    "FetchCoordinator",
    "FetchResult",
    "InFlightLoad",
    "WorkflowEngine",
]
