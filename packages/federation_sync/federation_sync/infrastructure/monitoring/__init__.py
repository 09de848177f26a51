"""Monitoring infrastructure for federation-sync."""

from __future__ import annotations

from .metrics import SyncMetricsCollector

__all__ = ["SyncMetricsCollector"]
