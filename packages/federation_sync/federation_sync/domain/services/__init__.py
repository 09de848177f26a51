"""Domain services for federation-sync."""

from __future__ import annotations

from .access_policy import (
    TRANSITION_TABLE,
    AccessPolicy,
    allowed_actions,
    ensure_allowed,
    is_allowed,
    target_status,
)

__all__: list[str] = [
    "TRANSITION_TABLE",
    "AccessPolicy",
    "allowed_actions",
    "ensure_allowed",
    "is_allowed",
    "target_status",
]
