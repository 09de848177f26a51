"""Domain entities for federation-sync."""

from __future__ import annotations

from .cache_entry import DEFAULT_TTL, CacheEntry
from .invitation import (
    RESPONDED_STATUSES,
    TERMINAL_STATUSES,
    CounterpartyDetails,
    Invitation,
    InvitationCollection,
)
from .subject import Subject

__all__ = [
    "DEFAULT_TTL",
    "RESPONDED_STATUSES",
    "TERMINAL_STATUSES",
    "CacheEntry",
    "CounterpartyDetails",
    "Invitation",
    "InvitationCollection",
    "Subject",
]
