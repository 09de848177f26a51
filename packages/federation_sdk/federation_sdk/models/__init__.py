"""Data models for the federation SDK."""

from __future__ import annotations

from .api_models import (
    ApiEnvelope,
    ClubRecord,
    InvitationRecord,
    LeagueRecord,
    MemberRecord,
    Page,
    PartyDetails,
    SportRecord,
)

__all__ = [
    "ApiEnvelope",
    "ClubRecord",
    "InvitationRecord",
    "LeagueRecord",
    "MemberRecord",
    "Page",
    "PartyDetails",
    "SportRecord",
]
