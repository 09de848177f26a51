"""Application layer models for federation-sync."""

from __future__ import annotations

from .dashboard_models import (
    ClubDashboard,
    ClubDashboardStats,
    ClubSummary,
    InvitationSummary,
    LeagueDashboard,
    LeagueDashboardStats,
    LeagueList,
    LeagueListStats,
    LeagueSummary,
    MemberSummary,
    SportSummary,
)
from .invitation_models import CounterpartyModel, InvitationModel, InvitationPageModel

__all__ = [
    "ClubDashboard",
    "ClubDashboardStats",
    "ClubSummary",
    "CounterpartyModel",
    "InvitationModel",
    "InvitationPageModel",
    "InvitationSummary",
    "LeagueDashboard",
    "LeagueDashboardStats",
    "LeagueList",
    "LeagueListStats",
    "LeagueSummary",
    "MemberSummary",
    "SportSummary",
]
