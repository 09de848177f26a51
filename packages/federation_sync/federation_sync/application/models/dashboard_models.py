"""Dashboard aggregate models.

Payloads are cached as ``model_dump(mode="json")`` and re-validated on the
way out, so everything here must round-trip through JSON-like values.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

_RECORD_CONFIG = ConfigDict(extra="ignore")


class ClubSummary(BaseModel):
    """Club as shown on dashboards."""

    model_config = _RECORD_CONFIG

    id: int
    name: str
    city: str | None = None
    province: str | None = None
    status: str | None = None
    user_id: int | None = None
    league_id: int | None = None
    created_at: datetime | None = None


class MemberSummary(BaseModel):
    """Member as shown on dashboards."""

    model_config = _RECORD_CONFIG

    id: int
    name: str
    gender: str | None = None
    status: str | None = None
    club_id: int | None = None
    created_at: datetime | None = None


class LeagueSummary(BaseModel):
    """League as shown on dashboards."""

    model_config = _RECORD_CONFIG

    id: int
    name: str
    province: str | None = None
    region: str | None = None
    status: str | None = None
    user_id: int | None = None
    clubs_count: int | None = None


class SportSummary(BaseModel):
    """Sport as shown on dashboards."""

    model_config = _RECORD_CONFIG

    id: int
    name: str
    code: str | None = None


class InvitationSummary(BaseModel):
    """Invitation as shown in dashboard activity lists."""

    id: int
    status: str
    direction: str
    counterparty_name: str
    created_at: datetime


class ClubDashboardStats(BaseModel):
    """Member counters of a club dashboard."""

    total_members: int = Field(default=0, ge=0)
    active_members: int = Field(default=0, ge=0)
    male_members: int = Field(default=0, ge=0)
    female_members: int = Field(default=0, ge=0)


class LeagueDashboardStats(BaseModel):
    """Counters of a league dashboard."""

    total_clubs: int = Field(default=0, ge=0)
    active_clubs: int = Field(default=0, ge=0)
    total_members: int = Field(default=0, ge=0)
    active_members: int = Field(default=0, ge=0)
    total_sports: int = Field(default=0, ge=0)
    pending_invitations: int = Field(default=0, ge=0)
    sent_invitations: int = Field(default=0, ge=0)
    growth_this_month: int = Field(default=0, ge=0, description="Clubs created this month")
    average_members_per_club: int = Field(default=0, ge=0)


class LeagueListStats(BaseModel):
    """Counters of the league directory view."""

    total_leagues: int = Field(default=0, ge=0)
    active_leagues: int = Field(default=0, ge=0)
    inactive_leagues: int = Field(default=0, ge=0)
    provinces: int = Field(default=0, ge=0, description="Distinct provinces with a league")


class ClubDashboard(BaseModel):
    """Club dashboard aggregate."""

    club: ClubSummary | None = None
    stats: ClubDashboardStats = Field(default_factory=ClubDashboardStats)
    recent_members: list[MemberSummary] = Field(default_factory=list)
    leagues: list[LeagueSummary] = Field(default_factory=list)


class LeagueDashboard(BaseModel):
    """League dashboard aggregate."""

    league: LeagueSummary | None = None
    stats: LeagueDashboardStats = Field(default_factory=LeagueDashboardStats)
    recent_clubs: list[ClubSummary] = Field(default_factory=list)
    recent_members: list[MemberSummary] = Field(default_factory=list)
    recent_invitations: list[InvitationSummary] = Field(default_factory=list)
    sports: list[SportSummary] = Field(default_factory=list)


class LeagueList(BaseModel):
    """League directory with its counters."""

    leagues: list[LeagueSummary] = Field(default_factory=list)
    stats: LeagueListStats = Field(default_factory=LeagueListStats)
