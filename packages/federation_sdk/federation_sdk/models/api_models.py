"""Wire models of the federation REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

_WIRE_CONFIG = ConfigDict(extra="ignore", populate_by_name=True)


class ApiEnvelope(BaseModel):
    """Standard response envelope ``{status, data, message}``."""

    model_config = _WIRE_CONFIG

    status: Literal["success", "error"]
    data: Any = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        """True for a success envelope."""
        return self.status == "success"


class Page(BaseModel, Generic[T]):
    """Paginated collection as returned by list endpoints."""

    model_config = _WIRE_CONFIG

    data: list[T] = Field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: int | None = None
    total: int = 0
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None


class PartyDetails(BaseModel):
    """Type and location of one invitation party."""

    model_config = _WIRE_CONFIG

    type: str | None = None
    city: str | None = None
    province: str | None = None


class InvitationRecord(BaseModel):
    """Invitation as listed for the authenticated user."""

    model_config = _WIRE_CONFIG

    id: int
    status: str
    is_sender: bool = False
    sender_name: str | None = None
    receiver_name: str | None = None
    sender_details: PartyDetails | None = None
    receiver_details: PartyDetails | None = None
    message: str | None = None
    created_at: datetime
    responded_at: datetime | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    expires_at: datetime | None = None


class ClubRecord(BaseModel):
    """Club directory record."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    city: str | None = None
    province: str | None = None
    status: str | None = None
    user_id: int | None = None
    league_id: int | None = None
    members_count: int | None = None
    created_at: datetime | None = None


class MemberRecord(BaseModel):
    """Member directory record."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    email: str | None = None
    gender: str | None = None
    status: str | None = None
    user_id: int | None = None
    club_id: int | None = None
    created_at: datetime | None = None


class LeagueRecord(BaseModel):
    """League directory record."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    province: str | None = None
    region: str | None = None
    status: str | None = None
    user_id: int | None = None
    clubs_count: int | None = None
    created_at: datetime | None = None


class SportRecord(BaseModel):
    """Sport record."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    code: str | None = None
    status: str | None = None
