"""Cacheable representation of invitation listings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from federation_sync.domain.entities import CounterpartyDetails, Invitation
from federation_sync.domain.enums import InvitationDirection, InvitationStatus
from federation_sync.domain.interfaces import InvitationPage


class CounterpartyModel(BaseModel):
    """Counterparty details."""

    type: str | None = None
    city: str | None = None
    province: str | None = None


class InvitationModel(BaseModel):
    """Invitation payload as stored in the cache."""

    id: int
    status: InvitationStatus
    direction: InvitationDirection
    counterparty_name: str
    counterparty_details: CounterpartyModel = Field(default_factory=CounterpartyModel)
    message: str | None = None
    created_at: datetime
    responded_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_entity(cls, invitation: Invitation) -> InvitationModel:
        """Build from a domain invitation."""
        details = invitation.counterparty_details
        return cls(
            id=invitation.id,
            status=invitation.status,
            direction=invitation.direction,
            counterparty_name=invitation.counterparty_name,
            counterparty_details=CounterpartyModel(
                type=details.type, city=details.city, province=details.province
            ),
            message=invitation.message,
            created_at=invitation.created_at,
            responded_at=invitation.responded_at,
            expires_at=invitation.expires_at,
        )

    def to_entity(self) -> Invitation:
        """Convert to a domain invitation."""
        return Invitation(
            id=self.id,
            status=self.status,
            direction=self.direction,
            counterparty_name=self.counterparty_name,
            created_at=self.created_at,
            counterparty_details=CounterpartyDetails(**self.counterparty_details.model_dump()),
            message=self.message,
            responded_at=self.responded_at,
            expires_at=self.expires_at,
        )


class InvitationPageModel(BaseModel):
    """One cached page of an invitation listing."""

    invitations: list[InvitationModel] = Field(default_factory=list)
    current_page: int = Field(default=1, ge=1)
    last_page: int = Field(default=1, ge=1)
    total: int = Field(default=0, ge=0)

    @classmethod
    def from_page(cls, page: InvitationPage) -> InvitationPageModel:
        """Build from a gateway page."""
        return cls(
            invitations=[InvitationModel.from_entity(i) for i in page.invitations],
            current_page=page.current_page,
            last_page=max(page.last_page, 1),
            total=page.total,
        )

    def to_page(self) -> InvitationPage:
        """Convert to a gateway page of domain invitations."""
        return InvitationPage(
            invitations=[model.to_entity() for model in self.invitations],
            current_page=self.current_page,
            last_page=self.last_page,
            total=self.total,
        )
