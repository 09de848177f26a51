"""Remote gateways backed by the federation SDK.

SDK failures are translated into the core error taxonomy. Only the HTTP
status code and the endpoint travel along; backend messages are logged at
DEBUG and never surface to callers.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import federation_sdk
from federation_sdk import FederationApiClient, InvitationRecord

from federation_sync.domain.entities import CounterpartyDetails, Invitation
from federation_sync.domain.enums import InvitationDirection, InvitationStatus
from federation_sync.domain.exceptions import (
    FederationSyncError,
    NotFoundError,
    PermissionDeniedError,
    RemoteUnavailableError,
    TransitionConflictError,
    UnauthenticatedError,
    ValidationError,
)
from federation_sync.domain.interfaces import (
    DirectoryGateway,
    InvitationGateway,
    InvitationPage,
    InvitationQuery,
    Record,
)
from federation_sync.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _reason(error: federation_sdk.FederationApiError) -> str:
    if error.status_code is not None:
        return f"HTTP {error.status_code}"
    if isinstance(error, federation_sdk.ApiUnavailableError):
        return "transport error"
    return type(error).__name__


def _details(error: federation_sdk.FederationApiError) -> dict[str, Any]:
    return {"status_code": error.status_code, "endpoint": error.endpoint}


def translate_error(
    error: federation_sdk.FederationApiError,
    operation: str,
    invitation_id: int | None = None,
    action: str | None = None,
) -> FederationSyncError:
    """Map an SDK error onto the core taxonomy.

    Args:
        error: SDK error
        operation: Name of the gateway operation
        invitation_id: Invitation targeted by a workflow action
        action: Workflow action, if any

    Returns:
        The core error to raise in its place
    """
    reason = _reason(error)
    details = _details(error)

    if isinstance(error, federation_sdk.AuthenticationError):
        return UnauthenticatedError(operation, reason, details=details)
    if isinstance(error, federation_sdk.PermissionDeniedError):
        return PermissionDeniedError(operation, reason, details=details)
    if isinstance(error, federation_sdk.NotFoundError) and invitation_id is not None:
        return NotFoundError("Invitation", invitation_id, details=details)
    if isinstance(error, federation_sdk.ConflictError | federation_sdk.RequestRefusedError):
        if invitation_id is not None and action is not None:
            return TransitionConflictError(invitation_id, action, details=details)
        if isinstance(error, federation_sdk.ConflictError):
            return ValidationError(
                f"Request for '{operation}' was rejected: {reason}", details=details
            )
    return RemoteUnavailableError(operation, reason, details=details)


def invitation_from_record(record: InvitationRecord) -> Invitation:
    """Convert an SDK invitation into the subject-relative domain value.

    The counterparty is the receiver for sent invitations and the sender for
    received ones. ``responded_at`` falls back to ``accepted_at`` or
    ``rejected_at`` and is dropped for statuses that carry none.

    Raises:
        ValueError: If the record has an unknown status
    """
    status = InvitationStatus(record.status)
    direction = InvitationDirection.SENT if record.is_sender else InvitationDirection.RECEIVED
    if record.is_sender:
        name, party = record.receiver_name, record.receiver_details
    else:
        name, party = record.sender_name, record.sender_details

    responded_at = None
    if status is InvitationStatus.ACCEPTED:
        responded_at = record.responded_at or record.accepted_at or record.created_at
    elif status is InvitationStatus.REJECTED:
        responded_at = record.responded_at or record.rejected_at or record.created_at

    return Invitation(
        id=record.id,
        status=status,
        direction=direction,
        counterparty_name=name or "",
        created_at=record.created_at,
        counterparty_details=(
            CounterpartyDetails(type=party.type, city=party.city, province=party.province)
            if party is not None
            else CounterpartyDetails()
        ),
        message=record.message,
        responded_at=responded_at,
        expires_at=record.expires_at,
    )


class HttpFederationGateway(InvitationGateway, DirectoryGateway):
    """Invitation and directory gateway over ``FederationApiClient``."""

    def __init__(self, client: FederationApiClient) -> None:
        """Initialize the gateway.

        Args:
            client: SDK client; its lifetime is managed by the caller
        """
        self._client = client

    async def _call(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        invitation_id: int | None = None,
        action: str | None = None,
    ) -> T:
        try:
            return await call()
        except federation_sdk.FederationApiError as e:
            logger.debug(
                "Remote call failed",
                extra={
                    "operation": operation,
                    "status_code": e.status_code,
                    "endpoint": e.endpoint,
                    "remote_message": e.message,
                },
            )
            raise translate_error(e, operation, invitation_id, action) from e

    async def list_invitations(self, query: InvitationQuery) -> InvitationPage:
        page = await self._call(
            "list_invitations", lambda: self._client.list_invitations(query.as_params() or None)
        )
        try:
            invitations = [invitation_from_record(record) for record in page.data]
        except ValueError as e:
            raise RemoteUnavailableError("list_invitations", "unexpected invitation record") from e
        return InvitationPage(
            invitations=invitations,
            current_page=page.current_page,
            last_page=page.last_page,
            total=page.total,
        )

    async def accept(self, invitation_id: int) -> None:
        await self._call(
            "accept_invitation",
            lambda: self._client.accept_invitation(invitation_id),
            invitation_id,
            "accept",
        )

    async def reject(self, invitation_id: int) -> None:
        await self._call(
            "reject_invitation",
            lambda: self._client.reject_invitation(invitation_id),
            invitation_id,
            "reject",
        )

    async def cancel(self, invitation_id: int) -> None:
        await self._call(
            "cancel_invitation",
            lambda: self._client.cancel_invitation(invitation_id),
            invitation_id,
            "cancel",
        )

    async def list_clubs(self, league_id: int | None = None) -> list[Record]:
        clubs = await self._call("list_clubs", lambda: self._client.list_clubs(league_id))
        return [club.model_dump(mode="json") for club in clubs]

    async def list_members(
        self, club_id: int | None = None, club_ids: Sequence[int] | None = None
    ) -> list[Record]:
        members = await self._call(
            "list_members", lambda: self._client.list_members(club_id, club_ids)
        )
        return [member.model_dump(mode="json") for member in members]

    async def list_leagues(self) -> list[Record]:
        leagues = await self._call("list_leagues", self._client.list_leagues)
        return [league.model_dump(mode="json") for league in leagues]

    async def list_sports(self) -> list[Record]:
        sports = await self._call("list_sports", self._client.list_sports)
        return [sport.model_dump(mode="json") for sport in sports]
