"""Invitation entity and the caller's working list of invitations.

Invitations are values: a workflow transition produces a new Invitation and
the working list swaps it in by id. Nothing mutates an invitation in place,
so a failed remote call can never leave a half-applied transition behind.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from federation_sync.domain.enums import InvitationAction, InvitationDirection, InvitationStatus
from federation_sync.domain.exceptions import NotFoundError

RESPONDED_STATUSES = frozenset({InvitationStatus.ACCEPTED, InvitationStatus.REJECTED})
TERMINAL_STATUSES = frozenset(
    {
        InvitationStatus.ACCEPTED,
        InvitationStatus.REJECTED,
        InvitationStatus.CANCELLED,
        InvitationStatus.EXPIRED,
    }
)

_ACTION_RESULTS = {
    InvitationAction.ACCEPT: InvitationStatus.ACCEPTED,
    InvitationAction.REJECT: InvitationStatus.REJECTED,
    InvitationAction.CANCEL: InvitationStatus.CANCELLED,
}


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class CounterpartyDetails:
    """Descriptive data about the other party of an invitation."""

    type: str | None = None
    city: str | None = None
    province: str | None = None

    @property
    def location(self) -> str | None:
        """City if known, else province."""
        return self.city or self.province


@dataclass
class Invitation:
    """An invitation as seen by the querying subject.

    Attributes:
        id: Backend identifier
        status: Current lifecycle status
        direction: Whether the subject sent or received the invitation
        counterparty_name: Name of the other party
        counterparty_details: Type and location of the other party
        message: Optional free-text message
        created_at: Creation time (UTC)
        responded_at: Response time, set iff status is accepted or rejected
        expires_at: Optional deadline for a response
    """

    id: int
    status: InvitationStatus
    direction: InvitationDirection
    counterparty_name: str
    created_at: datetime
    counterparty_details: CounterpartyDetails = field(default_factory=CounterpartyDetails)
    message: str | None = None
    responded_at: datetime | None = None
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate invitation entity after initialization."""
        self.created_at = _as_utc(self.created_at)  # type: ignore[assignment]
        self.responded_at = _as_utc(self.responded_at)
        self.expires_at = _as_utc(self.expires_at)

        responded = self.status in RESPONDED_STATUSES
        if responded and self.responded_at is None:
            raise ValueError(f"Invitation {self.id} is {self.status.value} but has no responded_at")
        if not responded and self.responded_at is not None:
            raise ValueError(
                f"Invitation {self.id} is {self.status.value} and cannot carry responded_at"
            )

    @property
    def is_sender(self) -> bool:
        """True if the querying subject sent this invitation."""
        return self.direction is InvitationDirection.SENT

    @property
    def is_terminal(self) -> bool:
        """True once no further transition is possible."""
        return self.status in TERMINAL_STATUSES

    def is_lapsed(self, now: datetime) -> bool:
        """True for a pending invitation whose response deadline has passed."""
        return (
            self.status is InvitationStatus.PENDING
            and self.expires_at is not None
            and self.expires_at <= now
        )

    def effective_status(self, now: datetime) -> InvitationStatus:
        """Status with lapsed pending invitations reported as expired."""
        if self.is_lapsed(now):
            return InvitationStatus.EXPIRED
        return self.status

    def transitioned(self, action: InvitationAction, now: datetime) -> Invitation:
        """Return the invitation as it is after ``action`` was confirmed remotely.

        Legality is not checked here; that is the access policy's job.

        Args:
            action: Confirmed action
            now: Confirmation time, recorded as responded_at for accept/reject

        Returns:
            A new Invitation value
        """
        new_status = _ACTION_RESULTS[action]
        return replace(
            self,
            status=new_status,
            responded_at=now if new_status in RESPONDED_STATUSES else None,
        )


class InvitationCollection:
    """Ordered working list of invitations keyed by id.

    Owned by a single caller context; commits replace entries in place so
    list order is stable across transitions.
    """

    def __init__(self, invitations: Iterable[Invitation] = ()) -> None:
        """Initialize the collection.

        Args:
            invitations: Initial contents; a later duplicate id wins
        """
        self._items: dict[int, Invitation] = {}
        self.load(invitations)

    def load(self, invitations: Iterable[Invitation]) -> None:
        """Replace the whole contents, e.g. after a fresh listing."""
        self._items = {invitation.id: invitation for invitation in invitations}

    def merge(self, invitations: Iterable[Invitation]) -> None:
        """Upsert a listing: known ids are replaced in place, new ids appended.

        A terminal entry is never replaced by a pending one. No transition
        leads back to pending, so such a listing predates the commit.
        """
        for invitation in invitations:
            known = self._items.get(invitation.id)
            if (
                known is not None
                and known.is_terminal
                and invitation.status is InvitationStatus.PENDING
            ):
                continue
            self._items[invitation.id] = invitation

    def get(self, invitation_id: int) -> Invitation | None:
        """Get an invitation by id."""
        return self._items.get(invitation_id)

    def replace(self, invitation: Invitation) -> Invitation:
        """Swap in a new value for an existing id.

        Args:
            invitation: The new value

        Returns:
            The value that was replaced

        Raises:
            NotFoundError: If no invitation with that id is in the list
        """
        previous = self._items.get(invitation.id)
        if previous is None:
            raise NotFoundError("Invitation", invitation.id)
        self._items[invitation.id] = invitation
        return previous

    def pending(self) -> list[Invitation]:
        """Invitations still awaiting a response."""
        return [i for i in self._items.values() if i.status is InvitationStatus.PENDING]

    def sent(self) -> list[Invitation]:
        """Invitations sent by the subject."""
        return [i for i in self._items.values() if i.is_sender]

    def received(self) -> list[Invitation]:
        """Invitations received by the subject."""
        return [i for i in self._items.values() if not i.is_sender]

    def __contains__(self, invitation_id: object) -> bool:
        return invitation_id in self._items

    def __iter__(self) -> Iterator[Invitation]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
