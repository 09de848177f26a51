"""Domain service deciding which invitation transitions a subject may request.

The whole rule set is the table below: only a pending invitation can move,
the receiver answers it and the sender withdraws it. Every other
(status, direction, action) combination is denied.
"""

from __future__ import annotations

from datetime import datetime

from federation_sync.domain.entities import Invitation
from federation_sync.domain.enums import InvitationAction, InvitationDirection, InvitationStatus
from federation_sync.domain.exceptions import IllegalTransitionError

TransitionKey = tuple[InvitationStatus, InvitationDirection]

TRANSITION_TABLE: dict[TransitionKey, frozenset[InvitationAction]] = {
    (InvitationStatus.PENDING, InvitationDirection.RECEIVED): frozenset(
        {InvitationAction.ACCEPT, InvitationAction.REJECT}
    ),
    (InvitationStatus.PENDING, InvitationDirection.SENT): frozenset({InvitationAction.CANCEL}),
}

_TARGETS = {
    InvitationAction.ACCEPT: InvitationStatus.ACCEPTED,
    InvitationAction.REJECT: InvitationStatus.REJECTED,
    InvitationAction.CANCEL: InvitationStatus.CANCELLED,
}

_NONE: frozenset[InvitationAction] = frozenset()


def allowed_actions(
    status: InvitationStatus, direction: InvitationDirection
) -> frozenset[InvitationAction]:
    """Actions permitted from ``status`` for a subject on the ``direction`` side."""
    return TRANSITION_TABLE.get((status, direction), _NONE)


def is_allowed(
    status: InvitationStatus, direction: InvitationDirection, action: InvitationAction
) -> bool:
    """True if ``action`` is permitted."""
    return action in allowed_actions(status, direction)


def target_status(action: InvitationAction) -> InvitationStatus:
    """Status an invitation reaches once ``action`` is confirmed."""
    return _TARGETS[action]


def ensure_allowed(
    invitation_id: int | str,
    status: InvitationStatus,
    direction: InvitationDirection,
    action: InvitationAction,
) -> None:
    """Deny a transition that is not in the table.

    Raises:
        IllegalTransitionError: If ``action`` is not permitted
    """
    if not is_allowed(status, direction, action):
        raise IllegalTransitionError(
            invitation_id=invitation_id,
            status=status.value,
            direction=direction.value,
            action=action.value,
        )


class AccessPolicy:
    """Injectable wrapper around the transition table."""

    def allowed_actions(
        self, invitation: Invitation, now: datetime | None = None
    ) -> frozenset[InvitationAction]:
        """Actions available on an invitation.

        Args:
            invitation: The invitation as seen by the subject
            now: If given, a lapsed pending invitation is treated as expired

        Returns:
            Permitted actions, empty for terminal invitations
        """
        return allowed_actions(self._status(invitation, now), invitation.direction)

    def is_allowed(
        self, invitation: Invitation, action: InvitationAction, now: datetime | None = None
    ) -> bool:
        """True if ``action`` is permitted on the invitation."""
        return action in self.allowed_actions(invitation, now)

    def check(
        self, invitation: Invitation, action: InvitationAction, now: datetime | None = None
    ) -> None:
        """Raise IllegalTransitionError unless ``action`` is permitted.

        Args:
            invitation: The invitation as seen by the subject
            action: Requested action
            now: If given, a lapsed pending invitation is treated as expired

        Raises:
            IllegalTransitionError: If the transition is denied
        """
        ensure_allowed(invitation.id, self._status(invitation, now), invitation.direction, action)

    @staticmethod
    def _status(invitation: Invitation, now: datetime | None) -> InvitationStatus:
        if now is None:
            return invitation.status
        return invitation.effective_status(now)
