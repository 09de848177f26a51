"""Invitation workflow engine.

Applies one transition end to end with a confirm-then-commit discipline: the
access policy is consulted first, then the remote action is invoked, and only
after the remote system acknowledged it is the new invitation value written
into the caller's working list. A failed call leaves the list exactly as it
was; there is nothing to roll back.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from federation_sync.application.events import EventBus, invitation_transitioned
from federation_sync.domain.clock import Clock, utc_now
from federation_sync.domain.entities import Invitation, InvitationCollection
from federation_sync.domain.enums import InvitationAction
from federation_sync.domain.exceptions import (
    IllegalTransitionError,
    NotFoundError,
    TransitionConflictError,
)
from federation_sync.domain.interfaces import InvitationGateway
from federation_sync.domain.services import AccessPolicy
from federation_sync.infrastructure.logging import get_logger
from federation_sync.infrastructure.monitoring import SyncMetricsCollector

logger = get_logger(__name__)


class WorkflowEngine:
    """Validates, performs and commits invitation transitions.

    The engine never retries; retrying is a caller policy. It also does not
    know which cached aggregates depend on invitation state, so it announces
    each commit on the event bus and leaves invalidation to subscribers.
    """

    def __init__(
        self,
        gateway: InvitationGateway,
        invitations: InvitationCollection | None = None,
        clock: Clock = utc_now,
        policy: AccessPolicy | None = None,
        event_bus: EventBus | None = None,
        metrics: SyncMetricsCollector | None = None,
    ) -> None:
        """Initialize the workflow engine.

        Args:
            gateway: Remote invitation actions
            invitations: Caller's working list; a new empty list if omitted
            clock: Source of the current time
            policy: Access policy; the standard transition table if omitted
            event_bus: Optional bus receiving ``invitation.transitioned`` events
            metrics: Optional metrics collector
        """
        self._gateway = gateway
        self._invitations = invitations if invitations is not None else InvitationCollection()
        self._clock = clock
        self._policy = policy or AccessPolicy()
        self._event_bus = event_bus
        self._metrics = metrics
        self._in_progress: set[int] = set()

    @property
    def invitations(self) -> InvitationCollection:
        """The working list commits are applied to."""
        return self._invitations

    def available_actions(self, invitation: Invitation) -> frozenset[InvitationAction]:
        """Actions a view may offer for ``invitation`` right now."""
        return self._policy.allowed_actions(invitation, self._clock())

    async def transition(
        self, invitation: Invitation | int, action: InvitationAction | str
    ) -> Invitation:
        """Apply ``action`` to an invitation.

        Args:
            invitation: The invitation, or its id in the working list. When the
                working list holds an entry with the same id, that entry is the
                authoritative current value.
            action: Requested action

        Returns:
            The committed invitation value

        Raises:
            NotFoundError: If an id is given that is not in the working list
            IllegalTransitionError: If the policy denies the transition or a
                transition of the same invitation is still in progress; no
                remote call is made
            TransitionConflictError: If the remote system refused because its
                state moved on
            UnauthenticatedError: If the remote call carried no valid credential
            RemoteUnavailableError: On network or server failure
        """
        action = InvitationAction(action)
        current = self._resolve(invitation)

        try:
            self._policy.check(current, action, self._clock())
        except IllegalTransitionError as e:
            self._record(action, "denied")
            logger.warning(
                "Transition denied",
                extra={
                    "invitation_id": current.id,
                    "action": action.value,
                    "status": e.status,
                    "direction": e.direction,
                },
            )
            raise

        if current.id in self._in_progress:
            self._record(action, "denied")
            logger.warning(
                "Transition denied, another one is in progress",
                extra={"invitation_id": current.id, "action": action.value},
            )
            raise IllegalTransitionError(
                current.id,
                current.status.value,
                current.direction.value,
                action.value,
                reason="another transition of this invitation is in progress",
            )

        self._in_progress.add(current.id)
        try:
            return await self._perform(current, action)
        finally:
            self._in_progress.discard(current.id)

    async def accept(self, invitation: Invitation | int) -> Invitation:
        """Accept a received pending invitation."""
        return await self.transition(invitation, InvitationAction.ACCEPT)

    async def reject(self, invitation: Invitation | int) -> Invitation:
        """Reject a received pending invitation."""
        return await self.transition(invitation, InvitationAction.REJECT)

    async def cancel(self, invitation: Invitation | int) -> Invitation:
        """Cancel a sent pending invitation."""
        return await self.transition(invitation, InvitationAction.CANCEL)

    async def _perform(self, current: Invitation, action: InvitationAction) -> Invitation:
        try:
            await self._remote_action(action)(current.id)
        except TransitionConflictError:
            self._record(action, "conflict")
            logger.warning(
                "Transition refused by remote system",
                extra={"invitation_id": current.id, "action": action.value},
            )
            raise
        except Exception as e:
            self._record(action, "failed")
            logger.warning(
                "Transition failed",
                extra={
                    "invitation_id": current.id,
                    "action": action.value,
                    "error_type": type(e).__name__,
                    "error_code": getattr(e, "error_code", None),
                },
            )
            raise

        now = self._clock()
        committed = current.transitioned(action, now)
        if committed.id in self._invitations:
            self._invitations.replace(committed)
        self._record(action, "committed")
        logger.info(
            "Transition committed",
            extra={
                "invitation_id": committed.id,
                "action": action.value,
                "status": committed.status.value,
            },
        )

        if self._event_bus is not None:
            await self._event_bus.publish(invitation_transitioned(committed, action, now))
        return committed

    def _resolve(self, invitation: Invitation | int) -> Invitation:
        if isinstance(invitation, Invitation):
            return self._invitations.get(invitation.id) or invitation
        current = self._invitations.get(invitation)
        if current is None:
            raise NotFoundError("Invitation", invitation)
        return current

    def _remote_action(self, action: InvitationAction) -> Callable[[int], Awaitable[None]]:
        if action is InvitationAction.ACCEPT:
            return self._gateway.accept
        if action is InvitationAction.REJECT:
            return self._gateway.reject
        return self._gateway.cancel

    def _record(self, action: InvitationAction, outcome: str) -> None:
        if self._metrics:
            self._metrics.record_transition(action.value, outcome)
