"""Event bus and event definitions for the application layer."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, Field

from federation_sync.domain.entities import Invitation
from federation_sync.domain.enums import InvitationAction

INVITATION_TRANSITIONED = "invitation.transitioned"


class Event(BaseModel):
    """Base event class."""

    event_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="Unique event identifier"
    )
    event_type: str = Field(..., description="Type of event")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = Field(default_factory=dict)


def invitation_transitioned(
    invitation: Invitation, action: InvitationAction, at: datetime
) -> Event:
    """Build the event emitted after a transition was confirmed and committed."""
    return Event(
        event_type=INVITATION_TRANSITIONED,
        timestamp=at,
        data={
            "invitation_id": invitation.id,
            "action": action.value,
            "status": invitation.status.value,
            "direction": invitation.direction.value,
        },
    )


class EventHandler(Protocol):
    """Protocol for event handlers."""

    async def handle(self, event: Event) -> None:
        """Handle an event."""
        ...


class EventBus:
    """Simple in-memory event bus for application events."""

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers:
            self._handlers[event_type] = [h for h in self._handlers[event_type] if h != handler]

    async def publish(self, event: Event) -> None:
        """Publish an event to all subscribed handlers, in subscription order."""
        for handler in list(self._handlers.get(event.event_type, ())):
            await handler.handle(event)
