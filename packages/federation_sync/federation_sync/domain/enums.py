"""Domain enums for federation-sync."""

from __future__ import annotations

from enum import Enum


class InvitationStatus(Enum):
    """Invitation lifecycle status."""

    PENDING = "pending"  # Awaiting a response from the receiver
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"  # Withdrawn by the sender
    EXPIRED = "expired"  # Past expires_at without a response


class InvitationDirection(Enum):
    """Direction of an invitation relative to the querying subject."""

    SENT = "sent"
    RECEIVED = "received"


class InvitationAction(Enum):
    """Workflow actions that can be requested on an invitation."""

    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"


class SubjectRole(Enum):
    """Roles of an authenticated subject, using the backend's wire values."""

    SUPER_ADMIN = "super_admin"
    LEAGUE = "liga"
    CLUB = "club"
    MEMBER = "miembro"


class ReadOrigin(Enum):
    """Where a value returned by the fetch coordinator came from."""

    REMOTE = "remote"
    FRESH_CACHE = "fresh_cache"
    STALE_CACHE = "stale_cache"
