"""Abstract interface for the remote invitation endpoints."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from federation_sync.domain.entities import Invitation

_UNFILTERED = {"", "all"}


@dataclass(frozen=True)
class InvitationQuery:
    """Filters for an invitation listing.

    ``all`` and empty values mean no filter and are left out of the request,
    so equivalent queries share one cache entry.
    """

    type: str | None = None
    status: str | None = None
    search: str | None = None
    page: int = 1

    def as_params(self) -> dict[str, Any]:
        """Request parameters with unfiltered values dropped."""
        params: dict[str, Any] = {}
        for name in ("type", "status", "search"):
            value = getattr(self, name)
            if value is not None and str(value).strip().lower() not in _UNFILTERED:
                params[name] = str(value).strip()
        if self.page > 1:
            params["page"] = self.page
        return params

    def next_page(self) -> InvitationQuery:
        """The same query one page further."""
        return InvitationQuery(self.type, self.status, self.search, self.page + 1)


@dataclass
class InvitationPage:
    """One page of an invitation listing."""

    invitations: list[Invitation] = field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    total: int = 0

    @property
    def has_more(self) -> bool:
        """True if further pages exist."""
        return self.current_page < self.last_page


class InvitationGateway(ABC):
    """Remote invitation listing and the three workflow actions.

    The actions are idempotent on the remote side and return nothing; the
    caller derives the new invitation value from the action itself.
    """

    @abstractmethod
    async def list_invitations(self, query: InvitationQuery) -> InvitationPage:
        """List invitations visible to the authenticated subject.

        Raises:
            UnauthenticatedError: If no valid credential is attached
            RemoteUnavailableError: On network or server failure
        """
        ...

    @abstractmethod
    async def accept(self, invitation_id: int) -> None:
        """Accept a received invitation."""
        ...

    @abstractmethod
    async def reject(self, invitation_id: int) -> None:
        """Reject a received invitation."""
        ...

    @abstractmethod
    async def cancel(self, invitation_id: int) -> None:
        """Cancel a sent invitation."""
        ...
