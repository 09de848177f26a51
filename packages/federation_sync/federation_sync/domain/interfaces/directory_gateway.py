"""Abstract interface for the remote directory of clubs, members, leagues and sports.

Records are plain JSON-like dicts as returned by the backend, with at least
``id`` and ``name`` keys. Only the fields the dashboards aggregate are relied on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

Record = dict[str, Any]


class DirectoryGateway(ABC):
    """Read-only access to federation directory listings."""

    @abstractmethod
    async def list_clubs(self, league_id: int | None = None) -> list[Record]:
        """List clubs, optionally restricted to one league."""
        ...

    @abstractmethod
    async def list_members(
        self, club_id: int | None = None, club_ids: Sequence[int] | None = None
    ) -> list[Record]:
        """List members of one club, of several clubs, or all visible members."""
        ...

    @abstractmethod
    async def list_leagues(self) -> list[Record]:
        """List leagues."""
        ...

    @abstractmethod
    async def list_sports(self) -> list[Record]:
        """List sports."""
        ...
