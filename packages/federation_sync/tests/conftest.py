"""Shared fixtures for federation-sync tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from federation_sync.application.services import CacheStore, FetchCoordinator
from federation_sync.domain.entities import Invitation, InvitationCollection, Subject
from federation_sync.domain.enums import InvitationDirection, InvitationStatus, SubjectRole
from federation_sync.domain.interfaces import (
    DirectoryGateway,
    InvitationGateway,
    InvitationPage,
    InvitationQuery,
    Record,
)
from federation_sync.infrastructure.monitoring import SyncMetricsCollector
from federation_sync.infrastructure.storage import MemoryKeyValueStore

T0 = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeInvitationGateway(InvitationGateway):
    """In-memory invitation gateway recording every call."""

    def __init__(self, invitations: Sequence[Invitation] = (), per_page: int = 50) -> None:
        self.invitations = list(invitations)
        self.per_page = per_page
        self.queries: list[InvitationQuery] = []
        self.actions: list[tuple[str, int]] = []
        self.list_error: Exception | None = None
        self.action_error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.action_gate: asyncio.Event | None = None

    async def list_invitations(self, query: InvitationQuery) -> InvitationPage:
        self.queries.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.list_error is not None:
            raise self.list_error
        matching = [
            i
            for i in self.invitations
            if query.as_params().get("status") in (None, i.status.value)
            and query.as_params().get("type") in (None, i.direction.value)
        ]
        start = (query.page - 1) * self.per_page
        last_page = max(1, -(-len(matching) // self.per_page))
        return InvitationPage(
            invitations=matching[start : start + self.per_page],
            current_page=query.page,
            last_page=last_page,
            total=len(matching),
        )

    async def _act(self, action: str, invitation_id: int) -> None:
        self.actions.append((action, invitation_id))
        if self.action_gate is not None:
            await self.action_gate.wait()
        if self.action_error is not None:
            raise self.action_error

    async def accept(self, invitation_id: int) -> None:
        await self._act("accept", invitation_id)

    async def reject(self, invitation_id: int) -> None:
        await self._act("reject", invitation_id)

    async def cancel(self, invitation_id: int) -> None:
        await self._act("cancel", invitation_id)


class FakeDirectoryGateway(DirectoryGateway):
    """In-memory directory recording every call."""

    def __init__(
        self,
        clubs: Sequence[Record] = (),
        members: Sequence[Record] = (),
        leagues: Sequence[Record] = (),
        sports: Sequence[Record] = (),
    ) -> None:
        self.clubs = list(clubs)
        self.members = list(members)
        self.leagues = list(leagues)
        self.sports = list(sports)
        self.calls: list[tuple[str, Any]] = []
        self.error: Exception | None = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def list_clubs(self, league_id: int | None = None) -> list[Record]:
        self.calls.append(("clubs", league_id))
        self._check()
        return [c for c in self.clubs if league_id is None or c.get("league_id") == league_id]

    async def list_members(
        self, club_id: int | None = None, club_ids: Sequence[int] | None = None
    ) -> list[Record]:
        self.calls.append(("members", club_ids if club_ids is not None else club_id))
        self._check()
        if club_id is not None:
            return [m for m in self.members if m.get("club_id") == club_id]
        if club_ids is not None:
            return [m for m in self.members if m.get("club_id") in club_ids]
        return list(self.members)

    async def list_leagues(self) -> list[Record]:
        self.calls.append(("leagues", None))
        self._check()
        return list(self.leagues)

    async def list_sports(self) -> list[Record]:
        self.calls.append(("sports", None))
        self._check()
        return list(self.sports)


def build_invitation(
    invitation_id: int = 1,
    status: InvitationStatus = InvitationStatus.PENDING,
    direction: InvitationDirection = InvitationDirection.RECEIVED,
    **kwargs: Any,
) -> Invitation:
    """Build an invitation with sensible defaults."""
    if status in (InvitationStatus.ACCEPTED, InvitationStatus.REJECTED):
        kwargs.setdefault("responded_at", T0 - timedelta(days=1))
    kwargs.setdefault("counterparty_name", f"Club {invitation_id}")
    kwargs.setdefault("created_at", T0 - timedelta(days=2))
    return Invitation(id=invitation_id, status=status, direction=direction, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def metrics() -> SyncMetricsCollector:
    """Metrics collector with a test client name."""
    return SyncMetricsCollector(client_name="test-client")


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """Unbounded in-memory backend."""
    return MemoryKeyValueStore()


@pytest.fixture
def cache_store(
    memory_store: MemoryKeyValueStore, clock: FakeClock, metrics: SyncMetricsCollector
) -> CacheStore:
    """Cache store with a five minute TTL."""
    return CacheStore(memory_store, clock=clock, default_ttl=timedelta(minutes=5), metrics=metrics)


@pytest.fixture
def coordinator(cache_store: CacheStore, metrics: SyncMetricsCollector) -> FetchCoordinator:
    """Fetch coordinator over the test cache store."""
    return FetchCoordinator(cache_store, metrics=metrics)


@pytest.fixture
def make_invitation() -> Callable[..., Invitation]:
    """Factory for invitations."""
    return build_invitation


@pytest.fixture
def invitation_gateway() -> FakeInvitationGateway:
    """Empty fake invitation gateway."""
    return FakeInvitationGateway()


@pytest.fixture
def directory_gateway() -> FakeDirectoryGateway:
    """Fake directory with two clubs of one league, members and sports."""
    return FakeDirectoryGateway(
        clubs=[
            {
                "id": 10,
                "name": "Club Norte",
                "city": "Quito",
                "province": "Pichincha",
                "status": "active",
                "user_id": 100,
                "league_id": 1,
                "created_at": "2024-05-02T09:00:00Z",
            },
            {
                "id": 11,
                "name": "Club Sur",
                "city": "Cuenca",
                "province": "Azuay",
                "status": "inactive",
                "user_id": 101,
                "league_id": 1,
                "created_at": "2024-03-10T09:00:00Z",
            },
        ],
        members=[
            {"id": 1, "name": "Ana", "gender": "female", "status": "active", "club_id": 10},
            {"id": 2, "name": "Luis", "gender": "male", "status": "active", "club_id": 10},
            {"id": 3, "name": "Eva", "gender": "female", "status": "inactive", "club_id": 10},
            {"id": 4, "name": "Juan", "gender": "male", "status": "active", "club_id": 11},
            {"id": 5, "name": "Sara", "gender": "female", "status": "active", "club_id": 11},
        ],
        leagues=[
            {
                "id": 1,
                "name": "Liga Pichincha",
                "province": "Pichincha",
                "region": "Sierra",
                "status": "active",
                "user_id": 200,
                "clubs_count": 2,
            },
            {
                "id": 2,
                "name": "Liga Guayas",
                "province": "Guayas",
                "region": "Costa",
                "status": "inactive",
                "user_id": 201,
                "clubs_count": 0,
            },
        ],
        sports=[
            {"id": 1, "name": "Tenis de mesa", "code": "TT"},
            {"id": 2, "name": "Padel", "code": "PD"},
        ],
    )


@pytest.fixture
def club_subject() -> Subject:
    """Subject owning Club Norte."""
    return Subject(identity="100", role=SubjectRole.CLUB)


@pytest.fixture
def league_subject() -> Subject:
    """Subject owning Liga Pichincha."""
    return Subject(identity="200", role=SubjectRole.LEAGUE)


@pytest.fixture
def working_list() -> InvitationCollection:
    """Empty working list."""
    return InvitationCollection()
