"""Unit tests for the per-subject session."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from federation_sync.application.models import ClubDashboard
from federation_sync.application.session import FederationSession
from federation_sync.config import CacheBackend, SyncConfig
from federation_sync.domain.entities import Invitation, Subject
from federation_sync.domain.enums import (
    InvitationDirection,
    InvitationStatus,
    ReadOrigin,
    SubjectRole,
)
from federation_sync.domain.exceptions import IllegalTransitionError, NotFoundError
from federation_sync.domain.interfaces import InvitationQuery
from federation_sync.infrastructure.monitoring import SyncMetricsCollector
from federation_sync.infrastructure.storage import MemoryKeyValueStore


@pytest.fixture
def config() -> SyncConfig:
    """Default configuration with a memory backend."""
    return SyncConfig()


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    """Backend shared by sessions of one test."""
    return MemoryKeyValueStore()


@pytest.fixture
def make_session(
    invitation_gateway: Any,
    directory_gateway: Any,
    backend: MemoryKeyValueStore,
    config: SyncConfig,
    clock: Any,
    metrics: SyncMetricsCollector,
) -> Callable[[Subject], FederationSession]:
    """Factory building a session over the fake gateways."""

    def build(subject: Subject) -> FederationSession:
        return FederationSession(
            subject,
            invitation_gateway,
            directory_gateway,
            backend,
            config=config,
            clock=clock,
            metrics=metrics,
        )

    return build


@pytest.fixture
def session(
    make_session: Callable[[Subject], FederationSession], club_subject: Subject
) -> FederationSession:
    """Session of the club subject."""
    return make_session(club_subject)


@pytest.fixture
def seeded(invitation_gateway: Any, make_invitation: Callable[..., Invitation]) -> Any:
    """Gateway holding received, sent and answered invitations."""
    invitation_gateway.invitations = [
        make_invitation(7),
        make_invitation(42, direction=InvitationDirection.SENT),
        make_invitation(3, status=InvitationStatus.REJECTED),
    ]
    return invitation_gateway


class TestInvitationListing:
    """Test cached invitation listings."""

    @pytest.mark.asyncio
    async def test_listing_fills_working_list(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that a listing is merged into the working list."""
        page, result = await session.list_invitations()

        assert [i.id for i in page.invitations] == [7, 42, 3]
        assert result.origin is ReadOrigin.REMOTE
        assert [i.id for i in session.invitations] == [7, 42, 3]

    @pytest.mark.asyncio
    async def test_listing_is_cached(self, session: FederationSession, seeded: Any) -> None:
        """Test that a repeated listing is served from the cache."""
        await session.list_invitations()
        page, result = await session.list_invitations()

        assert result.origin is ReadOrigin.FRESH_CACHE
        assert page.invitations[0].status is InvitationStatus.PENDING
        assert len(seeded.queries) == 1

    @pytest.mark.asyncio
    async def test_unfiltered_queries_share_an_entry(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that "all" filters address the unfiltered listing."""
        assert session.invitations_key(InvitationQuery(status="all", type="All")) == (
            session.invitations_key(InvitationQuery())
        )

        await session.list_invitations(InvitationQuery())
        _, result = await session.list_invitations(InvitationQuery(status="all"))

        assert result.origin is ReadOrigin.FRESH_CACHE

    @pytest.mark.asyncio
    async def test_filtered_query_has_its_own_entry(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that a status filter is loaded separately."""
        await session.list_invitations()
        page, result = await session.list_invitations(InvitationQuery(status="pending"))

        assert result.origin is ReadOrigin.REMOTE
        assert [i.id for i in page.invitations] == [7, 42]

    @pytest.mark.asyncio
    async def test_find_invitation_pages_through_listing(
        self,
        session: FederationSession,
        invitation_gateway: Any,
        make_invitation: Callable[..., Invitation],
    ) -> None:
        """Test that an invitation on a later page is found."""
        invitation_gateway.per_page = 2
        invitation_gateway.invitations = [make_invitation(i) for i in range(1, 6)]

        found = await session.find_invitation(5)

        assert found.id == 5
        assert [q.page for q in invitation_gateway.queries] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_find_missing_invitation(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that an unknown id raises NotFoundError after the last page."""
        with pytest.raises(NotFoundError):
            await session.find_invitation(999)


class TestSessionWorkflow:
    """Test transitions through the session."""

    @pytest.mark.asyncio
    async def test_transition_by_id(self, session: FederationSession, seeded: Any) -> None:
        """Test accepting an invitation not yet in the working list."""
        committed = await session.transition(7, "accept")

        assert committed.status is InvitationStatus.ACCEPTED
        assert seeded.actions == [("accept", 7)]
        assert session.invitations.get(7) is committed

    @pytest.mark.asyncio
    async def test_transition_invalidates_listing(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that a commit drops the cached invitation listing."""
        await session.list_invitations()
        await session.transition(42, "cancel")

        _, result = await session.list_invitations()

        assert result.origin is ReadOrigin.REMOTE
        assert len(seeded.queries) == 2

    @pytest.mark.asyncio
    async def test_listing_in_flight_during_commit(
        self, session: FederationSession, seeded: Any
    ) -> None:
        """Test that a listing loaded before a commit neither reverts nor caches."""
        await session.list_invitations()
        seeded.gate = asyncio.Event()

        refresh = asyncio.create_task(session.list_invitations(force_refresh=True))
        for _ in range(5):
            await asyncio.sleep(0)
        assert session.coordinator.is_loading(session.invitations_key(InvitationQuery()))

        committed = await session.transition(7, "accept")
        seeded.gate.set()
        page, result = await refresh

        assert page.invitations[0].status is InvitationStatus.PENDING
        assert result.origin is ReadOrigin.REMOTE
        assert session.invitations.get(7) is committed
        assert committed.status is InvitationStatus.ACCEPTED

        _, after = await session.list_invitations()
        assert after.origin is ReadOrigin.REMOTE
        assert len(seeded.queries) == 3

    @pytest.mark.asyncio
    async def test_illegal_transition(self, session: FederationSession, seeded: Any) -> None:
        """Test that a denied transition makes no remote call."""
        with pytest.raises(IllegalTransitionError):
            await session.transition(3, "accept")
        assert seeded.actions == []


class TestSessionCache:
    """Test dashboard access and cache maintenance."""

    @pytest.mark.asyncio
    async def test_dashboard(self, session: FederationSession) -> None:
        """Test that the session serves the role's dashboard."""
        view = await session.dashboard()
        assert isinstance(view.data, ClubDashboard)

    @pytest.mark.asyncio
    async def test_switching_subject_never_reuses_entries(
        self, make_session: Callable[[Subject], FederationSession]
    ) -> None:
        """Test that a new subject on the same backend loads its own data."""
        first = make_session(Subject("100", SubjectRole.CLUB))
        await first.dashboard()
        await first.close()

        second = make_session(Subject("101", SubjectRole.CLUB))
        view = await second.dashboard()

        assert view.origin is ReadOrigin.REMOTE
        assert isinstance(view.data, ClubDashboard)
        assert view.data.club is not None and view.data.club.id == 11

    @pytest.mark.asyncio
    async def test_invalidate_all(
        self,
        session: FederationSession,
        make_session: Callable[[Subject], FederationSession],
        seeded: Any,
        backend: MemoryKeyValueStore,
    ) -> None:
        """Test that only the subject's own entries are removed."""
        await session.dashboard()
        await session.club_leagues()
        await session.list_invitations()
        await make_session(Subject("101", SubjectRole.CLUB)).dashboard()

        assert session.invalidate_all() == 3
        assert len(backend) == 1

    def test_from_config(self, club_subject: Subject, seeded: Any) -> None:
        """Test building a session with the configured backend."""
        config = SyncConfig(cache={"backend": CacheBackend.MEMORY, "ttl_seconds": 60})

        session = FederationSession.from_config(club_subject, seeded, config)

        assert session.cache_store.default_ttl.total_seconds() == 60
        assert session.subject is club_subject
