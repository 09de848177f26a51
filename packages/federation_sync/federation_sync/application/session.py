"""Per-subject session wiring the synchronization and workflow core.

A session belongs to exactly one authenticated subject. Switching subjects
means building a new session; keys are derived from the subject, so the new
session never addresses the previous subject's entries even when both share
one persistent store.
"""

from __future__ import annotations

from typing import Any

from federation_sync.application.events import EventBus
from federation_sync.application.models import (
    ClubDashboard,
    InvitationPageModel,
    LeagueDashboard,
    LeagueList,
)
from federation_sync.application.services.cache_store import CacheStore
from federation_sync.application.services.dashboard_service import (
    DASHBOARD_NAMESPACE,
    INVITATIONS_NAMESPACE,
    LEAGUES_NAMESPACE,
    DashboardService,
    DashboardView,
)
from federation_sync.application.services.fetch_coordinator import FetchCoordinator, FetchResult
from federation_sync.application.services.workflow_engine import WorkflowEngine
from federation_sync.config import SyncConfig, get_config
from federation_sync.domain.clock import Clock, utc_now
from federation_sync.domain.entities import Invitation, InvitationCollection, Subject
from federation_sync.domain.enums import InvitationAction
from federation_sync.domain.exceptions import NotFoundError
from federation_sync.domain.interfaces import (
    DirectoryGateway,
    InvitationGateway,
    InvitationPage,
    InvitationQuery,
    KeyValueStore,
)
from federation_sync.infrastructure.logging import get_logger
from federation_sync.infrastructure.monitoring import SyncMetricsCollector
from federation_sync.infrastructure.storage import create_key_value_store

logger = get_logger(__name__)


class FederationSession:
    """Entry point for views acting as one subject."""

    def __init__(
        self,
        subject: Subject,
        invitation_gateway: InvitationGateway,
        directory_gateway: DirectoryGateway,
        backend: KeyValueStore,
        config: SyncConfig | None = None,
        clock: Clock = utc_now,
        metrics: SyncMetricsCollector | None = None,
    ) -> None:
        """Wire the core for ``subject``.

        Args:
            subject: Authenticated subject
            invitation_gateway: Remote invitation endpoints
            directory_gateway: Remote directory listings
            backend: Local key-value store backing the cache
            config: Configuration; the process configuration if omitted
            clock: Source of the current time
            metrics: Optional metrics collector
        """
        config = config or get_config()
        self.subject = subject
        self.metrics = metrics or SyncMetricsCollector()
        self.event_bus = EventBus()
        self.invitations = InvitationCollection()
        self.cache_store = CacheStore(
            backend, clock=clock, default_ttl=config.cache_ttl, metrics=self.metrics
        )
        self.coordinator = FetchCoordinator(self.cache_store, clock=clock, metrics=self.metrics)
        self.workflow = WorkflowEngine(
            invitation_gateway,
            self.invitations,
            clock=clock,
            event_bus=self.event_bus,
            metrics=self.metrics,
        )
        self.dashboards = DashboardService(
            subject,
            self.coordinator,
            directory_gateway,
            invitation_gateway,
            event_bus=self.event_bus,
        )
        self._invitation_gateway = invitation_gateway

        logger.info(
            "Session started",
            extra={"identity": subject.identity, "role": subject.role.value},
        )

    @classmethod
    def from_config(
        cls,
        subject: Subject,
        gateway: Any,
        config: SyncConfig | None = None,
        clock: Clock = utc_now,
        metrics: SyncMetricsCollector | None = None,
    ) -> FederationSession:
        """Build a session with the configured cache backend.

        Args:
            subject: Authenticated subject
            gateway: Object implementing both InvitationGateway and DirectoryGateway
            config: Configuration; the process configuration if omitted
            clock: Source of the current time
            metrics: Optional metrics collector
        """
        config = config or get_config()
        return cls(
            subject,
            gateway,
            gateway,
            create_key_value_store(config.cache),
            config=config,
            clock=clock,
            metrics=metrics,
        )

    async def dashboard(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[ClubDashboard] | DashboardView[LeagueDashboard]:
        """The dashboard for the subject's role."""
        return await self.dashboards.dashboard(force_refresh, accept_stale)

    async def club_leagues(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[LeagueList]:
        """League directory with its counters."""
        return await self.dashboards.club_leagues(force_refresh, accept_stale)

    def invitations_key(self, query: InvitationQuery) -> str:
        """Cache key of one filtered invitation page."""
        return self.subject.cache_key(INVITATIONS_NAMESPACE, query.as_params())

    async def list_invitations(
        self,
        query: InvitationQuery | None = None,
        force_refresh: bool = False,
        accept_stale: bool = False,
    ) -> tuple[InvitationPage, FetchResult[dict[str, Any]]]:
        """Fetch one invitation page and merge it into the working list.

        Returns:
            The page and the fetch metadata (origin, stored_at)
        """
        query = query or InvitationQuery()

        async def loader() -> dict[str, Any]:
            page = await self._invitation_gateway.list_invitations(query)
            return InvitationPageModel.from_page(page).model_dump(mode="json")

        result: FetchResult[dict[str, Any]] = await self.coordinator.load(
            self.invitations_key(query),
            loader,
            force_refresh=force_refresh,
            accept_stale=accept_stale,
        )
        page = InvitationPageModel.model_validate(result.payload).to_page()
        self.invitations.merge(page.invitations)
        return page, result

    async def find_invitation(self, invitation_id: int) -> Invitation:
        """Locate an invitation, paging through the unfiltered listing if needed.

        Raises:
            NotFoundError: If no page contains the invitation
        """
        current = self.invitations.get(invitation_id)
        if current is not None:
            return current

        query = InvitationQuery()
        while True:
            page, _ = await self.list_invitations(query)
            current = self.invitations.get(invitation_id)
            if current is not None:
                return current
            if not page.has_more:
                raise NotFoundError("Invitation", invitation_id)
            query = query.next_page()

    async def transition(
        self, invitation_id: int, action: InvitationAction | str
    ) -> Invitation:
        """Apply a workflow action to an invitation of the subject."""
        await self.find_invitation(invitation_id)
        return await self.workflow.transition(invitation_id, action)

    def invalidate_all(self) -> int:
        """Drop every cache entry of this subject.

        Returns:
            Number of entries removed
        """
        removed = 0
        for namespace in (DASHBOARD_NAMESPACE, LEAGUES_NAMESPACE, INVITATIONS_NAMESPACE):
            removed += self.cache_store.invalidate_prefix(self.subject.cache_prefix(namespace))
        return removed

    async def close(self) -> None:
        """Wait for in-flight loads so their results reach the cache."""
        await self.coordinator.drain()
