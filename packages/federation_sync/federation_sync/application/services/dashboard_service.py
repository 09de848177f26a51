"""Role-specific dashboard aggregation.

Each view is one remote loader composed from the directory and invitation
gateways and fetched through the coordinator under a key derived from the
subject, so repeated visits within the TTL cost no remote calls and two
subjects never see each other's aggregates.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from federation_sync.application.events import INVITATION_TRANSITIONED, Event, EventBus
from federation_sync.application.models import (
    ClubDashboard,
    ClubDashboardStats,
    ClubSummary,
    InvitationSummary,
    LeagueDashboard,
    LeagueDashboardStats,
    LeagueList,
    LeagueListStats,
    LeagueSummary,
    MemberSummary,
    SportSummary,
)
from federation_sync.application.services.fetch_coordinator import FetchCoordinator, FetchResult
from federation_sync.domain.entities import Subject
from federation_sync.domain.enums import InvitationStatus, ReadOrigin, SubjectRole
from federation_sync.domain.exceptions import PermissionDeniedError
from federation_sync.domain.interfaces import (
    DirectoryGateway,
    InvitationGateway,
    InvitationQuery,
    Record,
)
from federation_sync.infrastructure.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

DASHBOARD_NAMESPACE = "dashboard"
LEAGUES_NAMESPACE = "leagues"
INVITATIONS_NAMESPACE = "invitations"

RECENT_CLUB_MEMBERS = 5
CLUB_DASHBOARD_LEAGUES = 3
RECENT_LEAGUE_ITEMS = 6

_CLUB_ROLES = frozenset({SubjectRole.CLUB, SubjectRole.SUPER_ADMIN})
_LEAGUE_ROLES = frozenset({SubjectRole.LEAGUE, SubjectRole.SUPER_ADMIN})


@dataclass(frozen=True)
class DashboardView(Generic[M]):
    """An aggregate together with where it came from."""

    data: M
    origin: ReadOrigin
    stored_at: datetime

    @property
    def stale(self) -> bool:
        """True if a stale cached aggregate was served on request."""
        return self.origin is ReadOrigin.STALE_CACHE


def _is_active(record: Record) -> bool:
    return record.get("status") == "active"


def _parse_time(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def club_stats(members: list[Record]) -> ClubDashboardStats:
    """Member counters of a club."""
    return ClubDashboardStats(
        total_members=len(members),
        active_members=sum(1 for m in members if _is_active(m)),
        male_members=sum(1 for m in members if m.get("gender") == "male"),
        female_members=sum(1 for m in members if m.get("gender") == "female"),
    )


def clubs_created_since(clubs: list[Record], since: datetime) -> int:
    """Number of clubs whose ``created_at`` is at or after ``since``."""
    count = 0
    for club in clubs:
        created = _parse_time(club.get("created_at"))
        if created is None:
            continue
        if created.tzinfo is None:
            created = created.replace(tzinfo=since.tzinfo)
        if created >= since:
            count += 1
    return count


def league_list_stats(leagues: list[Record]) -> LeagueListStats:
    """Counters of the league directory."""
    return LeagueListStats(
        total_leagues=len(leagues),
        active_leagues=sum(1 for league in leagues if league.get("status") == "active"),
        inactive_leagues=sum(1 for league in leagues if league.get("status") == "inactive"),
        provinces=len({league["province"] for league in leagues if league.get("province")}),
    )


class DashboardService:
    """Builds and caches the dashboards of one subject.

    Subscribed to ``invitation.transitioned``: a committed transition changes
    the pending and sent counters, so the subject's dashboard and invitation
    entries are dropped.
    """

    def __init__(
        self,
        subject: Subject,
        coordinator: FetchCoordinator,
        directory: DirectoryGateway,
        invitations: InvitationGateway,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize the dashboard service.

        Args:
            subject: Authenticated subject the dashboards belong to
            coordinator: Fetch coordinator used for every view
            directory: Remote directory listings
            invitations: Remote invitation listing
            event_bus: Bus to subscribe to for invitation transitions
        """
        self._subject = subject
        self._coordinator = coordinator
        self._directory = directory
        self._invitations = invitations
        if event_bus is not None:
            event_bus.subscribe(INVITATION_TRANSITIONED, self)

    @property
    def subject(self) -> Subject:
        """Subject the dashboards belong to."""
        return self._subject

    def club_dashboard_key(self) -> str:
        """Cache key of the club dashboard."""
        return self._subject.cache_key(DASHBOARD_NAMESPACE, {"view": "club"})

    def league_dashboard_key(self) -> str:
        """Cache key of the league dashboard."""
        return self._subject.cache_key(DASHBOARD_NAMESPACE, {"view": "league"})

    def leagues_key(self) -> str:
        """Cache key of the league directory."""
        return self._subject.cache_key(LEAGUES_NAMESPACE)

    async def dashboard(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[ClubDashboard] | DashboardView[LeagueDashboard]:
        """The dashboard matching the subject's role.

        Raises:
            PermissionDeniedError: For roles without a dashboard
        """
        if self._subject.role is SubjectRole.CLUB:
            return await self.club_dashboard(force_refresh, accept_stale)
        if self._subject.role in _LEAGUE_ROLES:
            return await self.league_dashboard(force_refresh, accept_stale)
        raise PermissionDeniedError("dashboard", f"role '{self._subject.role.value}' has none")

    async def club_dashboard(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[ClubDashboard]:
        """Club dashboard: the subject's club, its member counters and leagues.

        Raises:
            PermissionDeniedError: Unless the subject is a club or super admin
        """
        self._require(_CLUB_ROLES, "club dashboard")
        return await self._view(
            self.club_dashboard_key(),
            self._load_club_dashboard,
            ClubDashboard,
            force_refresh,
            accept_stale,
        )

    async def league_dashboard(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[LeagueDashboard]:
        """League dashboard: clubs, members, sports and invitation counters.

        Raises:
            PermissionDeniedError: Unless the subject is a league or super admin
        """
        self._require(_LEAGUE_ROLES, "league dashboard")
        return await self._view(
            self.league_dashboard_key(),
            self._load_league_dashboard,
            LeagueDashboard,
            force_refresh,
            accept_stale,
        )

    async def club_leagues(
        self, force_refresh: bool = False, accept_stale: bool = False
    ) -> DashboardView[LeagueList]:
        """League directory with active, inactive and province counters."""
        return await self._view(
            self.leagues_key(), self._load_leagues, LeagueList, force_refresh, accept_stale
        )

    def invalidate(self) -> int:
        """Drop the subject's dashboard and invitation entries.

        Returns:
            Number of entries removed
        """
        store = self._coordinator.cache_store
        return store.invalidate_prefix(
            self._subject.cache_prefix(DASHBOARD_NAMESPACE)
        ) + store.invalidate_prefix(self._subject.cache_prefix(INVITATIONS_NAMESPACE))

    async def handle(self, event: Event) -> None:
        """Invalidate dependent aggregates after a committed transition."""
        removed = self.invalidate()
        logger.info(
            "Invalidated invitation-dependent cache entries",
            extra={
                "event_type": event.event_type,
                "invitation_id": event.data.get("invitation_id"),
                "removed": removed,
            },
        )

    def _require(self, roles: frozenset[SubjectRole], view: str) -> None:
        if self._subject.role not in roles:
            raise PermissionDeniedError(
                view, f"not available to role '{self._subject.role.value}'"
            )

    async def _view(
        self,
        key: str,
        build: Callable[[], Awaitable[M]],
        model: type[M],
        force_refresh: bool,
        accept_stale: bool,
    ) -> DashboardView[M]:
        async def loader() -> dict[str, Any]:
            return (await build()).model_dump(mode="json")

        result: FetchResult[dict[str, Any]] = await self._coordinator.load(
            key, loader, force_refresh=force_refresh, accept_stale=accept_stale
        )
        try:
            data = model.model_validate(result.payload)
        except ModelValidationError as e:
            if not result.from_cache:
                raise
            # Cached under an older shape; drop it and load again.
            logger.warning(
                "Discarding cached aggregate with unexpected shape",
                extra={"key": key, "errors": e.error_count()},
            )
            self._coordinator.cache_store.invalidate(key)
            result = await self._coordinator.load(key, loader, force_refresh=True)
            data = model.model_validate(result.payload)
        return DashboardView(data=data, origin=result.origin, stored_at=result.stored_at)

    async def _load_club_dashboard(self) -> ClubDashboard:
        club: Record | None = None
        members: list[Record] = []

        if self._subject.role is SubjectRole.CLUB:
            clubs = await self._directory.list_clubs()
            club = next((c for c in clubs if self._subject.owns(c.get("user_id"))), None)
            if club is not None:
                members = await self._directory.list_members(club_id=club["id"])
        else:
            members = await self._directory.list_members()

        leagues = await self._directory.list_leagues()
        return ClubDashboard(
            club=ClubSummary.model_validate(club) if club is not None else None,
            stats=club_stats(members),
            recent_members=[
                MemberSummary.model_validate(m) for m in members[:RECENT_CLUB_MEMBERS]
            ],
            leagues=[
                LeagueSummary.model_validate(lg) for lg in leagues[:CLUB_DASHBOARD_LEAGUES]
            ],
        )

    async def _load_league_dashboard(self) -> LeagueDashboard:
        league: Record | None = None
        clubs: list[Record] = []
        members: list[Record] = []

        if self._subject.role is SubjectRole.LEAGUE:
            leagues = await self._directory.list_leagues()
            league = next((lg for lg in leagues if self._subject.owns(lg.get("user_id"))), None)
            if league is not None:
                clubs = await self._directory.list_clubs(league_id=league["id"])
                if clubs:
                    members = await self._directory.list_members(
                        club_ids=[c["id"] for c in clubs]
                    )
        else:
            clubs = await self._directory.list_clubs()
            members = await self._directory.list_members()

        sports = await self._directory.list_sports()
        invitations = (await self._invitations.list_invitations(InvitationQuery())).invitations

        now = self._coordinator.cache_store.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        stats = LeagueDashboardStats(
            total_clubs=len(clubs),
            active_clubs=sum(1 for c in clubs if _is_active(c)),
            total_members=len(members),
            active_members=sum(1 for m in members if _is_active(m)),
            total_sports=len(sports),
            pending_invitations=sum(
                1 for i in invitations if i.status is InvitationStatus.PENDING
            ),
            sent_invitations=sum(1 for i in invitations if i.is_sender),
            growth_this_month=clubs_created_since(clubs, month_start),
            average_members_per_club=_round_half_up(len(members) / len(clubs)) if clubs else 0,
        )
        return LeagueDashboard(
            league=LeagueSummary.model_validate(league) if league is not None else None,
            stats=stats,
            recent_clubs=[ClubSummary.model_validate(c) for c in clubs[:RECENT_LEAGUE_ITEMS]],
            recent_members=[
                MemberSummary.model_validate(m) for m in members[:RECENT_LEAGUE_ITEMS]
            ],
            recent_invitations=[
                InvitationSummary(
                    id=i.id,
                    status=i.status.value,
                    direction=i.direction.value,
                    counterparty_name=i.counterparty_name,
                    created_at=i.created_at,
                )
                for i in invitations[:RECENT_LEAGUE_ITEMS]
            ],
            sports=[SportSummary.model_validate(s) for s in sports],
        )

    async def _load_leagues(self) -> LeagueList:
        leagues = await self._directory.list_leagues()
        return LeagueList(
            leagues=[LeagueSummary.model_validate(lg) for lg in leagues],
            stats=league_list_stats(leagues),
        )
