"""Tests for CLI main module."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from federation_cli import main as cli
from federation_cli.main import CliOptions, app
from federation_sync.application.session import FederationSession
from federation_sync.config import SyncConfig
from federation_sync.domain.entities import Invitation
from federation_sync.domain.enums import InvitationDirection, InvitationStatus
from federation_sync.domain.exceptions import RemoteUnavailableError
from federation_sync.domain.interfaces import (
    DirectoryGateway,
    InvitationGateway,
    InvitationPage,
    InvitationQuery,
    Record,
)
from federation_sync.infrastructure.storage import MemoryKeyValueStore
from typer.testing import CliRunner

runner = CliRunner()

CLUB_ARGS = ["--identity", "100", "--role", "club"]


class StubInvitations(InvitationGateway):
    """Invitation endpoints over a fixed list."""

    def __init__(self) -> None:
        created = datetime(2024, 5, 10, tzinfo=UTC)
        pending = InvitationStatus.PENDING
        self.invitations = [
            Invitation(7, pending, InvitationDirection.RECEIVED, "Liga A", created),
            Invitation(42, pending, InvitationDirection.SENT, "Liga B", created),
            Invitation(
                3,
                InvitationStatus.REJECTED,
                InvitationDirection.SENT,
                "Liga C",
                created,
                responded_at=created,
            ),
        ]
        self.actions: list[tuple[str, int]] = []
        self.failures: list[Exception] = []

    async def list_invitations(self, query: InvitationQuery) -> InvitationPage:
        if self.failures:
            raise self.failures.pop(0)
        return InvitationPage(invitations=list(self.invitations), total=len(self.invitations))

    async def accept(self, invitation_id: int) -> None:
        self.actions.append(("accept", invitation_id))

    async def reject(self, invitation_id: int) -> None:
        self.actions.append(("reject", invitation_id))

    async def cancel(self, invitation_id: int) -> None:
        self.actions.append(("cancel", invitation_id))


class StubDirectory(DirectoryGateway):
    """Directory with one club and its members."""

    async def list_clubs(self, league_id: int | None = None) -> list[Record]:
        return [{"id": 10, "name": "Club Norte", "user_id": 100, "status": "active"}]

    async def list_members(
        self, club_id: int | None = None, club_ids: Sequence[int] | None = None
    ) -> list[Record]:
        return [
            {"id": 1, "name": "Ana", "gender": "female", "status": "active", "club_id": 10},
            {"id": 2, "name": "Luis", "gender": "male", "status": "inactive", "club_id": 10},
        ]

    async def list_leagues(self) -> list[Record]:
        return [{"id": 1, "name": "Liga Pichincha", "province": "Pichincha", "status": "active"}]

    async def list_sports(self) -> list[Record]:
        return []


@pytest.fixture
def invitations() -> StubInvitations:
    """Invitation endpoints shared by the CLI invocations of a test."""
    return StubInvitations()


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    """Cache backend surviving between CLI invocations of a test."""
    return MemoryKeyValueStore()


@pytest.fixture(autouse=True)
def stub_session(
    monkeypatch: pytest.MonkeyPatch,
    invitations: StubInvitations,
    backend: MemoryKeyValueStore,
) -> None:
    """Route every command to a session over stub gateways."""

    @asynccontextmanager
    async def open_session(options: CliOptions) -> AsyncIterator[FederationSession]:
        session = FederationSession(
            options.subject(), invitations, StubDirectory(), backend, config=SyncConfig()
        )
        try:
            yield session
        finally:
            await session.close()

    monkeypatch.setattr(cli, "open_session", open_session)
    monkeypatch.setattr(cli, "setup_logging", lambda config: None)


def run(*args: str) -> Any:
    return runner.invoke(app, [*CLUB_ARGS, *args])


class TestCLICommands:
    """Test basic CLI commands."""

    def test_version_command(self) -> None:
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "federation CLI version 0.1.0" in result.stdout

    def test_help_command(self) -> None:
        """Test help command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "dashboard" in result.stdout
        assert "invitations" in result.stdout
        assert "cache" in result.stdout

    def test_invalid_command(self) -> None:
        """Test invalid command."""
        result = runner.invoke(app, ["invalid"])
        assert result.exit_code != 0

    def test_subject_required(self) -> None:
        """Test that commands acting as a subject need identity and role."""
        result = runner.invoke(app, ["dashboard"])
        assert result.exit_code == 2
        assert "are required" in result.output

    def test_unknown_role(self) -> None:
        """Test that the role must be one of the backend roles."""
        result = runner.invoke(app, ["--identity", "100", "--role", "coach", "dashboard"])
        assert result.exit_code == 2
        assert "must be one of" in result.output


class TestViewCommands:
    """Test cached views."""

    def test_dashboard(self) -> None:
        """Test that the club dashboard is printed as JSON."""
        result = run("dashboard")

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["origin"] == "remote"
        assert output["data"]["club"]["name"] == "Club Norte"
        assert output["data"]["stats"]["total_members"] == 2
        assert output["data"]["stats"]["active_members"] == 1

    def test_dashboard_served_from_cache(self) -> None:
        """Test that a second invocation reads the cached dashboard."""
        run("dashboard")
        result = run("dashboard")

        assert json.loads(result.stdout)["origin"] == "fresh_cache"

    def test_dashboard_refresh(self) -> None:
        """Test that --refresh bypasses the cache."""
        run("dashboard")
        result = run("dashboard", "--refresh")

        assert json.loads(result.stdout)["origin"] == "remote"

    def test_leagues(self) -> None:
        """Test the league directory view."""
        result = run("leagues")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["stats"]["total_leagues"] == 1


class TestInvitationCommands:
    """Test invitation listing and workflow commands."""

    def test_list_shows_available_actions(self) -> None:
        """Test that each listed invitation carries its permitted actions."""
        result = run("invitations", "list")

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        actions = {i["id"]: i["actions"] for i in output["invitations"]}
        assert actions == {7: ["accept", "reject"], 42: ["cancel"], 3: []}
        assert output["total"] == 3

    def test_accept(self, invitations: StubInvitations) -> None:
        """Test accepting a received invitation."""
        result = run("invitations", "accept", "7")

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["status"] == "accepted"
        assert output["actions"] == []
        assert invitations.actions == [("accept", 7)]

    def test_cancel_sent(self, invitations: StubInvitations) -> None:
        """Test cancelling a sent invitation."""
        result = run("invitations", "cancel", "42")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["status"] == "cancelled"

    def test_illegal_transition(self, invitations: StubInvitations) -> None:
        """Test that a refused transition exits with its own code."""
        result = run("invitations", "cancel", "7")

        assert result.exit_code == cli.EXIT_ILLEGAL_TRANSITION
        assert "ILLEGAL_TRANSITION" in result.output
        assert invitations.actions == []

    def test_unknown_invitation(self) -> None:
        """Test that a missing invitation is an error."""
        result = run("invitations", "reject", "999")

        assert result.exit_code == cli.EXIT_ERROR
        assert "NOT_FOUND" in result.output

    def test_remote_unavailable(self, invitations: StubInvitations) -> None:
        """Test that a remote failure exits with an error."""
        invitations.failures.append(RemoteUnavailableError("list_invitations", "HTTP 503"))

        result = run("invitations", "list")

        assert result.exit_code == cli.EXIT_ERROR
        assert "REMOTE_UNAVAILABLE" in result.output

    def test_retries(self, invitations: StubInvitations) -> None:
        """Test that --retries rides out a transient failure."""
        invitations.failures.append(RemoteUnavailableError("list_invitations", "HTTP 503"))

        with patch(
            "federation_sync.application.error_handling.asyncio.sleep", new_callable=AsyncMock
        ):
            result = run("--retries", "2", "invitations", "list")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["total"] == 3


class TestCacheCommands:
    """Test cache maintenance."""

    def test_clear_subject_entries(self, backend: MemoryKeyValueStore) -> None:
        """Test that the subject's entries are removed."""
        run("dashboard")
        run("invitations", "list")

        result = run("cache", "clear")

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"removed": 2}
        assert len(backend) == 0

    def test_clear_all(self, backend: MemoryKeyValueStore) -> None:
        """Test that --all removes other subjects' entries too."""
        runner.invoke(app, ["--identity", "101", "--role", "club", "dashboard"])
        run("dashboard")

        result = run("cache", "clear", "--all")

        assert json.loads(result.stdout) == {"removed": 2}
