"""Main entry point for the federation CLI."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import typer

from federation_sdk import ApiClientConfig, FederationApiClient
from federation_sync import __version__
from federation_sync.application.error_handling import RetryConfig, retry_call
from federation_sync.application.models import InvitationModel
from federation_sync.application.session import FederationSession
from federation_sync.config import get_config
from federation_sync.domain.entities import Invitation, Subject
from federation_sync.domain.enums import InvitationAction, SubjectRole
from federation_sync.domain.exceptions import FederationSyncError, IllegalTransitionError
from federation_sync.domain.interfaces import InvitationQuery
from federation_sync.infrastructure.gateways import HttpFederationGateway
from federation_sync.infrastructure.logging import LoggingConfig, setup_logging

EXIT_ERROR = 1
EXIT_ILLEGAL_TRANSITION = 2

app = typer.Typer(help="Federation dashboard client: cached views and invitation workflow.")
invitations_app = typer.Typer(help="List and answer invitations.")
cache_app = typer.Typer(help="Local cache maintenance.")
app.add_typer(invitations_app, name="invitations")
app.add_typer(cache_app, name="cache")


@dataclass
class CliOptions:
    """Options shared by every command."""

    identity: str | None = None
    role: str | None = None
    token: str | None = None
    base_url: str | None = None
    retries: int = 1

    def subject(self) -> Subject:
        """The subject to act as."""
        if not self.identity or not self.role:
            raise typer.BadParameter("--identity and --role are required for this command")
        try:
            role = SubjectRole(self.role)
        except ValueError as e:
            choices = ", ".join(r.value for r in SubjectRole)
            raise typer.BadParameter(f"--role must be one of: {choices}") from e
        return Subject(identity=self.identity, role=role)


@asynccontextmanager
async def open_session(options: CliOptions) -> AsyncIterator[FederationSession]:
    """Open an HTTP-backed session for the configured subject."""
    config = get_config()
    client_config = ApiClientConfig(
        base_url=options.base_url or config.api.base_url,
        timeout=config.api.timeout_seconds,
        token=options.token or config.api.token,
    )
    async with FederationApiClient(client_config) as client:
        session = FederationSession.from_config(
            options.subject(), HttpFederationGateway(client), config
        )
        try:
            yield session
        finally:
            await session.close()


def _invitation_json(session: FederationSession, invitation: Invitation) -> dict[str, Any]:
    data = InvitationModel.from_entity(invitation).model_dump(mode="json")
    data["actions"] = sorted(a.value for a in session.workflow.available_actions(invitation))
    return data


def _execute(
    ctx: typer.Context,
    name: str,
    operation: Callable[[FederationSession], Awaitable[Any]],
) -> None:
    options: CliOptions = ctx.obj or CliOptions()
    retry = RetryConfig.from_settings(get_config().retries, max_attempts=options.retries)

    async def run() -> Any:
        async with open_session(options) as session:
            if retry.max_attempts > 1:
                return await retry_call(lambda: operation(session), retry, operation=name)
            return await operation(session)

    try:
        result = asyncio.run(run())
    except IllegalTransitionError as e:
        typer.echo(f"{e.error_code}: {e.message}", err=True)
        raise typer.Exit(EXIT_ILLEGAL_TRANSITION) from e
    except FederationSyncError as e:
        typer.echo(f"{e.error_code}: {e.message}", err=True)
        raise typer.Exit(EXIT_ERROR) from e

    typer.echo(json.dumps(result, indent=2, default=str))


@app.callback()
def main(
    ctx: typer.Context,
    identity: str = typer.Option(None, "--identity", envvar="FEDERATION_IDENTITY", help="User id"),
    role: str = typer.Option(
        None, "--role", envvar="FEDERATION_ROLE", help="super_admin, liga, club or miembro"
    ),
    token: str = typer.Option(None, "--token", envvar="FEDERATION_TOKEN", help="API token"),
    base_url: str = typer.Option(None, "--base-url", help="Backend base URL"),
    retries: int = typer.Option(1, "--retries", min=1, help="Attempts for remote calls"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Federation dashboard client."""
    config = get_config()
    setup_logging(
        LoggingConfig(
            level="DEBUG" if verbose else config.logging.level,
            json_format=config.logging.json_format,
        )
    )
    ctx.obj = CliOptions(
        identity=identity, role=role, token=token, base_url=base_url, retries=retries
    )


@app.command()
def version() -> None:
    """Show the federation CLI version."""
    typer.echo(f"federation CLI version {__version__}")


@app.command()
def dashboard(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the cache"),
    stale_ok: bool = typer.Option(False, "--stale-ok", help="Serve a stale cached dashboard"),
) -> None:
    """Show the dashboard for the subject's role."""

    async def operation(session: FederationSession) -> dict[str, Any]:
        view = await session.dashboard(force_refresh=refresh, accept_stale=stale_ok)
        return {
            "origin": view.origin.value,
            "stored_at": view.stored_at.isoformat(),
            "data": view.data.model_dump(mode="json"),
        }

    _execute(ctx, "dashboard", operation)


@app.command()
def leagues(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the cache"),
) -> None:
    """List leagues with active, inactive and province counters."""

    async def operation(session: FederationSession) -> dict[str, Any]:
        view = await session.club_leagues(force_refresh=refresh)
        return {
            "origin": view.origin.value,
            "stored_at": view.stored_at.isoformat(),
            "data": view.data.model_dump(mode="json"),
        }

    _execute(ctx, "leagues", operation)


@invitations_app.command("list")
def list_invitations(
    ctx: typer.Context,
    type_: str = typer.Option(None, "--type", help="sent, received or all"),
    status: str = typer.Option(None, "--status", help="Invitation status or all"),
    search: str = typer.Option(None, "--search", help="Free-text search"),
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the cache"),
) -> None:
    """List invitations with the actions available on each."""
    query = InvitationQuery(type=type_, status=status, search=search, page=page)

    async def operation(session: FederationSession) -> dict[str, Any]:
        result_page, result = await session.list_invitations(query, force_refresh=refresh)
        return {
            "origin": result.origin.value,
            "page": result_page.current_page,
            "last_page": result_page.last_page,
            "total": result_page.total,
            "invitations": [_invitation_json(session, i) for i in result_page.invitations],
        }

    _execute(ctx, "list_invitations", operation)


def _transition_command(ctx: typer.Context, invitation_id: int, action: InvitationAction) -> None:
    async def operation(session: FederationSession) -> dict[str, Any]:
        invitation = await session.transition(invitation_id, action)
        return _invitation_json(session, invitation)

    _execute(ctx, f"{action.value}_invitation", operation)


@invitations_app.command("accept")
def accept_invitation(ctx: typer.Context, invitation_id: int = typer.Argument(...)) -> None:
    """Accept a received invitation."""
    _transition_command(ctx, invitation_id, InvitationAction.ACCEPT)


@invitations_app.command("reject")
def reject_invitation(ctx: typer.Context, invitation_id: int = typer.Argument(...)) -> None:
    """Reject a received invitation."""
    _transition_command(ctx, invitation_id, InvitationAction.REJECT)


@invitations_app.command("cancel")
def cancel_invitation(ctx: typer.Context, invitation_id: int = typer.Argument(...)) -> None:
    """Cancel a sent invitation."""
    _transition_command(ctx, invitation_id, InvitationAction.CANCEL)


@cache_app.command("clear")
def clear_cache(
    ctx: typer.Context,
    all_subjects: bool = typer.Option(False, "--all", help="Clear every subject's entries"),
) -> None:
    """Remove cached entries of the subject, or of everyone with --all."""

    async def operation(session: FederationSession) -> dict[str, Any]:
        removed = session.cache_store.clear() if all_subjects else session.invalidate_all()
        return {"removed": removed}

    _execute(ctx, "clear_cache", operation)


if __name__ == "__main__":
    app()
