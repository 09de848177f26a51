"""Async HTTP client for the federation REST API."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from federation_sdk.models import (
    ApiEnvelope,
    ClubRecord,
    InvitationRecord,
    LeagueRecord,
    MemberRecord,
    Page,
    SportRecord,
)

R = TypeVar("R", bound=BaseModel)


def _default_headers() -> dict[str, str]:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "X-Requested-With": "XMLHttpRequest",
    }


@dataclass
class ApiClientConfig:
    """Configuration for FederationApiClient.

    Attributes:
        base_url: Backend base URL
        timeout: Request timeout in seconds
        token: Bearer token; requests are refused locally without one
        headers: Headers sent with every request
    """

    base_url: str = "http://localhost:8000"
    timeout: float = 10.0
    token: str | None = None
    headers: dict[str, str] = field(default_factory=_default_headers)


class FederationApiError(Exception):
    """Base error of the federation SDK."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Error message
            status_code: HTTP status code, if a response was received
            endpoint: Request path
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint


class AuthenticationError(FederationApiError):
    """Raised when no token is configured or the backend answers 401."""


class PermissionDeniedError(FederationApiError):
    """Raised when the backend answers 403."""


class NotFoundError(FederationApiError):
    """Raised when the backend answers 404."""


class ConflictError(FederationApiError):
    """Raised when the backend answers 409 or 422."""


class ApiUnavailableError(FederationApiError):
    """Raised on transport failures, 429 and 5xx responses."""


class ApiResponseError(FederationApiError):
    """Raised for malformed or unexpected response bodies."""


class RequestRefusedError(ApiResponseError):
    """Raised when the backend answers with a ``status: error`` envelope."""


_STATUS_ERRORS: dict[int, type[FederationApiError]] = {
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    422: ConflictError,
    429: ApiUnavailableError,
}


class FederationApiClient:
    """Client for the federation backend.

    Use as an async context manager, or call ``close`` when done::

        async with FederationApiClient(ApiClientConfig(token=token)) as client:
            page = await client.list_invitations({"status": "pending"})
    """

    def __init__(
        self,
        config: ApiClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self._config = config or ApiClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ApiClientConfig:
        """Client configuration."""
        return self._config

    async def __aenter__(self) -> FederationApiClient:
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers=self._config.headers,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the ``data`` member of the envelope.

        Args:
            method: HTTP method
            path: Request path, e.g. ``/api/clubs``
            params: Query parameters

        Returns:
            Envelope data, or the whole body for endpoints without an envelope

        Raises:
            AuthenticationError: If no token is configured, or on 401
            PermissionDeniedError: On 403
            NotFoundError: On 404
            ConflictError: On 409 or 422
            ApiUnavailableError: On transport errors, 429 and 5xx
            ApiResponseError: On malformed bodies
            RequestRefusedError: On ``status: error`` envelopes
        """
        if not self._config.token:
            raise AuthenticationError("No API token configured", endpoint=path)

        client = self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                headers={"Authorization": f"Bearer {self._config.token}"},
            )
        except httpx.TransportError as e:
            raise ApiUnavailableError(
                f"{type(e).__name__} while calling {path}", endpoint=path
            ) from e

        if response.status_code >= 400:
            raise self._status_error(response, path)

        try:
            body = response.json()
        except ValueError as e:
            raise ApiResponseError(
                "Response body is not JSON", status_code=response.status_code, endpoint=path
            ) from e

        if isinstance(body, dict) and "status" in body:
            try:
                envelope = ApiEnvelope.model_validate(body)
            except ModelValidationError as e:
                raise ApiResponseError(
                    "Malformed response envelope",
                    status_code=response.status_code,
                    endpoint=path,
                ) from e
            if not envelope.ok:
                raise RequestRefusedError(
                    envelope.message or "Request failed",
                    status_code=response.status_code,
                    endpoint=path,
                )
            return envelope.data
        return body

    @staticmethod
    def _status_error(response: httpx.Response, path: str) -> FederationApiError:
        message = f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            message = body["message"]

        if response.status_code >= 500:
            error_class: type[FederationApiError] = ApiUnavailableError
        else:
            error_class = _STATUS_ERRORS.get(response.status_code, ApiResponseError)
        return error_class(message, status_code=response.status_code, endpoint=path)

    @staticmethod
    def _page(data: Any, model: type[R], path: str) -> Page[R]:
        # Collections come either paginated or as a bare list.
        try:
            if isinstance(data, list):
                items = [model.model_validate(item) for item in data]
                return Page[model](data=items, total=len(items))  # type: ignore[valid-type]
            if isinstance(data, dict):
                return Page[model].model_validate(data)  # type: ignore[valid-type]
        except ModelValidationError as e:
            raise ApiResponseError(
                f"Unexpected record shape: {e.error_count()} errors", endpoint=path
            ) from e
        raise ApiResponseError("Expected a collection", endpoint=path)

    async def _collection(
        self, path: str, model: type[R], params: dict[str, Any] | None = None
    ) -> Page[R]:
        return self._page(await self.request("GET", path, params=params), model, path)

    async def list_invitations(
        self, params: dict[str, Any] | None = None
    ) -> Page[InvitationRecord]:
        """List invitations of the authenticated user.

        Args:
            params: Filters ``page``, ``type``, ``status``, ``search``
        """
        return await self._collection("/api/invitations", InvitationRecord, params)

    async def _invitation_action(self, invitation_id: int, action: str) -> dict[str, Any] | None:
        data = await self.request("POST", f"/api/invitations/{invitation_id}/{action}")
        return data if isinstance(data, dict) else None

    async def accept_invitation(self, invitation_id: int) -> dict[str, Any] | None:
        """Accept a received invitation; returns the response data, if any."""
        return await self._invitation_action(invitation_id, "accept")

    async def reject_invitation(self, invitation_id: int) -> dict[str, Any] | None:
        """Reject a received invitation; returns the response data, if any."""
        return await self._invitation_action(invitation_id, "reject")

    async def cancel_invitation(self, invitation_id: int) -> dict[str, Any] | None:
        """Cancel a sent invitation; returns the response data, if any."""
        return await self._invitation_action(invitation_id, "cancel")

    async def list_clubs(self, league_id: int | None = None) -> list[ClubRecord]:
        """List clubs, optionally of one league."""
        params = {"league_id": league_id} if league_id is not None else None
        return (await self._collection("/api/clubs", ClubRecord, params)).data

    async def list_members(
        self,
        club_id: int | None = None,
        club_ids: Sequence[int] | None = None,
    ) -> list[MemberRecord]:
        """List members of one club, of several clubs, or all visible members."""
        params: dict[str, Any] = {}
        if club_id is not None:
            params["club_id"] = club_id
        if club_ids:
            params["club_ids"] = ",".join(str(i) for i in club_ids)
        return (await self._collection("/api/members", MemberRecord, params or None)).data

    async def list_leagues(self) -> list[LeagueRecord]:
        """List leagues."""
        return (await self._collection("/api/leagues", LeagueRecord)).data

    async def list_sports(self) -> list[SportRecord]:
        """List sports."""
        return (await self._collection("/api/sports", SportRecord)).data
