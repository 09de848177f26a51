"""Async client SDK for the federation REST API."""

from __future__ import annotations

from .clients import (
    ApiClientConfig,
    ApiResponseError,
    ApiUnavailableError,
    AuthenticationError,
    ConflictError,
    FederationApiClient,
    FederationApiError,
    NotFoundError,
    PermissionDeniedError,
    RequestRefusedError,
)
from .models import (
    ApiEnvelope,
    ClubRecord,
    InvitationRecord,
    LeagueRecord,
    MemberRecord,
    Page,
    PartyDetails,
    SportRecord,
)

__version__ = "0.1.0"

__all__ = [
    "ApiClientConfig",
    "ApiEnvelope",
    "ApiResponseError",
    "ApiUnavailableError",
    "AuthenticationError",
    "ClubRecord",
    "ConflictError",
    "FederationApiClient",
    "FederationApiError",
    "InvitationRecord",
    "LeagueRecord",
    "MemberRecord",
    "NotFoundError",
    "Page",
    "PartyDetails",
    "PermissionDeniedError",
    "RequestRefusedError",
    "SportRecord",
]
