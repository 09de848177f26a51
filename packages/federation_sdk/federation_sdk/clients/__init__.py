"""Client implementations for the federation SDK."""

from __future__ import annotations

from .api_client import (
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

__all__ = [
    "ApiClientConfig",
    "ApiResponseError",
    "ApiUnavailableError",
    "AuthenticationError",
    "ConflictError",
    "FederationApiClient",
    "FederationApiError",
    "NotFoundError",
    "PermissionDeniedError",
    "RequestRefusedError",
]
