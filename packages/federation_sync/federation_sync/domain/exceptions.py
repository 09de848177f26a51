"""Domain-specific exceptions for federation-sync.

This module defines the exception hierarchy for the synchronization and
workflow core. Local validation failures, remote failures and cache
persistence failures live in separate branches so callers can tell a UI bug
from a flaky network from a damaged local store.
"""

from typing import Any


class FederationSyncError(Exception):
    """Base exception for all federation-sync errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code for programmatic handling
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class DomainError(FederationSyncError):
    """Base class for domain-layer errors."""

    pass


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        """
        Initialize validation error.

        Args:
            message: Validation error message
            field: Field that failed validation
            **kwargs: Additional error details
        """
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class NotFoundError(DomainError):
    """Raised when a requested entity is not found."""

    def __init__(self, resource_type: str, resource_id: str | int, **kwargs: Any) -> None:
        """
        Initialize not found error.

        Args:
            resource_type: Type of entity (e.g., "Invitation", "Club")
            resource_id: Identifier of the missing entity
            **kwargs: Additional error details
        """
        message = f"{resource_type} with id '{resource_id}' not found"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="NOT_FOUND", details=details)


class ConflictError(DomainError):
    """Raised when an operation conflicts with existing state."""

    def __init__(
        self, message: str, conflicting_resource: str | None = None, **kwargs: Any
    ) -> None:
        """
        Initialize conflict error.

        Args:
            message: Conflict description
            conflicting_resource: Identifier of conflicting resource
            **kwargs: Additional error details
        """
        details = kwargs.pop("details", {})
        if conflicting_resource:
            details["conflicting_resource"] = conflicting_resource
        super().__init__(
            message, error_code=kwargs.pop("error_code", "CONFLICT"), details=details
        )


class IllegalTransitionError(DomainError):
    """Raised when a workflow transition is not permitted.

    Detected locally before any remote call. A correctly rendered view only
    offers permitted actions, so this signals a caller bug.
    """

    def __init__(
        self,
        invitation_id: int | str,
        status: str,
        direction: str,
        action: str,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize illegal transition error.

        Args:
            invitation_id: Invitation the transition was requested for
            status: Current status of the invitation
            direction: Direction relative to the caller (sent/received)
            action: Requested action
            reason: Why the transition is refused, if not the transition table
            **kwargs: Additional error details
        """
        message = f"Cannot {action} invitation '{invitation_id}': " + (
            reason or f"not permitted for a {direction} invitation in status '{status}'"
        )
        details = {
            "invitation_id": invitation_id,
            "status": status,
            "direction": direction,
            "action": action,
            **kwargs.pop("details", {}),
        }
        if reason:
            details["reason"] = reason
        super().__init__(message, error_code="ILLEGAL_TRANSITION", details=details)
        self.invitation_id = invitation_id
        self.status = status
        self.direction = direction
        self.action = action


class TransitionConflictError(ConflictError):
    """Raised when the remote system refuses a transition because its state moved on.

    The local working list is left unchanged; the caller should re-fetch.
    """

    def __init__(self, invitation_id: int | str, action: str, **kwargs: Any) -> None:
        """
        Initialize transition conflict error.

        Args:
            invitation_id: Invitation the transition was requested for
            action: Requested action
            **kwargs: Additional error details
        """
        super().__init__(
            f"Remote system rejected {action} for invitation '{invitation_id}'",
            conflicting_resource=f"invitation/{invitation_id}",
            error_code="TRANSITION_CONFLICT",
            details={"invitation_id": invitation_id, "action": action, **kwargs.pop("details", {})},
        )


class ApplicationError(FederationSyncError):
    """Base class for application-layer errors."""

    pass


class UnauthenticatedError(ApplicationError):
    """Raised when a remote call carries no valid credential.

    Never retried automatically; the caller must re-authenticate.
    """

    def __init__(self, operation: str, reason: str | None = None, **kwargs: Any) -> None:
        """
        Initialize unauthenticated error.

        Args:
            operation: Remote operation that was refused
            reason: Optional reason
            **kwargs: Additional error details
        """
        message = f"Authentication required for '{operation}'"
        if reason:
            message += f": {reason}"
        details = {"operation": operation, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="UNAUTHENTICATED", details=details)


class PermissionDeniedError(ApplicationError):
    """Raised when the authenticated subject may not perform an operation."""

    def __init__(self, operation: str, reason: str | None = None, **kwargs: Any) -> None:
        """
        Initialize permission denied error.

        Args:
            operation: Operation that was refused
            reason: Optional reason
            **kwargs: Additional error details
        """
        message = f"Permission denied for '{operation}'"
        if reason:
            message += f": {reason}"
        details = {"operation": operation, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="PERMISSION_DENIED", details=details)


class RemoteUnavailableError(ApplicationError):
    """Raised on network or server failure during a load or workflow action.

    Recoverable: local state is untouched and the caller may retry.
    """

    def __init__(self, operation: str, reason: str | None = None, **kwargs: Any) -> None:
        """
        Initialize remote unavailable error.

        Args:
            operation: Remote operation that failed
            reason: Failure reason, free of remote internals
            **kwargs: Additional error details
        """
        message = f"Remote operation '{operation}' failed"
        if reason:
            message += f": {reason}"
        details = {"operation": operation, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="REMOTE_UNAVAILABLE", details=details)


class InfrastructureError(FederationSyncError):
    """Base class for infrastructure-layer errors."""

    pass


class CacheStorageError(InfrastructureError):
    """Raised when the local key-value store cannot complete an operation.

    The cache store absorbs this error and degrades to operating without cache.
    """

    def __init__(
        self,
        operation: str,
        key: str | None = None,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize cache storage error.

        Args:
            operation: Storage operation that failed (get, set, delete, keys)
            key: Affected key, if applicable
            reason: Failure reason
            **kwargs: Additional error details
        """
        message = f"Cache storage operation '{operation}' failed"
        if key:
            message += f" for key '{key}'"
        if reason:
            message += f": {reason}"
        details = {
            "operation": operation,
            "key": key,
            "reason": reason,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="CACHE_STORAGE_ERROR", details=details)


class CorruptCacheEntryError(InfrastructureError):
    """Raised when a persisted cache record cannot be decoded.

    Handled by the cache store as a miss; logged, never surfaced.
    """

    def __init__(self, key: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize corrupt cache entry error.

        Args:
            key: Key of the corrupt record
            reason: Decoding failure reason
            **kwargs: Additional error details
        """
        details = {"key": key, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(
            f"Cache entry '{key}' is corrupt: {reason}",
            error_code="CORRUPT_CACHE_ENTRY",
            details=details,
        )


class ConfigurationError(InfrastructureError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize configuration error.

        Args:
            config_key: Configuration key that has issues
            reason: Reason for configuration error
            **kwargs: Additional error details
        """
        message = f"Configuration error for '{config_key}': {reason}"
        details = {
            "config_key": config_key,
            "reason": reason,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details)
