"""Retry policy layered on top of the core.

Nothing inside the cache, coordinator or workflow engine retries. Callers that
want to ride out a flaky backend wrap their calls with ``with_retry`` or
``retry_call``; only ``RemoteUnavailableError`` is retried by default, so an
unauthenticated or illegal request fails immediately.
"""

from __future__ import annotations

import asyncio
import functools
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, Field

from federation_sync.domain.exceptions import ApplicationError, RemoteUnavailableError
from federation_sync.infrastructure.logging import get_logger

if TYPE_CHECKING:
    from federation_sync.config.config import RetryConfig as RetrySettings

logger = get_logger(__name__)

T = TypeVar("T")
AsyncFunc = TypeVar("AsyncFunc", bound=Callable[..., Any])


class RetryStrategy(str, Enum):
    """Retry strategies for error recovery."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    CONSTANT = "constant"


class RetryConfig(BaseModel):
    """Configuration for retry behavior."""

    max_attempts: int = Field(default=3, ge=1, description="Maximum attempts, first one included")
    initial_delay: float = Field(default=1.0, gt=0, description="Initial delay in seconds")
    max_delay: float = Field(default=10.0, gt=0, description="Maximum delay in seconds")
    strategy: RetryStrategy = Field(default=RetryStrategy.EXPONENTIAL, description="Retry strategy")
    jitter: bool = Field(default=True, description="Add jitter to retry delays")
    retryable_exceptions: tuple[type[Exception], ...] = Field(
        default=(RemoteUnavailableError,),
        description="Exceptions that trigger retry",
    )

    @classmethod
    def from_settings(cls, settings: RetrySettings, **overrides: Any) -> RetryConfig:
        """Build a retry policy from the ``retries`` configuration section."""
        values: dict[str, Any] = {
            "max_attempts": settings.max_attempts,
            "initial_delay": settings.initial_delay,
            "max_delay": settings.max_delay,
        }
        values.update(overrides)
        return cls(**values)


def calculate_retry_delay(
    attempt: int,
    config: RetryConfig,
) -> float:
    """Calculate delay before next retry attempt."""
    if config.strategy == RetryStrategy.CONSTANT:
        delay = config.initial_delay
    elif config.strategy == RetryStrategy.LINEAR:
        delay = config.initial_delay * attempt
    else:  # EXPONENTIAL
        delay = config.initial_delay * (2 ** (attempt - 1))

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_range = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_range, jitter_range)

    return max(0.0, delay)


async def retry_call(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation: str | None = None,
) -> T:
    """Await ``func()`` until it succeeds or the policy gives up.

    Args:
        func: Zero-argument coroutine function
        config: Retry policy
        operation: Name used in log records

    Returns:
        The first successful result

    Raises:
        Exception: The last retryable error once attempts are exhausted, or
            any non-retryable error immediately
    """
    if config is None:
        config = RetryConfig()
    name = operation or getattr(func, "__name__", "operation")

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func()
        except config.retryable_exceptions as e:
            if attempt == config.max_attempts:
                logger.error(
                    f"Max retry attempts ({config.max_attempts}) reached for {name}",
                    extra={"operation": name, "attempt": attempt, "error": str(e)},
                )
                raise

            delay = calculate_retry_delay(attempt, config)
            logger.warning(
                f"Retry attempt {attempt}/{config.max_attempts} for {name} "
                f"after {delay:.2f}s delay",
                extra={"operation": name, "attempt": attempt, "delay": delay, "error": str(e)},
            )
            await asyncio.sleep(delay)

    raise ApplicationError("Unexpected retry loop exit")


def with_retry(config: RetryConfig | None = None) -> Callable[[AsyncFunc], AsyncFunc]:
    """
    Decorator for adding retry logic to async functions.

    Example:
        @with_retry(RetryConfig(max_attempts=5))
        async def refresh_dashboard():
            return await session.dashboard(force_refresh=True)
    """

    def decorator(func: AsyncFunc) -> AsyncFunc:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await retry_call(
                lambda: func(*args, **kwargs), config, operation=func.__name__
            )

        return wrapper  # type: ignore

    return decorator
