"""Centralized configuration management for federation-sync.

This module provides a centralized configuration system that supports:
- Environment variable overrides
- Default values with validation
- Type safety using Pydantic
- Hierarchical configuration structure
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheBackend(str, Enum):
    """Available key-value backends for the cache store."""

    MEMORY = "memory"
    FILE = "file"


class CacheConfig(BaseModel):
    """Cache-related configuration."""

    ttl_seconds: int = Field(
        default=300, ge=1, le=86400, description="Time to live of a cache entry in seconds"
    )

    backend: CacheBackend = Field(
        default=CacheBackend.MEMORY, description="Key-value backend used by the cache store"
    )

    directory: Path = Field(
        default=Path.home() / ".cache" / "federation-sync",
        description="Directory for the file backend",
    )

    memory_capacity: int = Field(
        default=1000, ge=1, le=1_000_000, description="Maximum entries in the memory backend"
    )


class ApiConfig(BaseModel):
    """Remote API configuration."""

    base_url: str = Field(
        default="http://localhost:8000", description="Base URL of the federation backend"
    )

    timeout_seconds: float = Field(
        default=10.0, gt=0, le=120, description="Request timeout in seconds"
    )

    token: str | None = Field(default=None, description="Bearer token attached to requests")


class RetryConfig(BaseModel):
    """Retry policy applied by callers on top of the core."""

    max_attempts: int = Field(default=3, ge=1, le=10, description="Maximum retry attempts")

    initial_delay: float = Field(
        default=1.0, gt=0, le=10, description="Initial retry delay in seconds"
    )

    max_delay: float = Field(
        default=10.0, gt=0, le=300, description="Maximum retry delay in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Root log level")

    json_format: bool = Field(default=False, description="Emit structured JSON log lines")


class SyncConfig(BaseSettings):
    """Main configuration.

    All configuration values can be overridden using environment variables
    with the prefix FEDERATION_SYNC_ (e.g., FEDERATION_SYNC_CACHE__TTL_SECONDS).
    """

    model_config = SettingsConfigDict(
        env_prefix="FEDERATION_SYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    retries: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def cache_ttl(self) -> timedelta:
        """Get cache TTL as timedelta."""
        return timedelta(seconds=self.cache.ttl_seconds)


@lru_cache(maxsize=1)
def get_config() -> SyncConfig:
    """Get the singleton configuration instance.

    Returns:
        SyncConfig: The configuration instance
    """
    return SyncConfig()


def reload_config() -> SyncConfig:
    """Reload configuration from environment.

    This clears the cache and creates a new configuration instance.

    Returns:
        SyncConfig: The new configuration instance
    """
    get_config.cache_clear()
    return get_config()
