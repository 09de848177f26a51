"""Unit tests for configuration management."""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from federation_sync.config import CacheBackend, SyncConfig, get_config, reload_config
from pydantic import ValidationError


class TestSyncConfig:
    """Test configuration functionality."""

    def test_default_configuration(self) -> None:
        """Test that default configuration values are loaded correctly."""
        config = SyncConfig()

        assert config.cache.ttl_seconds == 300
        assert config.cache.backend == CacheBackend.MEMORY
        assert config.cache.memory_capacity == 1000
        assert config.cache_ttl == timedelta(minutes=5)

        assert config.api.base_url == "http://localhost:8000"
        assert config.api.timeout_seconds == 10.0
        assert config.api.token is None

        assert config.retries.max_attempts == 3
        assert config.retries.initial_delay == 1.0
        assert config.retries.max_delay == 10.0

        assert config.logging.level == "INFO"
        assert config.logging.json_format is False

    def test_environment_variable_override(self) -> None:
        """Test that environment variables override defaults."""
        env_vars = {
            "FEDERATION_SYNC_CACHE__TTL_SECONDS": "60",
            "FEDERATION_SYNC_CACHE__BACKEND": "file",
            "FEDERATION_SYNC_API__BASE_URL": "https://federation.example.org",
            "FEDERATION_SYNC_API__TOKEN": "secret",
            "FEDERATION_SYNC_RETRIES__MAX_ATTEMPTS": "5",
        }

        with patch.dict(os.environ, env_vars):
            config = SyncConfig()

        assert config.cache.ttl_seconds == 60
        assert config.cache.backend == CacheBackend.FILE
        assert config.cache_ttl == timedelta(seconds=60)
        assert config.api.base_url == "https://federation.example.org"
        assert config.api.token == "secret"
        assert config.retries.max_attempts == 5

    def test_validation_constraints(self) -> None:
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            SyncConfig(cache={"ttl_seconds": 0})

        with pytest.raises(ValidationError):
            SyncConfig(api={"timeout_seconds": -1})

        with pytest.raises(ValidationError):
            SyncConfig(retries={"max_attempts": 0})

    def test_get_config_singleton(self) -> None:
        """Test that get_config returns the same instance until reloaded."""
        reload_config()
        first = get_config()

        assert get_config() is first

        with patch.dict(os.environ, {"FEDERATION_SYNC_CACHE__TTL_SECONDS": "120"}):
            reloaded = reload_config()

        assert reloaded is not first
        assert reloaded.cache.ttl_seconds == 120
        reload_config()
