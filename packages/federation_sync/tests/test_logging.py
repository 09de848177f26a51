"""Tests for logging infrastructure."""

import json
import logging
import logging.handlers
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from federation_sync.infrastructure.logging import (
    LoggingConfig,
    LogLevel,
    StructuredFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    """Give the root logger back its handlers after the test."""
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in original_handlers:
            handler.close()
    root_logger.handlers = original_handlers
    root_logger.level = original_level


class TestLoggingConfig:
    """Test logging configuration."""

    def test_default_config(self) -> None:
        """Test default logging configuration."""
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.json_format is False
        assert config.console_enabled is True
        assert config.file_path is None
        assert config.max_bytes == 10485760  # 10MB
        assert config.backup_count == 5

    def test_lowercase_level(self) -> None:
        """Test that level names are case insensitive."""
        assert LoggingConfig(level="debug").level == LogLevel.DEBUG

    def test_file_path_directory_created(self, tmp_path: Path) -> None:
        """Test that the log directory is created on validation."""
        path = tmp_path / "logs" / "sync.log"

        LoggingConfig(file_path=path)

        assert path.parent.is_dir()


class TestStructuredFormatter:
    """Test structured JSON formatter."""

    def test_json_formatting(self) -> None:
        """Test that extra context is included in the JSON record."""
        formatter = StructuredFormatter()
        record = logging.LogRecord(
            name="federation_sync.cache",
            level=logging.INFO,
            pathname="cache_store.py",
            lineno=42,
            msg="Cache hit",
            args=(),
            exc_info=None,
        )
        record.key = "dashboard:100:club:club"
        record.origin = "fresh_cache"

        log_data = json.loads(formatter.format(record))

        assert log_data["message"] == "Cache hit"
        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "federation_sync.cache"
        assert log_data["key"] == "dashboard:100:club:club"
        assert log_data["origin"] == "fresh_cache"
        assert "timestamp" in log_data
        assert "msg" not in log_data

    def test_exception_formatting(self) -> None:
        """Test exception formatting in JSON."""
        formatter = StructuredFormatter()

        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="federation_sync.cache",
            level=logging.ERROR,
            pathname="cache_store.py",
            lineno=42,
            msg="Error occurred",
            args=(),
            exc_info=exc_info,
        )

        log_data = json.loads(formatter.format(record))

        assert log_data["level"] == "ERROR"
        assert "ValueError: Test error" in log_data["exception"]


class TestGetLogger:
    """Test logger factory."""

    def test_get_logger(self) -> None:
        """Test getting a logger instance."""
        logger = get_logger("federation_sync.test")
        assert logger.name == "federation_sync.test"
        assert isinstance(logger, logging.Logger)


class TestSetupLogging:
    """Test logging setup."""

    def test_console_handler_writes_to_stderr(
        self, restore_root_logger: logging.Logger
    ) -> None:
        """Test that console output never mixes with command output."""
        setup_logging(LoggingConfig(level=LogLevel.DEBUG))

        assert restore_root_logger.level == logging.DEBUG
        (handler,) = restore_root_logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr

    def test_file_handler(self, restore_root_logger: logging.Logger, tmp_path: Path) -> None:
        """Test logging to a rotating file in JSON format."""
        path = tmp_path / "sync.log"
        setup_logging(LoggingConfig(console_enabled=False, file_path=path, json_format=True))

        (handler,) = restore_root_logger.handlers
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert isinstance(handler.formatter, StructuredFormatter)

        get_logger("federation_sync.test").info("Stored entry", extra={"key": "leagues:1"})
        handler.flush()

        log_data = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
        assert log_data["message"] == "Stored entry"
        assert log_data["key"] == "leagues:1"

    def test_no_handlers(self, restore_root_logger: logging.Logger) -> None:
        """Test that disabling every output leaves the root logger bare."""
        setup_logging(LoggingConfig(console_enabled=False))

        assert restore_root_logger.handlers == []
