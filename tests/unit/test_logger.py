"""
Unit tests for logging infrastructure.
"""

import logging
import pytest
import json
from arena.logging.logger import (
    JSONFormatter,
    TextFormatter,
    setup_logger,
    get_arena_logger,
    create_request_logger,
)


def make_record(msg="Test message"):
    return logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_message(self):
        """Test formatting a basic log message."""
        formatted = JSONFormatter().format(make_record())
        log_data = json.loads(formatted)

        assert log_data["level"] == "INFO"
        assert log_data["message"] == "Test message"
        assert log_data["logger"] == "test_logger"
        assert log_data["timestamp"].endswith("Z")

    def test_format_with_context_fields(self):
        """Test formatting with contextual fields."""
        record = make_record()
        record.source_ip = "192.168.1.1"
        record.event_type = "rate_limited"
        record.component = "web"

        log_data = json.loads(JSONFormatter().format(record))

        assert log_data["source_ip"] == "192.168.1.1"
        assert log_data["event_type"] == "rate_limited"
        assert log_data["component"] == "web"

    def test_unknown_attributes_ignored(self):
        """Test only known context fields are copied."""
        record = make_record()
        record.password = "hunter2"

        assert "password" not in json.loads(JSONFormatter().format(record))


class TestTextFormatter:
    """Tests for text log formatter."""

    def test_format_basic_message(self):
        """Test formatting a basic text message."""
        formatted = TextFormatter(use_colors=False).format(make_record())

        assert "INFO" in formatted
        assert "test_logger" in formatted
        assert "Test message" in formatted

    def test_request_context(self):
        """Test client address suffix."""
        record = make_record()
        record.source_ip = "10.0.0.1"

        assert "[ip=10.0.0.1]" in TextFormatter(use_colors=False).format(record)


class TestSetupLogger:
    """Tests for logger setup."""

    def test_setup_logger_default(self):
        """Test logger setup with default parameters."""
        logger = setup_logger("test.logger")

        assert logger.name == "test.logger"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_setup_logger_with_level(self):
        """Test logger setup with custom level."""
        logger = setup_logger("test.logger.debug", level="DEBUG")

        assert logger.level == logging.DEBUG

    def test_setup_logger_text_format(self):
        """Test logger setup with text format."""
        logger = setup_logger("test.logger.text", log_format="text")

        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_setup_twice_does_not_duplicate(self):
        """Test handlers are replaced, not stacked."""
        setup_logger("test.logger.twice")
        logger = setup_logger("test.logger.twice")

        assert len(logger.handlers) == 1


class TestGetArenaLogger:
    """Tests for component logger creation."""

    def test_get_arena_logger(self, tmp_path):
        """Test creating a component logger with a log file."""
        log_dir = tmp_path / "logs"
        logger = get_arena_logger("web", log_dir)

        assert logger.name == "arena.web"
        assert len(logger.handlers) == 2
        assert log_dir.exists()

    def test_console_only(self):
        """Test no file handler without a log directory."""
        logger = get_arena_logger("server")
        assert len(logger.handlers) == 1


class TestCreateRequestLogger:
    """Tests for request logger adapter."""

    def test_create_request_logger(self):
        """Test creating a request logger with context."""
        base_logger = setup_logger("test.request")
        request_logger = create_request_logger(base_logger, "req-123", "192.168.1.1")

        assert request_logger.extra["request_id"] == "req-123"
        assert request_logger.extra["source_ip"] == "192.168.1.1"

    def test_context_reaches_records(self):
        """Test adapter context ends up on emitted records."""
        base_logger = logging.getLogger("test.request.capture")
        records = []

        class Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        base_logger.addHandler(Capture())
        base_logger.setLevel(logging.INFO)
        create_request_logger(base_logger, "req-9", "10.0.0.9").info(
            "hello", extra={"event_type": "heartbeat"}
        )

        assert records[0].request_id == "req-9"
        assert records[0].source_ip == "10.0.0.9"
        assert records[0].event_type == "heartbeat"
