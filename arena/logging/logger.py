"""
Structured Logging Infrastructure for Password Arena

Provides JSON-formatted structured logging with support for contextual
information and multiple output formats.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import json


# Contextual attributes copied from the record when present
CONTEXT_FIELDS = (
    "component",
    "event_type",
    "source_ip",
    "request_id",
    "path",
    "method",
    "status_code",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Formats log records as JSON with ISO8601 timestamps and contextual fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: Dict[str, Any] = {
            "timestamp": _utcnow().strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        for field_name in CONTEXT_FIELDS:
            if hasattr(record, field_name):
                log_data[field_name] = getattr(record, field_name)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    Human-readable text formatter for development.

    Formats logs in a readable format with colors (when supported).
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        """
        Initialize text formatter.

        Args:
            use_colors: Whether to use ANSI colors
        """
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = _utcnow().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            level = f"{color}{level}{self.RESET}"

        formatted = f"{timestamp} [{level}] {record.name}: {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        if hasattr(record, "source_ip"):
            formatted += f" [ip={record.source_ip}]"
        if hasattr(record, "request_id"):
            formatted += f" [request={record.request_id}]"

        return formatted


def setup_logger(
    name: str,
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up a logger with appropriate handlers and formatters.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type ('json' or 'text')
        log_file: Optional file path for file logging

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("arena.web", level="INFO", log_format="json")
        >>> logger.info("Submission scored", extra={"source_ip": "192.168.1.1"})
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())  # Always use JSON for files
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_arena_logger(
    component: str,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    log_format: str = "json",
) -> logging.Logger:
    """
    Get a logger configured for an arena component.

    Args:
        component: Component name (e.g., 'web', 'server')
        log_dir: Directory for log files, console only when omitted
        level: Log level
        log_format: Format type

    Returns:
        Configured logger instance
    """
    log_file = log_dir / f"{component}.log" if log_dir else None

    return setup_logger(
        name=f"arena.{component}", level=level, log_format=log_format, log_file=log_file
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds contextual information to all log messages.

    Used to attach request-specific context (client address, request id).
    """

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra

        return msg, kwargs


def create_request_logger(
    base_logger: logging.Logger, request_id: str, source_ip: str
) -> LoggerAdapter:
    """
    Create a logger adapter with request context.

    Args:
        base_logger: Base logger to adapt
        request_id: Request identifier
        source_ip: Client address the request came from

    Returns:
        Logger adapter with request context

    Example:
        >>> base = setup_logger("arena.web")
        >>> request_logger = create_request_logger(base, "req-123", "192.168.1.1")
        >>> request_logger.info("Rate limited")  # Includes request ID and IP
    """
    return LoggerAdapter(
        base_logger, {"request_id": request_id, "source_ip": source_ip}
    )
