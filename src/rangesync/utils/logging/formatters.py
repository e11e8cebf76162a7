"""
Log formatters for rangesync.

JSONFormatter emits one JSON document per record for log shippers;
ConsoleFormatter renders a coloured single line for terminals. Both append
whatever was passed through ``extra=`` (table, operation, chunk bounds).
"""

import json
import logging
import socket
import sys
import traceback
from datetime import UTC, datetime

# Attributes every LogRecord carries; anything else came in through ``extra``.
RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})


def extract_context(record: logging.LogRecord) -> dict:
    """Return the non-standard attributes attached to a record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Output fields: level, logger, message, app, timestamp, hostname,
    source location, exception (when present) and a ``context`` object
    holding extra attributes.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_hostname: bool = True,
        app_name: str = "rangesync",
    ):
        """
        Args:
            include_timestamp: Include an ISO8601 UTC timestamp
            include_hostname: Include the host name
            app_name: Application name stamped on every record
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_hostname = include_hostname
        self.app_name = app_name
        self.hostname = socket.gethostname() if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "app": self.app_name,
        }

        if self.include_timestamp:
            payload["timestamp"] = datetime.fromtimestamp(
                record.created, UTC
            ).isoformat()

        if self.hostname:
            payload["hostname"] = self.hostname

        payload["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        context = extract_context(record)
        if context:
            payload["context"] = context

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line, optionally coloured, formatter for interactive use."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        try:
            formatted = super().format(record)
        finally:
            record.levelname = levelname

        context = extract_context(record)
        if context:
            pairs = ", ".join(f"{key}={value}" for key, value in context.items())
            formatted += f" [{pairs}]"

        return formatted
