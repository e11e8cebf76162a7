"""
Structured logging for rangesync.

Usage:
    from rangesync.utils.logging import setup_logging, ContextLogger

    setup_logging(level="DEBUG", json_format=True)

    log = ContextLogger(__name__, table="public.orders")
    log.info("Chunk fingerprint mismatch", start={"id": 1000})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
