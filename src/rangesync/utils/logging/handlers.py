"""
Logger wrappers.

ContextLogger binds key/value context (table, schema, dialect) once and
attaches it as ``extra`` to every message, so engine log lines can be
filtered per table without repeating the context at each call site.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that merges a bound context into every record.

    Usage:
        log = ContextLogger(__name__, table="public.orders")
        log.info("Deleted rows", affected=12)
    """

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level,
            msg,
            *args,
            exc_info=exc_info,
            extra={**self.context, **kwargs},
        )

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a new ContextLogger with additional bound context."""
        return ContextLogger(self.logger.name, **{**self.context, **context})

    def get_context(self) -> dict[str, Any]:
        """Return a copy of the bound context."""
        return self.context.copy()
