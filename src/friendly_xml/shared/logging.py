"""Correlation-aware logging for friendly XML services.

One editor request (build a friendly view, lint a buffer, run a file-set
search) gets one correlation id. Every service it touches logs through a
``CorrelationLogger`` that puts the id, the service component and any bound
context into the record's ``extra``.
"""

import logging
import uuid
from typing import Any, Dict, Optional


def new_correlation_id() -> str:
    """Return a short random id for tagging the records of one request."""
    return uuid.uuid4().hex[:12]


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name; defaults to the last segment of ``name``
            context: Fields added to every record of this logger
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]
        self.context: Dict[str, Any] = dict(context or {})

    def bind(self, **context: Any) -> "CorrelationLogger":
        """Return a logger for the same request whose records also carry ``context``."""
        return CorrelationLogger(
            self.logger.name,
            self.correlation_id,
            self.component,
            {**self.context, **context},
        )

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]],
        exc_info: bool,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        fields = {"component": self.component, "correlation_id": self.correlation_id}
        fields.update(self.context)
        if extra:
            fields.update(extra)
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra, False)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra, False)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra, False)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, extra, True)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)
