"""Structured logging utilities for pair-tree building.

Every component logs through a ``CorrelationLogger`` so that the messages
emitted while one input line is built can be traced back to the same build,
and so that the component name travels with each record.
"""

import logging
import uuid
from typing import Any, Dict, Optional

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "[%(component)s %(correlation_id)s] %(message)s"
)


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for build tracking
            component: Component name for structured logging
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        combined_extra = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            combined_extra.update(extra)
        return combined_extra

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]],
        exc_info: bool
    ) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._get_extra(extra), exc_info=exc_info)

    def debug(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log debug message with correlation info."""
        self._log(logging.DEBUG, message, extra, exc_info)

    def info(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log info message with correlation info."""
        self._log(logging.INFO, message, extra, exc_info)

    def warning(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log warning message with correlation info."""
        self._log(logging.WARNING, message, extra, exc_info)

    def exception(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log an error with correlation info and the active traceback."""
        self.logger.exception(message, extra=self._get_extra(extra))


class _CorrelationDefaults(logging.Filter):
    """Fill in correlation fields for records emitted by foreign loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "correlation_id"):
            record.correlation_id = None
        return True


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for build tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)


def new_correlation_id() -> str:
    """Generate a fresh correlation ID for one build."""
    return uuid.uuid4().hex


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use.

    Records go to stderr so that stdout carries only build output.
    """
    numeric_level = getattr(logging, level)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers:
        if not any(isinstance(f, _CorrelationDefaults) for f in handler.filters):
            handler.addFilter(_CorrelationDefaults())
