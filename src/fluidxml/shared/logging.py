"""Correlation-aware logging for fluidxml components.

Every record emitted through a :class:`CorrelationLogger` carries the name of
the component that produced it and an optional correlation ID, so traversal,
templating and query logs from one request can be grouped together.
"""

import logging
from typing import Any, Dict, Optional


class CorrelationLogger:
    """Thin wrapper over :mod:`logging` that injects component/correlation extras."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name; defaults to the last dotted part of name
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def _extra(self, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        combined = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            combined.update(extra)
        return combined

    def is_enabled_for(self, level: int) -> bool:
        """Check whether records at ``level`` would be emitted."""
        return self.logger.isEnabledFor(level)

    def bind(self, component: str) -> "CorrelationLogger":
        """Return a logger for a sub-component sharing this correlation ID."""
        return CorrelationLogger(self.logger.name, self.correlation_id, component)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message with correlation info."""
        self.logger.debug(message, extra=self._extra(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log info message with correlation info."""
        self.logger.info(message, extra=self._extra(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log warning message with correlation info."""
        self.logger.warning(message, extra=self._extra(extra))

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log error message; includes the active traceback by default."""
        self.logger.error(message, extra=self._extra(extra), exc_info=exc_info)


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


def configure_logging(level: str, logger_name: str = "fluidxml") -> None:
    """Set the level of the package logger, e.g. from ``GlobalConfig.logging_level``.

    Handlers are left to the application.
    """
    logging.getLogger(logger_name).setLevel(getattr(logging, level))
