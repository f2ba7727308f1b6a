"""
Structured Logging Module

structlog renders every kvsession event as one JSON line and hands it to
the standard library logger of the emitting module, under the "kvsession"
logger. Level and destination therefore follow the host's logging setup
unless configure_logging() installs a handler of its own.

Correlation IDs tie store operations to the host request that issued them.
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Any, Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor

ROOT_LOGGER_NAME = "kvsession"


# =============================================================================
# Correlation ID Context
# =============================================================================

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(correlation_id: str) -> Generator[None, None, None]:
    """
    Context manager for setting correlation ID.

    Example:
        >>> with correlation_id_context("req-12345"):
        ...     await store.fetch(sid)
    """
    token = _correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id_var.reset(token)


def add_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add correlation ID to log event if set."""
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


# Passed to every logger explicitly, so a host's own structlog.configure()
# does not change how kvsession events are rendered.
_PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    add_correlation_id,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Send kvsession events to a stream at the given level.

    Replaces any handler a previous call installed; calling it again with
    another level or stream takes effect for loggers that already exist.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        stream: Output stream (default: sys.stdout)
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False


def get_logger(name: str) -> Any:
    """
    Get a structured logger for a kvsession module.

    Args:
        name: Module name; names outside the kvsession package are nested
            under it so configure_logging() applies to them.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("session_get", session_id="abc12345...")
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=False,
    )
