"""
Profile Config Store - Structured Logging Module

Patterns Applied:
- One-time configure_logging() at startup
- structlog with JSON output (console renderer for development)
- Operation context bound through contextvars, so every event emitted while
  a store operation runs carries its name

Anti-Patterns Avoided:
- structlog.configure() called per get_logger() - PREVENTED via _configured flag
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.typing import EventDict, Processor

SERVICE_NAME = "profile-config-store"

_configured: bool = False


def add_service_info(
    logger: logging.Logger,  # noqa: ARG001 - Required by structlog interface
    method_name: str,  # noqa: ARG001 - Required by structlog interface
    event_dict: EventDict,
) -> EventDict:
    """Stamp the service name on every log entry."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _processors(json_output: bool) -> list[Processor]:
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the application.

    Must be called once at application startup; later calls are no-ops.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines (production) or console rendering
        stream: Where log lines go; stdout for the service. Command line
            tools pass stderr so their own output stays parseable.
    """
    global _configured

    if _configured:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)
    target = stream or sys.stdout

    logging.basicConfig(format="%(message)s", stream=target, level=level)

    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=target),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str) -> Any:
    """Get a structlog logger for *name* (typically ``__name__``)."""
    return structlog.get_logger(name)


@contextmanager
def operation_context(operation: str, **values: Any) -> Iterator[None]:
    """Bind *operation* (and any extra non-None values) to every log event
    emitted inside the block, including from nested calls."""
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(operation=operation, **bound):
        yield


def reset_logging() -> None:
    """Reset logging configuration for testing."""
    global _configured
    _configured = False
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
