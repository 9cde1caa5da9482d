"""
Logging utilities for blueprint-filters.

Library modules log through structlog with snake_case event names and
key/value context. Nothing is configured on import; host applications
(or the CLI) call ``setup_logging`` once.

Example:
    >>> from blueprint_filters.utils import setup_logging, get_logger
    >>>
    >>> setup_logging(level="DEBUG", format="console")
    >>> logger = get_logger(__name__)
    >>> logger.debug("filter_compiled", conditions=3, entity="Order")
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

# Context and level handling shared by both output formats
_PREAMBLE: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
)


def _renderers(format: str) -> list[Any]:
    if format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def setup_logging(
    level: str = "INFO",
    format: str = "console",
    *,
    include_timestamp: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Standard library level name (DEBUG, INFO, WARNING, ERROR)
        format: "console" for human-readable lines, "json" for one JSON
            object per event
        include_timestamp: Stamp events with an ISO timestamp
        stream: Destination stream. Defaults to stderr so that command
            output on stdout stays machine-readable.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )

    processors = list(_PREAMBLE)
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    processors += _renderers(format)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for ``name`` (usually ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs (e.g. the filter file being processed) to
    every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
