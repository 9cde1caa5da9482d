"""
Utility functions for blueprint-filters.

Logging:
- setup_logging(): Configure structured logging with structlog
- get_logger(name): Get a logger instance

Calendar arithmetic:
- now(), today(): Local clock
- start_of_week(day), add_months(moment, n), ...

Example:
    >>> from blueprint_filters.utils import get_logger, start_of_week
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("filter_loaded", conditions=4)
"""

from blueprint_filters.utils.enums import SymbolicEnum
from blueprint_filters.utils.logging import get_logger, setup_logging
from blueprint_filters.utils.time import (
    add_months,
    now,
    start_of_day,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
    today,
)

__all__ = [
    "SymbolicEnum",
    "add_months",
    "get_logger",
    "now",
    "setup_logging",
    "start_of_day",
    "start_of_month",
    "start_of_quarter",
    "start_of_week",
    "start_of_year",
    "today",
]
