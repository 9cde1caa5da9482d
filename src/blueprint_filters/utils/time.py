"""
Calendar arithmetic helpers.

All helpers work on naive datetimes in host-local time. The week always
starts on Monday (ISO 8601) regardless of the host locale, and quarters are
the calendar quarters Jan-Mar, Apr-Jun, Jul-Sep and Oct-Dec.

Example:
    >>> from datetime import date
    >>> from blueprint_filters.utils.time import start_of_week, add_months
    >>>
    >>> start_of_week(date(2024, 5, 15))   # a Wednesday
    datetime.datetime(2024, 5, 13, 0, 0)
    >>> add_months(datetime(2024, 1, 31), 1)
    datetime.datetime(2024, 2, 29, 0, 0)
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta


def now() -> datetime:
    """Current local time (naive)."""
    return datetime.now()


def today() -> date:
    """Current local calendar date."""
    return date.today()


def start_of_day(day: date) -> datetime:
    """Midnight at the start of ``day``.

    Accepts a ``datetime`` as well; its time component is discarded.
    """
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def start_of_week(day: date) -> datetime:
    """Midnight on the Monday of the ISO week containing ``day``."""
    midnight = start_of_day(day)
    return midnight - timedelta(days=midnight.weekday())


def start_of_month(day: date) -> datetime:
    """Midnight on the first day of the month containing ``day``."""
    return start_of_day(day).replace(day=1)


def start_of_quarter(day: date) -> datetime:
    """Midnight on the first day of the calendar quarter containing ``day``."""
    first_month = 3 * ((day.month - 1) // 3) + 1
    return start_of_day(day).replace(month=first_month, day=1)


def start_of_year(day: date) -> datetime:
    """Midnight on January 1 of the year containing ``day``."""
    return start_of_day(day).replace(month=1, day=1)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` by whole calendar months.

    The day of month is clamped to the last day of the target month, so
    January 31 plus one month is February 28 (or 29). The time of day is
    preserved.

    Args:
        moment: Datetime to shift
        months: Number of months (negative shifts backwards)

    Returns:
        Shifted datetime
    """
    index = moment.year * 12 + (moment.month - 1) + months
    year, month_index = divmod(index, 12)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))
