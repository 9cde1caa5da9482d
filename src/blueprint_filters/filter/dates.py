"""
Date resolution.

Pure functions mapping symbolic, calendar-relative windows to concrete
half-open intervals of naive datetimes.

Presets are anchored at the current calendar date with no time component:

    Today        [today, today + 1d)
    ThisWeek     [Monday 00:00, next Monday 00:00)
    LastQuarter  [first day of previous quarter, first day of this quarter)

InLast / InNext windows are anchored at "now" including the time of day.

Example:
    >>> from datetime import date
    >>> from blueprint_filters.filter.dates import DatePreset, resolve_preset
    >>>
    >>> start, end = resolve_preset(DatePreset.THIS_WEEK, date(2024, 5, 15))
    >>> start.isoformat(), end.isoformat()
    ('2024-05-13T00:00:00', '2024-05-20T00:00:00')
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from blueprint_filters.models.values import DatePreset, InLastPeriod
from blueprint_filters.utils import time as clock
from blueprint_filters.utils.time import (
    add_months,
    start_of_day,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
)

Window = tuple[datetime, datetime]

_ONE_DAY = timedelta(days=1)
_ONE_WEEK = timedelta(weeks=1)


def resolve_preset(preset: DatePreset, today: date | None = None) -> Window:
    """Resolve a preset to its half-open ``[start, end)`` interval.

    Args:
        preset: Calendar preset
        today: Anchor date (defaults to the local calendar date)

    Returns:
        Tuple of (start, end) datetimes
    """
    if today is None:
        today = clock.today()
    preset = DatePreset(preset)

    if preset is DatePreset.TODAY:
        start = start_of_day(today)
        return start, start + _ONE_DAY
    if preset is DatePreset.YESTERDAY:
        start = start_of_day(today) - _ONE_DAY
        return start, start + _ONE_DAY
    if preset is DatePreset.TOMORROW:
        start = start_of_day(today) + _ONE_DAY
        return start, start + _ONE_DAY

    if preset in (DatePreset.THIS_WEEK, DatePreset.LAST_WEEK, DatePreset.NEXT_WEEK):
        shift = {DatePreset.THIS_WEEK: 0, DatePreset.LAST_WEEK: -1, DatePreset.NEXT_WEEK: 1}[preset]
        start = start_of_week(today) + shift * _ONE_WEEK
        return start, start + _ONE_WEEK

    if preset in (DatePreset.THIS_MONTH, DatePreset.LAST_MONTH, DatePreset.NEXT_MONTH):
        shift = {DatePreset.THIS_MONTH: 0, DatePreset.LAST_MONTH: -1, DatePreset.NEXT_MONTH: 1}[preset]
        start = add_months(start_of_month(today), shift)
        return start, add_months(start, 1)

    if preset in (DatePreset.THIS_QUARTER, DatePreset.LAST_QUARTER):
        start = start_of_quarter(today)
        if preset is DatePreset.LAST_QUARTER:
            start = add_months(start, -3)
        return start, add_months(start, 3)

    # THIS_YEAR / LAST_YEAR
    start = start_of_year(today)
    if preset is DatePreset.LAST_YEAR:
        start = start.replace(year=start.year - 1)
    return start, start.replace(year=start.year + 1)


def _offset(period: InLastPeriod, amount: int, moment: datetime) -> datetime:
    if period is InLastPeriod.WEEKS:
        return moment + timedelta(days=7 * amount)
    if period is InLastPeriod.MONTHS:
        return add_months(moment, amount)
    return moment + timedelta(days=amount)


def in_last_window(amount: int, period: InLastPeriod, now: datetime | None = None) -> Window:
    """Window for "in the last N units": ``(cutoff, now)``.

    The match rule only applies the lower bound: a value is in the last N
    units when it is at or after the cutoff.
    """
    if now is None:
        now = clock.now()
    return _offset(InLastPeriod(period), -amount, now), now


def in_next_window(amount: int, period: InLastPeriod, now: datetime | None = None) -> Window:
    """Window for "in the next N units": ``(now, cutoff)``, both inclusive."""
    if now is None:
        now = clock.now()
    return now, _offset(InLastPeriod(period), amount, now)


__all__ = [
    "DatePreset",
    "InLastPeriod",
    "Window",
    "in_last_window",
    "in_next_window",
    "resolve_preset",
]
