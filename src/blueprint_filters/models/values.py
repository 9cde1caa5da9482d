"""
Operand values of a filter condition.

A condition's ``value`` and ``value_end`` slots hold exactly one of the
variants of the ``FilterValue`` union:

    Absent | Text | Number | Boolean | Instant | PresetTag | PeriodTag | TextList

Dates are structurally distinct from text, so a string that merely looks
like a date is never mistaken for one. ``as_value`` lifts plain Python
values into the union.

Example:
    >>> from blueprint_filters.models.values import as_value, Number, TextList
    >>>
    >>> as_value(10)
    Number(value=10.0)
    >>> as_value(["open", "closed"])
    TextList(values=['open', 'closed'])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Union

from blueprint_filters.utils.enums import SymbolicEnum


class DatePreset(SymbolicEnum):
    """Calendar-relative window used by DateIs / DateIsNot."""

    TODAY = "Today"
    YESTERDAY = "Yesterday"
    TOMORROW = "Tomorrow"
    THIS_WEEK = "ThisWeek"
    LAST_WEEK = "LastWeek"
    NEXT_WEEK = "NextWeek"
    THIS_MONTH = "ThisMonth"
    LAST_MONTH = "LastMonth"
    NEXT_MONTH = "NextMonth"
    THIS_QUARTER = "ThisQuarter"
    LAST_QUARTER = "LastQuarter"
    THIS_YEAR = "ThisYear"
    LAST_YEAR = "LastYear"


class InLastPeriod(SymbolicEnum):
    """Unit of the amount used by InLast / InNext."""

    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"


@dataclass(frozen=True)
class Absent:
    """No operand entered."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent()


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Boolean:
    value: bool


@dataclass(frozen=True)
class Instant:
    value: datetime


@dataclass(frozen=True)
class PresetTag:
    value: DatePreset


@dataclass(frozen=True)
class PeriodTag:
    value: InLastPeriod


@dataclass
class TextList:
    """Candidate set for In / NotIn. The list is mutable and is copied on clone."""

    values: list[str] = field(default_factory=list)

    def copy(self) -> TextList:
        return TextList(list(self.values))


FilterValue = Union[Absent, Text, Number, Boolean, Instant, PresetTag, PeriodTag, TextList]

_VARIANTS = (Absent, Text, Number, Boolean, Instant, PresetTag, PeriodTag, TextList)


def as_value(raw: Any) -> FilterValue:
    """Lift a plain Python value into the ``FilterValue`` union.

    Args:
        raw: None, str, int/float/Decimal, bool, datetime, date,
            DatePreset, InLastPeriod, a list/tuple of str, or an existing
            ``FilterValue``

    Returns:
        The matching variant (a ``date`` becomes an ``Instant`` at midnight)

    Raises:
        TypeError: For any other shape
    """
    if isinstance(raw, _VARIANTS):
        return raw
    if raw is None:
        return ABSENT
    # Enum members subclass str, so check them before plain text
    if isinstance(raw, DatePreset):
        return PresetTag(raw)
    if isinstance(raw, InLastPeriod):
        return PeriodTag(raw)
    if isinstance(raw, str):
        return Text(raw)
    if isinstance(raw, bool):
        return Boolean(raw)
    if isinstance(raw, (int, float, Decimal)):
        return Number(float(raw))
    if isinstance(raw, datetime):
        return Instant(raw)
    if isinstance(raw, date):
        return Instant(datetime.combine(raw, time.min))
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(item, str) for item in raw):
            raise TypeError("List values must contain only strings")
        return TextList(list(raw))
    raise TypeError(f"Unsupported filter value type: {type(raw).__name__}")


def clone_value(value: FilterValue) -> FilterValue:
    """Copy list-typed values; scalar variants are immutable and shared."""
    if isinstance(value, TextList):
        return value.copy()
    return value


def is_absent(value: FilterValue) -> bool:
    return isinstance(value, Absent)


def unwrap(value: FilterValue) -> Any:
    """Plain Python payload of a value (None for ``Absent``)."""
    if isinstance(value, Absent):
        return None
    if isinstance(value, TextList):
        return list(value.values)
    return value.value
