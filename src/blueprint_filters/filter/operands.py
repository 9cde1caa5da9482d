"""
Operand preparation shared by both evaluation backends.

Each helper converts a condition operand into the comparison type of the
field, or raises ``IncompleteCondition`` when the operand is missing or
cannot be converted. Both backends catch it and treat the condition as
"no restriction". Keeping this in one place is what keeps the direct
predicate and the compiled expression observably equivalent.

The ``normalize_*`` helpers do the same for item values; they raise
``Incomparable`` and the caller fails the comparison closed.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from blueprint_filters.filter.accessors import FieldAccessor, format_number
from blueprint_filters.filter.dates import Window, in_last_window, in_next_window, resolve_preset
from blueprint_filters.filter.definition import FilterCondition
from blueprint_filters.filter.operators import FilterOperator
from blueprint_filters.models.fields import FilterFieldType
from blueprint_filters.models.values import (
    Absent,
    Boolean,
    DatePreset,
    FilterValue,
    InLastPeriod,
    Instant,
    Number,
    PeriodTag,
    PresetTag,
    Text,
    TextList,
)


class IncompleteCondition(Exception):
    """A required operand is missing or cannot be converted."""


class Incomparable(Exception):
    """An item value cannot be compared as the field's type."""


Comparable = float | datetime | str | bool


# ---------------------------------------------------------------------------
# Condition operands
# ---------------------------------------------------------------------------


def operand_text(value: FilterValue) -> str:
    """Text form of an operand for text and enumeration fields."""
    if isinstance(value, Text):
        return value.value
    if isinstance(value, Number):
        return format_number(value.value)
    if isinstance(value, Boolean):
        return "true" if value.value else "false"
    if isinstance(value, Instant):
        return value.value.isoformat()
    if isinstance(value, (PresetTag, PeriodTag)):
        return value.value.value
    if isinstance(value, Absent):
        raise IncompleteCondition("value is missing")
    raise IncompleteCondition(f"{type(value).__name__} operand cannot be used as text")


def operand_number(value: FilterValue) -> float:
    """Numeric operand; NaN and infinities are not usable numbers."""
    if isinstance(value, Absent):
        raise IncompleteCondition("value is missing")
    if isinstance(value, Number):
        number = value.value
    elif isinstance(value, Text):
        try:
            number = float(value.value.strip())
        except ValueError:
            raise IncompleteCondition(f"{value.value!r} is not a number") from None
    else:
        raise IncompleteCondition(f"{type(value).__name__} operand cannot be used as a number")

    if not math.isfinite(number):
        raise IncompleteCondition(f"{number!r} is not a finite number")
    return number


def _local(moment: datetime) -> datetime:
    # Items hold naive local times; aware operands are converted to match
    if moment.tzinfo is None:
        return moment
    try:
        return moment.astimezone().replace(tzinfo=None)
    except (OverflowError, ValueError):
        raise IncompleteCondition(f"{moment.isoformat()} is out of range") from None


def operand_instant(value: FilterValue) -> datetime:
    """Date operand as a naive local datetime."""
    if isinstance(value, Instant):
        return _local(value.value)
    if isinstance(value, Text):
        try:
            return _local(datetime.fromisoformat(value.value.strip()))
        except ValueError:
            raise IncompleteCondition(f"{value.value!r} is not a date") from None
    if isinstance(value, Absent):
        raise IncompleteCondition("value is missing")
    raise IncompleteCondition(f"{type(value).__name__} operand cannot be used as a date")


def comparable_operand(value: FilterValue, field_type: FilterFieldType) -> Comparable:
    """Convert an operand to the comparison type of ``field_type``.

    Text operands are case-folded.
    """
    if field_type is FilterFieldType.NUMBER:
        return operand_number(value)
    if field_type.is_temporal:
        return operand_instant(value)
    return operand_text(value).lower()


def string_operand(value: FilterValue) -> str:
    """Case-folded operand of Contains / StartsWith / EndsWith.

    An empty string counts as not entered yet.
    """
    text = operand_text(value)
    if not text:
        raise IncompleteCondition("search text is empty")
    return text.lower()


def set_operand(value: FilterValue) -> list[str]:
    """Case-folded candidate set of In / NotIn; absent means empty."""
    if isinstance(value, Absent):
        return []
    if isinstance(value, TextList):
        return [v.lower() for v in value.values]
    if isinstance(value, Text):
        return [value.value.lower()] if value.value else []
    raise IncompleteCondition(f"{type(value).__name__} operand cannot be used as a set")


def preset_operand(value: FilterValue) -> DatePreset:
    if isinstance(value, PresetTag):
        return value.value
    if isinstance(value, Text):
        try:
            return DatePreset(value.value)
        except ValueError:
            raise IncompleteCondition(f"unknown date preset {value.value!r}") from None
    if isinstance(value, Absent):
        raise IncompleteCondition("date preset is missing")
    raise IncompleteCondition(f"{type(value).__name__} operand is not a date preset")


def amount_operand(value: FilterValue) -> int:
    """Whole number of periods for InLast / InNext (fractions truncate)."""
    return int(operand_number(value))


def period_operand(value: FilterValue) -> InLastPeriod:
    """Period unit for InLast / InNext; defaults to days when missing."""
    if isinstance(value, Absent):
        return InLastPeriod.DAYS
    if isinstance(value, PeriodTag):
        return value.value
    if isinstance(value, Text):
        try:
            return InLastPeriod(value.value)
        except ValueError:
            raise IncompleteCondition(f"unknown period {value.value!r}") from None
    if isinstance(value, Number) and value.value.is_integer():
        members = list(InLastPeriod)
        index = int(value.value)
        if 0 <= index < len(members):
            return members[index]
    raise IncompleteCondition(f"{type(value).__name__} operand is not a period")


# ---------------------------------------------------------------------------
# Resolved conditions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Operands:
    """Converted operands of a condition.

    Attributes:
        primary: Comparison operand (Equals, ordering, Between low bound)
        secondary: Between high bound
        search: Case-folded text of string operators
        candidates: Case-folded candidate set of In / NotIn
        window: Resolved date window of InLast / InNext / DateIs / DateIsNot
    """

    primary: Comparable | None = None
    secondary: Comparable | None = None
    search: str | None = None
    candidates: tuple[str, ...] = ()
    window: Window | None = None


def prepare_operands(
    condition: FilterCondition,
    field_type: FilterFieldType,
    now: datetime,
) -> Operands:
    """Convert a condition's operands for evaluation.

    Raises:
        IncompleteCondition: When an operand is missing or unconvertible
    """
    op = condition.operator

    if op in (
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
        FilterOperator.IS_TRUE,
        FilterOperator.IS_FALSE,
    ):
        return Operands()

    if op in (FilterOperator.IN, FilterOperator.NOT_IN):
        return Operands(candidates=tuple(set_operand(condition.value)))

    if op in (
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
    ):
        return Operands(search=string_operand(condition.value))

    if op is FilterOperator.BETWEEN:
        return Operands(
            primary=comparable_operand(condition.value, field_type),
            secondary=comparable_operand(condition.value_end, field_type),
        )

    if op in (FilterOperator.IN_LAST, FilterOperator.IN_NEXT):
        amount = amount_operand(condition.value)
        period = period_operand(condition.value_end)
        window_for = in_last_window if op is FilterOperator.IN_LAST else in_next_window
        try:
            return Operands(window=window_for(amount, period, now))
        except (OverflowError, ValueError):
            raise IncompleteCondition(f"{amount} {period.value} is out of range") from None

    if op in (FilterOperator.DATE_IS, FilterOperator.DATE_IS_NOT):
        return Operands(window=resolve_preset(preset_operand(condition.value), now.date()))

    return Operands(primary=comparable_operand(condition.value, field_type))


# ---------------------------------------------------------------------------
# Item values
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    """None, or text that is empty or whitespace."""
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise Incomparable(type(value).__name__)
    return float(value)


def normalize_instant(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise Incomparable(type(value).__name__)


def normalize_text(accessor: FieldAccessor, value: Any) -> str:
    """Case-folded text of an item value via the field's own conversion."""
    return accessor.to_text(value).lower()


def is_true(value: Any) -> bool:
    """Only a real boolean True counts; None and other values are false."""
    return isinstance(value, bool) and value


def normalize(accessor: FieldAccessor, field_type: FilterFieldType, value: Any) -> Comparable:
    """Bring an item value to the comparison type of ``field_type``."""
    if value is None:
        raise Incomparable("None")
    if field_type is FilterFieldType.BOOLEAN:
        if not isinstance(value, bool):
            raise Incomparable(type(value).__name__)
        return value
    if field_type is FilterFieldType.NUMBER:
        return normalize_number(value)
    if field_type.is_temporal:
        return normalize_instant(value)
    return normalize_text(accessor, value)


def field_type_for(accessor: FieldAccessor, catalog_type: FilterFieldType | None) -> FilterFieldType:
    """The catalog's type for a field, or the type implied by its accessor."""
    if catalog_type is not None:
        return catalog_type
    return accessor.kind.field_type


def holds(
    accessor: FieldAccessor,
    field_type: FilterFieldType,
    value: Any,
    test: Callable[[Any], bool],
) -> bool:
    """Apply ``test`` to the normalised item value, failing closed."""
    try:
        return bool(test(normalize(accessor, field_type, value)))
    except (Incomparable, TypeError):
        return False
