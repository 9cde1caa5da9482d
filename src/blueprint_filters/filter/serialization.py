"""
JSON wire format for filter trees.

    filter    = {"operator": "And" | "Or", "conditions": [condition...], "groups": [filter...]}
    condition = {"id", "field", "operator", "value", "valueEnd"}

The ``value`` / ``valueEnd`` slots use a small closed tagging convention:

    Absent     -> null
    Text       -> string
    Number     -> number
    Boolean    -> true / false
    Instant    -> string in round-trip format, 2024-05-15T10:30:00.0000000
    PresetTag  -> preset name, e.g. "ThisWeek"
    PeriodTag  -> period name, e.g. "Days"
    TextList   -> array of strings

Reading is conservative. A string becomes an instant only when it matches
the round-trip format exactly, and it becomes a preset or period tag only
in the slot its operator reads the tag from. Any other string stays text.

Example:
    >>> text = serialize(definition)
    >>> deserialize(text) == definition
    True
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

import structlog

from blueprint_filters.errors import FilterFormatError
from blueprint_filters.filter.definition import FilterCondition, FilterDefinition, new_condition_id
from blueprint_filters.filter.operators import (
    FilterOperator,
    LogicalOperator,
    is_date_preset,
    is_relative_date,
)
from blueprint_filters.models.values import (
    ABSENT,
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

logger = structlog.get_logger(__name__)

# Round-trip date-time format: seconds carry seven fractional digits and an
# optional UTC designator or offset. Six digits are accepted on read.
_INSTANT_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(\d{6,7})(Z|[+-]\d{2}:\d{2})?$"
)


# ============================================================================
# VALUES
# ============================================================================


def format_instant(value: datetime) -> str:
    """Render an instant in the round-trip format."""
    text = value.replace(tzinfo=None).isoformat(timespec="microseconds") + "0"
    offset = value.utcoffset()
    if offset is None:
        return text
    if not offset:
        return text + "Z"
    return text + value.isoformat()[-6:]


def parse_instant(text: str) -> datetime | None:
    """Parse a round-trip instant; None if ``text`` is not in that exact format.

    Instants carrying a UTC designator or offset are converted to naive
    local time.
    """
    match = _INSTANT_RE.match(text)
    if match is None:
        return None
    stamp, fraction, zone = match.groups()
    if zone == "Z":
        zone = "+00:00"
    try:
        value = datetime.fromisoformat(f"{stamp}.{fraction[:6]}{zone or ''}")
    except ValueError:
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def encode_value(value: FilterValue) -> Any:
    """JSON-compatible form of an operand."""
    if isinstance(value, Absent):
        return None
    if isinstance(value, (Text, Boolean)):
        return value.value
    if isinstance(value, Number):
        number = value.value
        return int(number) if number.is_integer() and abs(number) < 2**53 else number
    if isinstance(value, Instant):
        return format_instant(value.value)
    if isinstance(value, (PresetTag, PeriodTag)):
        return value.value.value
    if isinstance(value, TextList):
        return list(value.values)
    raise TypeError(f"Cannot serialize operand of type {type(value).__name__}")


def decode_value(
    raw: Any,
    tag: type[DatePreset] | type[InLastPeriod] | None = None,
    *,
    path: str = "value",
) -> FilterValue:
    """Operand from its JSON form.

    Args:
        raw: Decoded JSON value
        tag: Enumeration whose names this slot holds, if any
        path: Location used in error messages

    Raises:
        FilterFormatError: For shapes outside the tagging convention
    """
    if raw is None:
        return ABSENT
    if isinstance(raw, bool):
        return Boolean(raw)
    if isinstance(raw, (int, float)):
        return Number(float(raw))
    if isinstance(raw, str):
        if tag is not None:
            try:
                member = tag(raw)
            except ValueError:
                member = None
            if member is not None:
                return PresetTag(member) if tag is DatePreset else PeriodTag(member)
        instant = parse_instant(raw)
        if instant is not None:
            return Instant(instant)
        return Text(raw)
    if isinstance(raw, list):
        for index, item in enumerate(raw):
            if not isinstance(item, str):
                raise FilterFormatError(
                    f"list items must be strings, got {type(item).__name__}",
                    path=f"{path}[{index}]",
                )
        return TextList(list(raw))
    raise FilterFormatError(f"unsupported value of type {type(raw).__name__}", path=path)


# ============================================================================
# TREES
# ============================================================================


def condition_to_dict(condition: FilterCondition) -> dict[str, Any]:
    return {
        "id": condition.id,
        "field": condition.field,
        "operator": condition.operator.value,
        "value": encode_value(condition.value),
        "valueEnd": encode_value(condition.value_end),
    }


def to_dict(filter: FilterDefinition) -> dict[str, Any]:
    """Convert a filter tree to its JSON-compatible dictionary form."""
    return {
        "operator": filter.operator.value,
        "conditions": [condition_to_dict(c) for c in filter.conditions],
        "groups": [to_dict(g) for g in filter.groups],
    }


def _enum(enum_type: Any, raw: Any, default: Any, path: str) -> Any:
    if raw is None:
        return default
    if not isinstance(raw, str):
        raise FilterFormatError(f"expected a {enum_type.__name__} name", path=path)
    try:
        return enum_type(raw)
    except ValueError:
        raise FilterFormatError(f"unknown {enum_type.__name__} {raw!r}", path=path) from None


def _list(data: dict[str, Any], key: str, path: str) -> list[Any]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise FilterFormatError("expected an array", path=f"{path}.{key}")
    return items


def condition_from_dict(data: Any, path: str = "condition") -> FilterCondition:
    if not isinstance(data, dict):
        raise FilterFormatError("condition must be an object", path=path)

    field = data.get("field") or ""
    if not isinstance(field, str):
        raise FilterFormatError("field must be a string", path=f"{path}.field")
    condition_id = data.get("id") or new_condition_id()
    if not isinstance(condition_id, str):
        raise FilterFormatError("id must be a string", path=f"{path}.id")

    operator = _enum(FilterOperator, data.get("operator"), FilterOperator.EQUALS, f"{path}.operator")
    value_tag = DatePreset if is_date_preset(operator) else None
    end_tag = InLastPeriod if is_relative_date(operator) else None

    return FilterCondition(
        field=field,
        operator=operator,
        value=decode_value(data.get("value"), value_tag, path=f"{path}.value"),
        value_end=decode_value(data.get("valueEnd"), end_tag, path=f"{path}.valueEnd"),
        id=condition_id,
    )


def from_dict(data: Any, path: str = "$") -> FilterDefinition:
    """Build a filter tree from its dictionary form.

    Raises:
        FilterFormatError: If the structure is malformed
    """
    if data is None:
        return FilterDefinition()
    if not isinstance(data, dict):
        raise FilterFormatError("filter must be an object", path=path)

    return FilterDefinition(
        operator=_enum(LogicalOperator, data.get("operator"), LogicalOperator.AND, f"{path}.operator"),
        conditions=[
            condition_from_dict(item, f"{path}.conditions[{i}]")
            for i, item in enumerate(_list(data, "conditions", path))
        ],
        groups=[
            from_dict(item, f"{path}.groups[{i}]")
            for i, item in enumerate(_list(data, "groups", path))
        ],
    )


def serialize(filter: FilterDefinition, indent: int | None = 2) -> str:
    """Serialize a filter tree to JSON text."""
    return json.dumps(to_dict(filter), indent=indent)


def deserialize(text: str | bytes) -> FilterDefinition:
    """Parse JSON text into a filter tree.

    A JSON ``null`` document yields an empty filter.

    Raises:
        FilterFormatError: If the text is not valid JSON or not a filter
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("filter_parse_failed", error=str(exc))
        raise FilterFormatError(f"invalid JSON: {exc.msg}", path=f"line {exc.lineno}") from exc
    return from_dict(data)
