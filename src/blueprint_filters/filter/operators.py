"""
Operator catalog.

Maps each field type to its ordered list of legal operators and classifies
operators by the operands they read. Both evaluation backends consult this
catalog, so an operator that is not listed for a field type falls through
to "no restriction" on both of them.
"""

from __future__ import annotations

from blueprint_filters.models.fields import FilterFieldType
from blueprint_filters.utils.enums import SymbolicEnum


class FilterOperator(SymbolicEnum):
    """Comparison operator of a filter condition."""

    # Universal
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    IS_EMPTY = "IsEmpty"
    IS_NOT_EMPTY = "IsNotEmpty"

    # Text
    CONTAINS = "Contains"
    NOT_CONTAINS = "NotContains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"

    # Number / date ordering
    GREATER_THAN = "GreaterThan"
    LESS_THAN = "LessThan"
    GREATER_OR_EQUAL = "GreaterOrEqual"
    LESS_OR_EQUAL = "LessOrEqual"
    BETWEEN = "Between"

    # Relative dates
    IN_LAST = "InLast"
    IN_NEXT = "InNext"

    # Sets
    IN = "In"
    NOT_IN = "NotIn"

    # Boolean
    IS_TRUE = "IsTrue"
    IS_FALSE = "IsFalse"

    # Date presets
    DATE_IS = "DateIs"
    DATE_IS_NOT = "DateIsNot"


class LogicalOperator(SymbolicEnum):
    """How a group combines its children."""

    AND = "And"
    OR = "Or"


_DATE_OPERATORS: tuple[FilterOperator, ...] = (
    FilterOperator.EQUALS,
    FilterOperator.NOT_EQUALS,
    FilterOperator.GREATER_THAN,
    FilterOperator.LESS_THAN,
    FilterOperator.BETWEEN,
    FilterOperator.IN_LAST,
    FilterOperator.IN_NEXT,
    FilterOperator.DATE_IS,
    FilterOperator.DATE_IS_NOT,
    FilterOperator.IS_EMPTY,
    FilterOperator.IS_NOT_EMPTY,
)

OPERATORS_BY_TYPE: dict[FilterFieldType, tuple[FilterOperator, ...]] = {
    FilterFieldType.TEXT: (
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    ),
    FilterFieldType.NUMBER: (
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.LESS_THAN,
        FilterOperator.GREATER_OR_EQUAL,
        FilterOperator.LESS_OR_EQUAL,
        FilterOperator.BETWEEN,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    ),
    FilterFieldType.DATE: _DATE_OPERATORS,
    FilterFieldType.DATETIME: _DATE_OPERATORS,
    FilterFieldType.BOOLEAN: (
        FilterOperator.IS_TRUE,
        FilterOperator.IS_FALSE,
    ),
    FilterFieldType.ENUM: (
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    ),
}

OPERATOR_LABELS: dict[FilterOperator, str] = {
    FilterOperator.EQUALS: "equals",
    FilterOperator.NOT_EQUALS: "not equals",
    FilterOperator.IS_EMPTY: "is empty",
    FilterOperator.IS_NOT_EMPTY: "is not empty",
    FilterOperator.CONTAINS: "contains",
    FilterOperator.NOT_CONTAINS: "not contains",
    FilterOperator.STARTS_WITH: "starts with",
    FilterOperator.ENDS_WITH: "ends with",
    FilterOperator.GREATER_THAN: "greater than",
    FilterOperator.LESS_THAN: "less than",
    FilterOperator.GREATER_OR_EQUAL: "greater or equal",
    FilterOperator.LESS_OR_EQUAL: "less or equal",
    FilterOperator.BETWEEN: "between",
    FilterOperator.IN_LAST: "in the last",
    FilterOperator.IN_NEXT: "in the next",
    FilterOperator.IN: "is any of",
    FilterOperator.NOT_IN: "is none of",
    FilterOperator.IS_TRUE: "is true",
    FilterOperator.IS_FALSE: "is false",
    FilterOperator.DATE_IS: "is",
    FilterOperator.DATE_IS_NOT: "is not",
}

_DATE_LABELS: dict[FilterOperator, str] = {
    FilterOperator.GREATER_THAN: "is after",
    FilterOperator.LESS_THAN: "is before",
}


def operators_for(field_type: FilterFieldType) -> tuple[FilterOperator, ...]:
    """Ordered legal operators for a field type (empty when unknown)."""
    return OPERATORS_BY_TYPE.get(field_type, ())


def is_operator_allowed(operator: FilterOperator, field_type: FilterFieldType) -> bool:
    return operator in OPERATORS_BY_TYPE.get(field_type, ())


def operator_label(operator: FilterOperator, field_type: FilterFieldType | None = None) -> str:
    """Display label for an operator, adjusted for date fields."""
    if field_type is not None and field_type.is_temporal and operator in _DATE_LABELS:
        return _DATE_LABELS[operator]
    return OPERATOR_LABELS.get(operator, operator.value)


def operator_options(field_type: FilterFieldType) -> list[tuple[FilterOperator, str]]:
    """(operator, label) pairs for populating an operator picker."""
    return [(op, operator_label(op, field_type)) for op in operators_for(field_type)]


def is_valueless(operator: FilterOperator) -> bool:
    """True if the operator reads no operand."""
    return operator in (
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
        FilterOperator.IS_TRUE,
        FilterOperator.IS_FALSE,
    )


def is_range(operator: FilterOperator) -> bool:
    """True if the operator reads two operands."""
    return operator is FilterOperator.BETWEEN


def is_date_preset(operator: FilterOperator) -> bool:
    """True if the operand is a ``DatePreset`` tag."""
    return operator in (FilterOperator.DATE_IS, FilterOperator.DATE_IS_NOT)


def is_relative_date(operator: FilterOperator) -> bool:
    """True if the operands are an amount and an ``InLastPeriod`` unit."""
    return operator in (FilterOperator.IN_LAST, FilterOperator.IN_NEXT)


def is_set(operator: FilterOperator) -> bool:
    return operator in (FilterOperator.IN, FilterOperator.NOT_IN)


def is_string_operator(operator: FilterOperator) -> bool:
    return operator in (
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
    )
