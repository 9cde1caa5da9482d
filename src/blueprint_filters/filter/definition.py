"""
Filter tree model.

A ``FilterDefinition`` is a group node: a logical operator combining an
ordered list of ``FilterCondition`` leaves and an ordered list of nested
groups. Trees are built and mutated in place by the UI layer, optionally
cloned to snapshot an applied state, and handed read-only to the
evaluation backends.

Example:
    >>> from blueprint_filters.filter import FilterCondition, FilterDefinition, LogicalOperator
    >>>
    >>> status = FilterDefinition(operator=LogicalOperator.OR)
    >>> status.add(FilterCondition.eq("status", "open"))
    >>> status.add(FilterCondition.eq("status", "pending"))
    >>>
    >>> root = FilterDefinition()
    >>> root.add(FilterCondition.ge("total", 100)).add_group(status)
    >>> root.total_condition_count
    3
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from blueprint_filters.filter.operators import (
    FilterOperator,
    LogicalOperator,
    is_range,
    is_set,
    is_string_operator,
    is_valueless,
)
from blueprint_filters.models.values import (
    ABSENT,
    DatePreset,
    FilterValue,
    InLastPeriod,
    Text,
    as_value,
    clone_value,
    is_absent,
)


def new_condition_id() -> str:
    """Short random identifier for a condition row."""
    return uuid.uuid4().hex[:8]


@dataclass
class FilterCondition:
    """A single comparison of one field against up to two operands.

    ``value`` and ``value_end`` accept plain Python values and are lifted
    into the ``FilterValue`` union on construction.
    """

    field: str
    operator: FilterOperator = FilterOperator.EQUALS
    value: FilterValue = ABSENT
    value_end: FilterValue = ABSENT
    id: str = field(default_factory=new_condition_id)

    def __post_init__(self) -> None:
        self.operator = FilterOperator(self.operator)
        self.value = as_value(self.value)
        self.value_end = as_value(self.value_end)

    def set_value(self, value: Any, value_end: Any = None) -> FilterCondition:
        """Replace both operands (fluent interface)."""
        self.value = as_value(value)
        self.value_end = as_value(value_end)
        return self

    @property
    def is_incomplete(self) -> bool:
        """True if a required operand has not been entered yet.

        Only checks presence; operands that are present but cannot be
        converted to the field's type are detected during evaluation.
        """
        if is_valueless(self.operator) or is_set(self.operator):
            return False
        if is_absent(self.value):
            return True
        if is_string_operator(self.operator) and self.value == Text(""):
            return True
        if is_range(self.operator) and is_absent(self.value_end):
            return True
        return False

    def clone(self) -> FilterCondition:
        """Deep copy; list operands are copied, scalars are shared."""
        return FilterCondition(
            field=self.field,
            operator=self.operator,
            value=clone_value(self.value),
            value_end=clone_value(self.value_end),
            id=self.id,
        )

    @classmethod
    def eq(cls, field: str, value: Any) -> FilterCondition:
        """Create equality condition."""
        return cls(field, FilterOperator.EQUALS, value)

    @classmethod
    def ne(cls, field: str, value: Any) -> FilterCondition:
        """Create not-equal condition."""
        return cls(field, FilterOperator.NOT_EQUALS, value)

    @classmethod
    def lt(cls, field: str, value: Any) -> FilterCondition:
        return cls(field, FilterOperator.LESS_THAN, value)

    @classmethod
    def le(cls, field: str, value: Any) -> FilterCondition:
        return cls(field, FilterOperator.LESS_OR_EQUAL, value)

    @classmethod
    def gt(cls, field: str, value: Any) -> FilterCondition:
        return cls(field, FilterOperator.GREATER_THAN, value)

    @classmethod
    def ge(cls, field: str, value: Any) -> FilterCondition:
        return cls(field, FilterOperator.GREATER_OR_EQUAL, value)

    @classmethod
    def between(cls, field: str, low: Any, high: Any) -> FilterCondition:
        """Create inclusive range condition."""
        return cls(field, FilterOperator.BETWEEN, low, high)

    @classmethod
    def contains(cls, field: str, text: str) -> FilterCondition:
        return cls(field, FilterOperator.CONTAINS, text)

    @classmethod
    def starts_with(cls, field: str, text: str) -> FilterCondition:
        return cls(field, FilterOperator.STARTS_WITH, text)

    @classmethod
    def ends_with(cls, field: str, text: str) -> FilterCondition:
        return cls(field, FilterOperator.ENDS_WITH, text)

    @classmethod
    def in_list(cls, field: str, values: list[str]) -> FilterCondition:
        """Create set membership condition."""
        return cls(field, FilterOperator.IN, list(values))

    @classmethod
    def not_in_list(cls, field: str, values: list[str]) -> FilterCondition:
        return cls(field, FilterOperator.NOT_IN, list(values))

    @classmethod
    def in_last(
        cls, field: str, amount: int, period: InLastPeriod = InLastPeriod.DAYS
    ) -> FilterCondition:
        """Create "in the last N days/weeks/months" condition."""
        return cls(field, FilterOperator.IN_LAST, amount, period)

    @classmethod
    def in_next(
        cls, field: str, amount: int, period: InLastPeriod = InLastPeriod.DAYS
    ) -> FilterCondition:
        return cls(field, FilterOperator.IN_NEXT, amount, period)

    @classmethod
    def date_is(cls, field: str, preset: DatePreset) -> FilterCondition:
        """Create calendar preset condition (today, this week, ...)."""
        return cls(field, FilterOperator.DATE_IS, preset)

    @classmethod
    def date_is_not(cls, field: str, preset: DatePreset) -> FilterCondition:
        return cls(field, FilterOperator.DATE_IS_NOT, preset)

    @classmethod
    def is_empty(cls, field: str) -> FilterCondition:
        return cls(field, FilterOperator.IS_EMPTY)

    @classmethod
    def is_not_empty(cls, field: str) -> FilterCondition:
        return cls(field, FilterOperator.IS_NOT_EMPTY)

    @classmethod
    def is_true(cls, field: str) -> FilterCondition:
        return cls(field, FilterOperator.IS_TRUE)

    @classmethod
    def is_false(cls, field: str) -> FilterCondition:
        return cls(field, FilterOperator.IS_FALSE)


@dataclass
class FilterDefinition:
    """A group of conditions and nested groups combined with AND or OR.

    An empty definition matches every item.
    """

    operator: LogicalOperator = LogicalOperator.AND
    conditions: list[FilterCondition] = field(default_factory=list)
    groups: list[FilterDefinition] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.operator = LogicalOperator(self.operator)

    def add(self, condition: FilterCondition) -> FilterDefinition:
        """Add a condition (fluent interface)."""
        self.conditions.append(condition)
        return self

    def add_group(self, group: FilterDefinition) -> FilterDefinition:
        """Add a nested group (fluent interface)."""
        self.groups.append(group)
        return self

    def remove(self, condition_id: str) -> bool:
        """Remove a condition by id from this group or any nested group."""
        for index, condition in enumerate(self.conditions):
            if condition.id == condition_id:
                del self.conditions[index]
                return True
        return any(group.remove(condition_id) for group in self.groups)

    @property
    def is_empty(self) -> bool:
        return not self.conditions and not self.groups

    @property
    def total_condition_count(self) -> int:
        """Number of conditions in this group and all nested groups."""
        return len(self.conditions) + sum(g.total_condition_count for g in self.groups)

    @property
    def depth(self) -> int:
        """Nesting depth; a group without nested groups has depth 1."""
        return 1 + max((g.depth for g in self.groups), default=0)

    def iter_conditions(self):
        """Yield every condition in the tree, depth first."""
        yield from self.conditions
        for group in self.groups:
            yield from group.iter_conditions()

    def clone(self) -> FilterDefinition:
        """Deep copy of the whole tree."""
        return FilterDefinition(
            operator=self.operator,
            conditions=[c.clone() for c in self.conditions],
            groups=[g.clone() for g in self.groups],
        )
