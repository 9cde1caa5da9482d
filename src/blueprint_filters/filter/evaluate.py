"""
Direct evaluation backend.

Turns a filter tree into a plain predicate over already-materialised
items. Each group evaluates its children to booleans and reduces them with
``all`` (And) or ``any`` (Or); a group with nothing to evaluate matches.

Example:
    >>> from blueprint_filters.filter import FilterCondition, FilterDefinition, evaluate
    >>>
    >>> definition = FilterDefinition().add(FilterCondition.between("total", 10, 20))
    >>> predicate = evaluate(definition, fields)
    >>> [order.total for order in orders if predicate(order)]
    [10.0, 15.5, 20.0]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import structlog

from blueprint_filters.filter.accessors import (
    AccessorRegistry,
    AccessorTable,
    FieldAccessor,
    catalog_accessors,
    default_registry,
    resolve_table,
)
from blueprint_filters.filter.definition import FilterCondition, FilterDefinition
from blueprint_filters.filter.operands import (
    IncompleteCondition,
    Operands,
    field_type_for,
    holds,
    is_blank,
    is_true,
    prepare_operands,
)
from blueprint_filters.filter.operators import FilterOperator, LogicalOperator, is_operator_allowed
from blueprint_filters.models.fields import FilterField, FilterFieldType
from blueprint_filters.utils import time as clock

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class _Context:
    field_types: Mapping[str, FilterFieldType]
    catalog_table: AccessorTable
    registry: AccessorRegistry
    table: AccessorTable | None
    now: datetime

    def accessor(self, item: Any, name: str) -> FieldAccessor | None:
        table = self.table
        if table is None:
            item_type = type(item)
            if isinstance(item, Mapping) and item_type not in self.registry:
                table = self.catalog_table
            else:
                table = self.registry.table_for(item_type)
        return table.get(name.casefold())


def evaluate(
    filter: FilterDefinition,
    fields: Iterable[FilterField],
    *,
    entity_type: type | None = None,
    registry: AccessorRegistry | None = None,
    now: datetime | None = None,
) -> Predicate:
    """Build an in-memory predicate for a filter tree.

    Args:
        filter: Filter tree to evaluate
        fields: Field catalog (types decide operand conversion)
        entity_type: Item type; taken from each item when omitted
        registry: Accessor registry (the default registry when omitted)
        now: Anchor for relative dates; captured once, defaults to the
            local time at the moment the predicate is built

    Returns:
        Callable returning True for matching items
    """
    if filter.is_empty:
        return lambda item: True

    fields = list(fields)
    registry = registry or default_registry
    context = _Context(
        field_types={f.name.casefold(): f.type for f in fields},
        catalog_table=catalog_accessors(fields),
        registry=registry,
        table=resolve_table(entity_type, fields, registry) if entity_type else None,
        now=now or clock.now(),
    )

    logger.debug(
        "filter_predicate_built",
        conditions=filter.total_condition_count,
        entity=entity_type.__name__ if entity_type else None,
    )

    def predicate(item: Any) -> bool:
        return _evaluate_group(item, filter, context)

    return predicate


def filter_items(
    items: Iterable[T],
    filter: FilterDefinition,
    fields: Iterable[FilterField],
    **kwargs: Any,
) -> list[T]:
    """Items matching ``filter``, in their original order."""
    predicate = evaluate(filter, fields, **kwargs)
    return [item for item in items if predicate(item)]


def _evaluate_group(item: Any, group: FilterDefinition, context: _Context) -> bool:
    results = [
        _evaluate_condition(item, condition, context)
        for condition in group.conditions
        if condition.field.strip()
    ]
    results.extend(
        _evaluate_group(item, nested, context) for nested in group.groups if not nested.is_empty
    )

    if not results:
        return True
    if group.operator is LogicalOperator.AND:
        return all(results)
    return any(results)


def _evaluate_condition(item: Any, condition: FilterCondition, context: _Context) -> bool:
    accessor = context.accessor(item, condition.field)
    if accessor is None:
        return False

    field_type = field_type_for(accessor, context.field_types.get(condition.field.casefold()))
    if not is_operator_allowed(condition.operator, field_type):
        return True

    try:
        operands = prepare_operands(condition, field_type, context.now)
    except IncompleteCondition:
        return True

    return _match(condition.operator, accessor, field_type, accessor.getter(item), operands)


def _match(
    op: FilterOperator,
    accessor: FieldAccessor,
    field_type: FilterFieldType,
    raw: Any,
    operands: Operands,
) -> bool:
    text = FilterFieldType.TEXT

    if op is FilterOperator.IS_EMPTY:
        return is_blank(raw)
    if op is FilterOperator.IS_NOT_EMPTY:
        return not is_blank(raw)
    if op is FilterOperator.IS_TRUE:
        return is_true(raw)
    if op is FilterOperator.IS_FALSE:
        return not is_true(raw)

    if op is FilterOperator.EQUALS:
        return holds(accessor, field_type, raw, lambda v: v == operands.primary)
    if op is FilterOperator.NOT_EQUALS:
        return not holds(accessor, field_type, raw, lambda v: v == operands.primary)

    if op is FilterOperator.CONTAINS:
        return holds(accessor, text, raw, lambda v: operands.search in v)
    if op is FilterOperator.NOT_CONTAINS:
        return not holds(accessor, text, raw, lambda v: operands.search in v)
    if op is FilterOperator.STARTS_WITH:
        return holds(accessor, text, raw, lambda v: v.startswith(operands.search))
    if op is FilterOperator.ENDS_WITH:
        return holds(accessor, text, raw, lambda v: v.endswith(operands.search))

    if op is FilterOperator.GREATER_THAN:
        return holds(accessor, field_type, raw, lambda v: v > operands.primary)
    if op is FilterOperator.LESS_THAN:
        return holds(accessor, field_type, raw, lambda v: v < operands.primary)
    if op is FilterOperator.GREATER_OR_EQUAL:
        return holds(accessor, field_type, raw, lambda v: v >= operands.primary)
    if op is FilterOperator.LESS_OR_EQUAL:
        return holds(accessor, field_type, raw, lambda v: v <= operands.primary)
    if op is FilterOperator.BETWEEN:
        return holds(
            accessor, field_type, raw, lambda v: operands.primary <= v <= operands.secondary
        )

    if op is FilterOperator.IN_LAST:
        cutoff, _ = operands.window
        return holds(accessor, field_type, raw, lambda v: v >= cutoff)
    if op is FilterOperator.IN_NEXT:
        start, cutoff = operands.window
        return holds(accessor, field_type, raw, lambda v: start <= v <= cutoff)
    if op is FilterOperator.DATE_IS:
        start, end = operands.window
        return holds(accessor, field_type, raw, lambda v: start <= v < end)
    if op is FilterOperator.DATE_IS_NOT:
        start, end = operands.window
        return not holds(accessor, field_type, raw, lambda v: start <= v < end)

    if op is FilterOperator.IN:
        if not operands.candidates:
            return True
        return holds(accessor, text, raw, lambda v: v in operands.candidates)
    if op is FilterOperator.NOT_IN:
        if not operands.candidates:
            return False
        return not holds(accessor, text, raw, lambda v: v in operands.candidates)

    return True
