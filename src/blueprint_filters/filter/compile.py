"""
Filter compilation.

Lowers a filter tree to an expression tree (see ``blueprint_filters.expr``)
that can be evaluated in process or rendered as SQL. Relative dates are
resolved to concrete bounds and text operands are lower-cased once, at
compile time, so renderers only ever see literals.

Example:
    >>> compiled = compile_filter(definition, fields, Order)
    >>> matching = [order for order in orders if compiled(order)]
    >>> where, params = compiled.to_sql()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from blueprint_filters.expr.interpret import evaluate_node
from blueprint_filters.expr.nodes import (
    FALSE,
    TRUE,
    And,
    Between,
    Compare,
    CompareOp,
    FieldAccess,
    HasValue,
    Literal,
    Node,
    Not,
    Or,
    SetMembership,
    StringOp,
    StringOpKind,
    conjoin,
    describe,
)
from blueprint_filters.expr.sql import SQLRenderer
from blueprint_filters.filter.accessors import (
    AccessorRegistry,
    AccessorTable,
    default_registry,
    resolve_table,
)
from blueprint_filters.filter.definition import FilterCondition, FilterDefinition
from blueprint_filters.filter.operands import (
    IncompleteCondition,
    Operands,
    field_type_for,
    prepare_operands,
)
from blueprint_filters.filter.operators import FilterOperator, LogicalOperator, is_operator_allowed
from blueprint_filters.models.fields import FilterField, FilterFieldType
from blueprint_filters.utils import time as clock

logger = structlog.get_logger(__name__)

_ORDERING = {
    FilterOperator.EQUALS: CompareOp.EQ,
    FilterOperator.GREATER_THAN: CompareOp.GT,
    FilterOperator.LESS_THAN: CompareOp.LT,
    FilterOperator.GREATER_OR_EQUAL: CompareOp.GE,
    FilterOperator.LESS_OR_EQUAL: CompareOp.LE,
}

_STRING_OPS = {
    FilterOperator.CONTAINS: StringOpKind.CONTAINS,
    FilterOperator.NOT_CONTAINS: StringOpKind.CONTAINS,
    FilterOperator.STARTS_WITH: StringOpKind.STARTS_WITH,
    FilterOperator.ENDS_WITH: StringOpKind.ENDS_WITH,
}


@dataclass(frozen=True)
class CompiledFilter:
    """A filter lowered to an expression tree.

    Attributes:
        expression: Root node of the expression
        entity_type: Item type the accessors were resolved against
            (None for mapping rows)
    """

    expression: Node
    entity_type: type | None = None

    def __call__(self, item: Any) -> bool:
        return evaluate_node(self.expression, item)

    def to_sql(self, columns: Mapping[str, str] | None = None) -> tuple[str, list[Any]]:
        """Render as a SQLite WHERE clause.

        Args:
            columns: Optional field name -> column name mapping

        Returns:
            Tuple of (where_clause, parameters)
        """
        return SQLRenderer(columns).render(self.expression)

    def describe(self) -> str:
        return describe(self.expression)


def compile_filter(
    filter: FilterDefinition,
    fields: Iterable[FilterField],
    entity_type: type | None = None,
    *,
    registry: AccessorRegistry | None = None,
    now: datetime | None = None,
) -> CompiledFilter:
    """Compile a filter tree for an entity type.

    Args:
        filter: Filter tree
        fields: Field catalog
        entity_type: Item type; mapping rows keyed by the catalog when omitted
        registry: Accessor registry (the default registry when omitted)
        now: Anchor for relative dates (defaults to the local time now)

    Returns:
        CompiledFilter usable as a predicate or as SQL
    """
    fields = list(fields)
    compiler = _Compiler(
        table=resolve_table(entity_type, fields, registry or default_registry),
        field_types={f.name.casefold(): f.type for f in fields},
        now=now or clock.now(),
    )
    expression = compiler.group(filter)

    logger.debug(
        "filter_compiled",
        conditions=filter.total_condition_count,
        entity=entity_type.__name__ if entity_type else None,
        expression=describe(expression),
    )
    return CompiledFilter(expression, entity_type)


@dataclass(frozen=True)
class _Compiler:
    table: AccessorTable
    field_types: Mapping[str, FilterFieldType]
    now: datetime

    def group(self, group: FilterDefinition) -> Node:
        children = [self.condition(c) for c in group.conditions if c.field.strip()]
        children.extend(self.group(g) for g in group.groups if not g.is_empty)

        if not children:
            return TRUE
        if len(children) == 1:
            return children[0]
        if group.operator is LogicalOperator.AND:
            return And(tuple(children))
        return Or(tuple(children))

    def condition(self, condition: FilterCondition) -> Node:
        accessor = self.table.get(condition.field.casefold())
        if accessor is None:
            logger.debug("unknown_field", field=condition.field)
            return FALSE

        field_type = field_type_for(accessor, self.field_types.get(condition.field.casefold()))
        if not is_operator_allowed(condition.operator, field_type):
            logger.debug(
                "operator_not_allowed",
                field=condition.field,
                operator=condition.operator.value,
                field_type=field_type.value,
            )
            return TRUE

        try:
            operands = prepare_operands(condition, field_type, self.now)
        except IncompleteCondition as exc:
            logger.debug("condition_incomplete", field=condition.field, reason=str(exc))
            return TRUE

        field = FieldAccess(accessor, field_type)
        guard = HasValue(field) if accessor.nullable else None
        return _lower(condition.operator, field, guard, operands)


def _lower(op: FilterOperator, field: FieldAccess, guard: Node | None, operands: Operands) -> Node:
    if op is FilterOperator.IS_EMPTY:
        return Not(HasValue(field, require_text=True))
    if op is FilterOperator.IS_NOT_EMPTY:
        return HasValue(field, require_text=True)
    if op is FilterOperator.IS_TRUE:
        return conjoin(guard, Compare(CompareOp.EQ, field, Literal(True)))
    if op is FilterOperator.IS_FALSE:
        return Not(conjoin(guard, Compare(CompareOp.EQ, field, Literal(True))))

    if op in _ORDERING:
        return conjoin(guard, Compare(_ORDERING[op], field, Literal(operands.primary)))
    if op is FilterOperator.NOT_EQUALS:
        return Not(conjoin(guard, Compare(CompareOp.EQ, field, Literal(operands.primary))))
    if op is FilterOperator.BETWEEN:
        return conjoin(
            guard, Between(field, Literal(operands.primary), Literal(operands.secondary))
        )

    if op in _STRING_OPS:
        node = conjoin(guard, StringOp(_STRING_OPS[op], field, Literal(operands.search)))
        return Not(node) if op is FilterOperator.NOT_CONTAINS else node

    if op is FilterOperator.IN_LAST:
        cutoff, _ = operands.window
        return conjoin(guard, Compare(CompareOp.GE, field, Literal(cutoff)))
    if op is FilterOperator.IN_NEXT:
        start, cutoff = operands.window
        return conjoin(guard, Between(field, Literal(start), Literal(cutoff)))
    if op in (FilterOperator.DATE_IS, FilterOperator.DATE_IS_NOT):
        start, end = operands.window
        node = conjoin(
            guard,
            Compare(CompareOp.GE, field, Literal(start)),
            Compare(CompareOp.LT, field, Literal(end)),
        )
        return Not(node) if op is FilterOperator.DATE_IS_NOT else node

    if op is FilterOperator.IN:
        if not operands.candidates:
            return TRUE
        return conjoin(guard, SetMembership(field, operands.candidates))
    if op is FilterOperator.NOT_IN:
        if not operands.candidates:
            return FALSE
        return Not(conjoin(guard, SetMembership(field, operands.candidates)))

    return TRUE
