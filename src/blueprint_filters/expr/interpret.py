"""
In-process renderer for expression trees.

Evaluates a compiled expression against one item using the same value
normalisation as the direct backend.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import Any

from blueprint_filters.expr.nodes import (
    And,
    Between,
    Compare,
    CompareOp,
    HasValue,
    Literal,
    Node,
    Not,
    Or,
    SetMembership,
    StringOp,
    StringOpKind,
)
from blueprint_filters.filter.operands import holds, is_blank
from blueprint_filters.models.fields import FilterFieldType

_COMPARISONS: dict[CompareOp, Callable[[Any, Any], bool]] = {
    CompareOp.EQ: operator.eq,
    CompareOp.NE: operator.ne,
    CompareOp.GT: operator.gt,
    CompareOp.GE: operator.ge,
    CompareOp.LT: operator.lt,
    CompareOp.LE: operator.le,
}

_STRING_TESTS: dict[StringOpKind, Callable[[str, str], bool]] = {
    StringOpKind.CONTAINS: lambda value, search: search in value,
    StringOpKind.STARTS_WITH: str.startswith,
    StringOpKind.ENDS_WITH: str.endswith,
}


def evaluate_node(node: Node, item: Any) -> bool:
    """Evaluate an expression tree against a single item.

    Args:
        node: Root of the expression
        item: Entity instance or mapping row

    Returns:
        True if the item satisfies the expression

    Raises:
        TypeError: If the tree contains an unknown node type
    """
    if isinstance(node, And):
        return all(evaluate_node(child, item) for child in node.children)
    if isinstance(node, Or):
        return any(evaluate_node(child, item) for child in node.children)
    if isinstance(node, Not):
        return not evaluate_node(node.child, item)
    if isinstance(node, Literal):
        return bool(node.value)

    if isinstance(node, HasValue):
        raw = node.field.accessor.getter(item)
        if node.require_text:
            return not is_blank(raw)
        return raw is not None

    if isinstance(node, Compare):
        compare = _COMPARISONS[node.op]
        literal = node.literal.value
        return _holds(node.field, node.field.field_type, item, lambda v: compare(v, literal))

    if isinstance(node, StringOp):
        test = _STRING_TESTS[node.op]
        search = node.literal.value
        return _holds(node.field, FilterFieldType.TEXT, item, lambda v: test(v, search))

    if isinstance(node, Between):
        low, high = node.low.value, node.high.value
        return _holds(node.field, node.field.field_type, item, lambda v: low <= v <= high)

    if isinstance(node, SetMembership):
        values = node.values
        return _holds(node.field, FilterFieldType.TEXT, item, lambda v: v in values)

    raise TypeError(f"Cannot evaluate expression node: {type(node).__name__}")


def _holds(field, field_type: FilterFieldType, item: Any, test: Callable[[Any], bool]) -> bool:
    accessor = field.accessor
    return holds(accessor, field_type, accessor.getter(item), test)
