"""
Expression tree nodes.

A compiled filter is a tree of immutable nodes. Every leaf that reads an
item goes through a ``FieldAccess``; every leaf that compares carries its
operand as a ``Literal`` already converted to the field's comparison type
(text lower-cased, numbers as float, dates as naive datetimes).

Null handling is explicit: a ``HasValue`` node guards comparisons on
nullable fields, so a renderer never has to guess how a comparison against
a missing value behaves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from blueprint_filters.utils.enums import SymbolicEnum

if TYPE_CHECKING:
    from blueprint_filters.filter.accessors import FieldAccessor
    from blueprint_filters.models.fields import FilterFieldType


class CompareOp(SymbolicEnum):
    EQ = "="
    NE = "<>"
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


class StringOpKind(SymbolicEnum):
    CONTAINS = "Contains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"


class Node:
    """Base class of expression nodes."""

    __slots__ = ()


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class FieldAccess(Node):
    """Read of one field, typed for comparison."""

    accessor: FieldAccessor
    field_type: FilterFieldType

    @property
    def name(self) -> str:
        return self.accessor.name


@dataclass(frozen=True)
class Compare(Node):
    op: CompareOp
    field: FieldAccess
    literal: Literal


@dataclass(frozen=True)
class StringOp(Node):
    """Case-insensitive text test; ``literal`` is already lower-cased."""

    op: StringOpKind
    field: FieldAccess
    literal: Literal


@dataclass(frozen=True)
class Between(Node):
    """Inclusive range test."""

    field: FieldAccess
    low: Literal
    high: Literal


@dataclass(frozen=True)
class SetMembership(Node):
    """Case-insensitive membership; ``values`` are already lower-cased."""

    field: FieldAccess
    values: tuple[str, ...]


@dataclass(frozen=True)
class HasValue(Node):
    """True when the field is not null (and, with ``require_text``, not blank)."""

    field: FieldAccess
    require_text: bool = False


@dataclass(frozen=True)
class And(Node):
    children: tuple[Node, ...]


@dataclass(frozen=True)
class Or(Node):
    children: tuple[Node, ...]


@dataclass(frozen=True)
class Not(Node):
    child: Node


TRUE = Literal(True)
FALSE = Literal(False)


def conjoin(*nodes: Node | None) -> Node:
    """AND together the given nodes, dropping ``None`` placeholders."""
    present = tuple(node for node in nodes if node is not None)
    if not present:
        return TRUE
    if len(present) == 1:
        return present[0]
    return And(present)


def walk(node: Node):
    """Yield ``node`` and all of its descendants, depth first."""
    yield node
    if isinstance(node, (And, Or)):
        for child in node.children:
            yield from walk(child)
    elif isinstance(node, Not):
        yield from walk(node.child)
    elif isinstance(node, (Compare, StringOp, Between, SetMembership, HasValue)):
        yield node.field


def describe(node: Node) -> str:
    """Compact human-readable rendering, used in logs and the CLI."""
    if isinstance(node, Literal):
        return repr(node.value)
    if isinstance(node, FieldAccess):
        return node.name
    if isinstance(node, Compare):
        return f"{node.field.name} {node.op.value} {node.literal.value!r}"
    if isinstance(node, StringOp):
        return f"{node.field.name} {node.op.value} {node.literal.value!r}"
    if isinstance(node, Between):
        return f"{node.field.name} between {node.low.value!r} and {node.high.value!r}"
    if isinstance(node, SetMembership):
        return f"{node.field.name} in {list(node.values)!r}"
    if isinstance(node, HasValue):
        return f"has_value({node.field.name})"
    if isinstance(node, And):
        return "(" + " AND ".join(describe(c) for c in node.children) + ")"
    if isinstance(node, Or):
        return "(" + " OR ".join(describe(c) for c in node.children) + ")"
    if isinstance(node, Not):
        return f"NOT {describe(node.child)}"
    raise TypeError(f"Unknown expression node: {type(node).__name__}")
