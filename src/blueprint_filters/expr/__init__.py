"""
Expression tree representation of compiled filters.

Modules:
    nodes: Immutable expression nodes
    interpret: In-process evaluation of an expression tree
    sql: Lowering to parameterised SQLite WHERE clauses
"""

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
    walk,
)
from blueprint_filters.expr.sql import SQLRenderer, quote_identifier, to_sql_value

__all__ = [
    "FALSE",
    "TRUE",
    "And",
    "Between",
    "Compare",
    "CompareOp",
    "FieldAccess",
    "HasValue",
    "Literal",
    "Node",
    "Not",
    "Or",
    "SQLRenderer",
    "SetMembership",
    "StringOp",
    "StringOpKind",
    "conjoin",
    "describe",
    "evaluate_node",
    "quote_identifier",
    "to_sql_value",
    "walk",
]
