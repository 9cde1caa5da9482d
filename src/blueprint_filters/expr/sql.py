"""
SQL renderer for expression trees.

Lowers a compiled expression to a parameterised SQLite ``WHERE`` clause.
Only primitives SQLite evaluates itself are emitted, so the whole filter
runs inside the database:

    LOWER, instr, substr, length, CAST(.. AS TEXT), strftime, TRIM, IN, BETWEEN

Rows are expected in the storage representation produced by
``to_sql_value``: ISO-8601 text for dates, 0/1 for booleans, enum values
as text.

Note:
    SQLite's built-in ``LOWER`` folds ASCII letters only, so
    case-insensitive matching of non-ASCII text can differ from the
    in-process backends.

Example:
    >>> renderer = SQLRenderer()
    >>> sql, params = renderer.render(compiled.expression)
    >>> cursor.execute(f"SELECT * FROM orders WHERE {sql}", params)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from blueprint_filters.expr.nodes import (
    And,
    Between,
    Compare,
    FieldAccess,
    HasValue,
    Literal,
    Node,
    Not,
    Or,
    SetMembership,
    StringOp,
    StringOpKind,
)
from blueprint_filters.filter.accessors import to_text

# Characters str.strip() removes that SQLite TRIM does not by default
_BLANK_CHARS = "char(32, 9, 10, 11, 12, 13)"

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%f"


def quote_identifier(name: str) -> str:
    """Quote a column or table name for SQLite."""
    return '"' + name.replace('"', '""') + '"'


def to_sql_value(value: Any) -> Any:
    """Storage representation of a Python value in a SQLite row."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return to_text(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def _timestamp_param(value: datetime) -> str:
    # Matches strftime('%f'), which keeps milliseconds
    return value.strftime("%Y-%m-%d %H:%M:%S") + f".{value.microsecond // 1000:03d}"


class SQLRenderer:
    """Render expression trees as SQLite ``WHERE`` fragments.

    Args:
        columns: Optional field name -> column name mapping; fields not
            listed use their own name
    """

    def __init__(self, columns: Mapping[str, str] | None = None):
        self._columns = {k.casefold(): v for k, v in (columns or {}).items()}

    def render(self, node: Node) -> tuple[str, list[Any]]:
        """Render a node.

        Returns:
            Tuple of (sql_fragment, parameters)
        """
        params: list[Any] = []
        sql = self._render(node, params)
        return sql, params

    # ------------------------------------------------------------------

    def _render(self, node: Node, params: list[Any]) -> str:
        if isinstance(node, Literal):
            return "1=1" if node.value else "1=0"

        if isinstance(node, And):
            return "(" + " AND ".join(self._render(c, params) for c in node.children) + ")"
        if isinstance(node, Or):
            return "(" + " OR ".join(self._render(c, params) for c in node.children) + ")"
        if isinstance(node, Not):
            return f"NOT ({self._render(node.child, params)})"

        if isinstance(node, HasValue):
            column = self._column(node.field)
            if node.require_text:
                return f"({column} IS NOT NULL AND TRIM({column}, {_BLANK_CHARS}) <> '')"
            return f"{column} IS NOT NULL"

        if isinstance(node, Compare):
            params.append(self._param(node.literal.value))
            return f"{self._operand(node.field)} {node.op.value} ?"

        if isinstance(node, Between):
            params.append(self._param(node.low.value))
            params.append(self._param(node.high.value))
            return f"{self._operand(node.field)} BETWEEN ? AND ?"

        if isinstance(node, StringOp):
            text = self._lowered(node.field)
            search = node.literal.value
            if node.op is StringOpKind.CONTAINS:
                params.append(search)
                return f"instr({text}, ?) > 0"
            if node.op is StringOpKind.STARTS_WITH:
                params.extend([search, search])
                return f"substr({text}, 1, length(?)) = ?"
            params.extend([search, search])
            return f"substr({text}, -length(?)) = ?"

        if isinstance(node, SetMembership):
            if not node.values:
                return "1=0"
            params.extend(node.values)
            placeholders = ", ".join("?" for _ in node.values)
            return f"{self._lowered(node.field)} IN ({placeholders})"

        raise TypeError(f"Cannot render expression node: {type(node).__name__}")

    def _column(self, field: FieldAccess) -> str:
        name = self._columns.get(field.name.casefold(), field.name)
        return quote_identifier(name)

    def _lowered(self, field: FieldAccess) -> str:
        column = self._column(field)
        if field.field_type.is_textual:
            return f"LOWER({column})"
        return f"LOWER(CAST({column} AS TEXT))"

    def _operand(self, field: FieldAccess) -> str:
        """Column expression in the field's comparison type."""
        if field.field_type.is_temporal:
            return f"strftime('{_TIMESTAMP_FORMAT}', {self._column(field)})"
        if field.field_type.is_textual:
            return self._lowered(field)
        return self._column(field)

    @staticmethod
    def _param(value: Any) -> Any:
        if isinstance(value, datetime):
            return _timestamp_param(value)
        if isinstance(value, date):
            return _timestamp_param(datetime.combine(value, time.min))
        if isinstance(value, bool):
            return int(value)
        return value
