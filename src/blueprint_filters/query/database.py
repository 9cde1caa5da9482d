"""
SQLite database access for the query engine.

A thin wrapper around a ``sqlite3`` connection that creates item tables
from a field catalog and stores Python values in the representation the
SQL renderer compares against (see ``blueprint_filters.expr.sql``).

Example:
    >>> from blueprint_filters.query import SQLiteDatabase
    >>>
    >>> with SQLiteDatabase("data/orders.db") as db:
    ...     db.create_table("orders", fields)
    ...     db.insert_rows("orders", orders)
    ...     rows = db.query('SELECT * FROM "orders" LIMIT ?', (10,))
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

import structlog

from blueprint_filters.expr.sql import quote_identifier, to_sql_value
from blueprint_filters.models.fields import FilterField, FilterFieldType

logger = structlog.get_logger(__name__)

_COLUMN_TYPES = {
    FilterFieldType.TEXT: "TEXT",
    FilterFieldType.NUMBER: "REAL",
    FilterFieldType.DATE: "TEXT",
    FilterFieldType.DATETIME: "TEXT",
    FilterFieldType.BOOLEAN: "INTEGER",
    FilterFieldType.ENUM: "TEXT",
}


def _row_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)
    if is_dataclass(item) and not isinstance(item, type):
        return asdict(item)
    model_dump = getattr(item, "model_dump", None)
    if callable(model_dump):
        return model_dump()
    return dict(vars(item))


class SQLiteDatabase:
    """SQLite database holding filterable item tables and saved filters.

    Attributes:
        db_path: Path to the SQLite database file (":memory:" allowed)
        connection: Active database connection
    """

    def __init__(self, db_path: str | Path, *, timeout: float = 30.0):
        """Initialize database access.

        Args:
            db_path: Path to SQLite database file
            timeout: Connection timeout in seconds
        """
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._timeout = timeout
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get active database connection, creating if needed."""
        if self._connection is None:
            self._connect()
        return self._connection  # type: ignore

    def _connect(self) -> None:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = sqlite3.connect(self.db_path, timeout=self._timeout)

        # Return rows as dictionaries
        self._connection.row_factory = sqlite3.Row

    def query(self, sql: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
        """Execute a query and return results as dictionaries.

        Args:
            sql: SQL query string (use ? for parameters)
            params: Query parameters

        Returns:
            List of dictionaries (column name -> value)
        """
        cursor = self.connection.execute(sql, tuple(params))
        return [dict(row) for row in cursor.fetchall()]

    def execute(self, sql: str, params: Iterable[Any] = ()) -> int:
        """Execute a non-query SQL statement.

        Returns:
            Number of affected rows
        """
        cursor = self.connection.execute(sql, tuple(params))
        self.connection.commit()
        return cursor.rowcount

    def create_table(self, table: str, fields: Iterable[FilterField]) -> None:
        """Create an item table with one column per catalog field.

        Safe to call more than once.
        """
        fields = list(fields)
        columns = ", ".join(
            f"{quote_identifier(f.name)} {_COLUMN_TYPES[f.type]}" for f in fields
        )
        self.execute(f"CREATE TABLE IF NOT EXISTS {quote_identifier(table)} ({columns})")
        logger.debug("table_created", table=table, columns=len(fields))

    def insert_rows(self, table: str, items: Iterable[Any]) -> int:
        """Insert items (mappings, dataclasses, or models) into a table.

        Only keys matching existing columns are written.

        Returns:
            Number of rows inserted
        """
        info = self.query(f"PRAGMA table_info({quote_identifier(table)})")
        columns = [row["name"] for row in info]
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {quote_identifier(table)} "
            f"({', '.join(quote_identifier(c) for c in columns)}) VALUES ({placeholders})"
        )

        count = 0
        with self.connection:
            for item in items:
                row = _row_dict(item)
                self.connection.execute(sql, [to_sql_value(row.get(c)) for c in columns])
                count += 1

        logger.debug("rows_inserted", table=table, count=count)
        return count

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> SQLiteDatabase:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SQLiteDatabase({str(self.db_path)!r})"
