"""
Filter engine over SQLite tables.

Compiles filter trees to SQL so filtering runs inside the database, and
keeps named filters in a ``saved_filters`` table using the JSON wire
format.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from blueprint_filters.errors import FilterError
from blueprint_filters.expr.sql import quote_identifier
from blueprint_filters.filter.compile import CompiledFilter, compile_filter
from blueprint_filters.filter.definition import FilterDefinition
from blueprint_filters.filter.serialization import deserialize, serialize
from blueprint_filters.filter.validation import validate_filter
from blueprint_filters.models.fields import FilterField
from blueprint_filters.query.database import SQLiteDatabase

if TYPE_CHECKING:
    import pandas as pd

logger = structlog.get_logger(__name__)


class FilterEngine:
    """Engine for applying filter trees to a table.

    Usage:
        engine = FilterEngine(database, "orders", fields)

        definition = FilterDefinition()
        definition.add(FilterCondition.ge("total", 100))
        definition.add(FilterCondition.date_is("created", DatePreset.THIS_MONTH))
        df = engine.apply(definition, order_by="created")

        # Save and reuse
        engine.save_filter("big_orders", definition)
        df = engine.apply_saved("big_orders")
    """

    def __init__(
        self,
        database: SQLiteDatabase,
        table: str,
        fields: Iterable[FilterField],
        entity_type: type | None = None,
        *,
        columns: Mapping[str, str] | None = None,
        max_conditions: int | None = None,
        max_depth: int | None = None,
    ):
        """Initialize filter engine.

        Args:
            database: Database holding ``table``
            table: Table the filters apply to
            fields: Field catalog describing the table's columns
            entity_type: Registered entity type whose accessors describe
                the fields (columns are keyed by the catalog when omitted)
            columns: Optional field name -> column name mapping
            max_conditions: Condition limit enforced when saving
            max_depth: Nesting limit enforced when saving
        """
        self.database = database
        self.table = table
        self.fields = list(fields)
        self.entity_type = entity_type
        self.columns = dict(columns or {})
        self.max_conditions = max_conditions
        self.max_depth = max_depth
        self._ensure_filter_table()

    def _column(self, name: str) -> str:
        # Same case-insensitive lookup the SQL renderer uses for field names
        folded = {field.casefold(): column for field, column in self.columns.items()}
        return folded.get(name.casefold(), name)

    def _ensure_filter_table(self) -> None:
        """Ensure saved filters table exists."""
        self.database.execute(
            """
            CREATE TABLE IF NOT EXISTS saved_filters (
                name TEXT PRIMARY KEY,
                description TEXT,
                filter_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """
        )

    def compile(self, filter: FilterDefinition, *, now: datetime | None = None) -> CompiledFilter:
        return compile_filter(filter, self.fields, self.entity_type, now=now)

    def where(
        self, filter: FilterDefinition, *, now: datetime | None = None
    ) -> tuple[str, list[Any]]:
        """WHERE clause (without the keyword) and parameters for a filter."""
        return self.compile(filter, now=now).to_sql(self.columns)

    def to_sql(
        self,
        filter: FilterDefinition,
        order_by: str | None = None,
        order_desc: bool = True,
        limit: int | None = None,
        *,
        now: datetime | None = None,
    ) -> tuple[str, list[Any]]:
        """Generate a SELECT statement for a filter.

        Args:
            filter: Filter tree
            order_by: Column to order by
            order_desc: Descending order
            limit: Maximum rows

        Returns:
            Tuple of (SQL query, parameters)
        """
        where, params = self.where(filter, now=now)
        sql = f"SELECT * FROM {quote_identifier(self.table)} WHERE {where}"

        if order_by:
            direction = "DESC" if order_desc else "ASC"
            column = self._column(order_by)
            sql += f" ORDER BY {quote_identifier(column)} {direction}"

        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))

        return sql, params

    def apply(
        self,
        filter: FilterDefinition,
        order_by: str | None = None,
        order_desc: bool = True,
        limit: int | None = None,
        *,
        now: datetime | None = None,
    ) -> pd.DataFrame:
        """Apply a filter tree to the table.

        Returns:
            DataFrame of matching rows
        """
        import pandas as pd

        sql, params = self.to_sql(filter, order_by, order_desc, limit, now=now)
        rows = self.database.query(sql, params)

        logger.debug(
            "filter_applied",
            table=self.table,
            conditions=filter.total_condition_count,
            results=len(rows),
        )

        return pd.DataFrame(rows)

    def count(self, filter: FilterDefinition, *, now: datetime | None = None) -> int:
        """Number of rows matching a filter."""
        where, params = self.where(filter, now=now)
        rows = self.database.query(
            f"SELECT COUNT(*) AS n FROM {quote_identifier(self.table)} WHERE {where}", params
        )
        return int(rows[0]["n"])

    def save_filter(self, name: str, filter: FilterDefinition, description: str = "") -> None:
        """Save a filter tree for later use.

        Args:
            name: Unique filter name (an existing filter is replaced)
            filter: Filter tree
            description: Free-text description

        Raises:
            FilterError: If the filter does not fit the field catalog or limits
        """
        problems = validate_filter(filter, self.fields, self.max_conditions, self.max_depth)
        if problems:
            raise FilterError(f"Cannot save filter {name!r}: " + "; ".join(problems))

        now = datetime.now().isoformat()
        filter_json = serialize(filter, indent=None)

        self.database.execute(
            """
            INSERT INTO saved_filters (name, description, filter_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (name) DO UPDATE SET
                description = excluded.description,
                filter_json = excluded.filter_json,
                updated_at = excluded.updated_at
            """,
            (name, description, filter_json, now, now),
        )

        logger.info("filter_saved", name=name, conditions=filter.total_condition_count)

    def load_filter(self, name: str) -> FilterDefinition | None:
        """Load a saved filter tree.

        Returns:
            FilterDefinition or None if not found
        """
        rows = self.database.query(
            "SELECT filter_json FROM saved_filters WHERE name = ?",
            (name,),
        )

        if not rows:
            return None

        return deserialize(rows[0]["filter_json"])

    def apply_saved(self, name: str, **kwargs: Any) -> pd.DataFrame:
        """Apply a saved filter by name.

        Raises:
            FilterError: If filter not found
        """
        filter = self.load_filter(name)
        if filter is None:
            raise FilterError(f"Filter not found: {name}")
        return self.apply(filter, **kwargs)

    def list_saved(self) -> list[dict[str, Any]]:
        """List all saved filters.

        Returns:
            List of filter info dicts
        """
        return self.database.query(
            "SELECT name, description, created_at, updated_at FROM saved_filters ORDER BY name"
        )

    def delete_filter(self, name: str) -> bool:
        """Delete a saved filter.

        Returns:
            True if deleted, False if not found
        """
        rows_affected = self.database.execute(
            "DELETE FROM saved_filters WHERE name = ?",
            (name,),
        )
        if rows_affected:
            logger.info("filter_deleted", name=name)
        return rows_affected > 0
