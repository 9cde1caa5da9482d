"""
SQLite query engine for filter trees.

Example:
    >>> from blueprint_filters.query import FilterEngine, SQLiteDatabase
    >>>
    >>> db = SQLiteDatabase("data/orders.db")
    >>> engine = FilterEngine(db, "orders", fields)
    >>> df = engine.apply(definition, order_by="created", limit=100)
    >>> print(f"Found {len(df)} orders")
"""

from blueprint_filters.query.database import SQLiteDatabase
from blueprint_filters.query.engine import FilterEngine

__all__ = [
    "FilterEngine",
    "SQLiteDatabase",
]
