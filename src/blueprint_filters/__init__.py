"""
Blueprint Filters

A structured, serializable boolean filter model. Filter trees built by a
UI (field comparisons combined with AND/OR) run either as a direct
in-memory predicate or as a compiled expression tree that can be pushed
down to SQLite, with the same results.

Features:
- Typed field catalog and per-type operator catalog
- Relative date windows (this week, last quarter, in the last 3 days)
- Direct predicate and compiled expression backends
- JSON wire format with conservative date parsing
- Saved filters and pandas query results over SQLite

Example:
    >>> from blueprint_filters import FilterCondition, FilterDefinition, evaluate
    >>>
    >>> definition = FilterDefinition().add(FilterCondition.between("total", 10, 20))
    >>> predicate = evaluate(definition, fields)
    >>> matching = [order for order in orders if predicate(order)]

For more information, run:
    $ blueprint-filters --help
"""

__version__ = "1.0.0"

# Filter model and backends (loaded before the expression package)
from blueprint_filters.filter import (
    CompiledFilter,
    FilterCondition,
    FilterDefinition,
    FilterOperator,
    LogicalOperator,
    compile_filter,
    deserialize,
    evaluate,
    filter_items,
    register_entity,
    serialize,
    validate_filter,
)
from blueprint_filters.filter.dates import DatePreset, InLastPeriod

# Configuration
from blueprint_filters.config.settings import Settings, get_settings
from blueprint_filters.errors import FilterError, FilterFormatError

# Field catalog
from blueprint_filters.models.fields import FilterField, FilterFieldType, load_fields

__all__ = [
    "CompiledFilter",
    "DatePreset",
    "FilterCondition",
    "FilterDefinition",
    "FilterError",
    "FilterField",
    "FilterFieldType",
    "FilterFormatError",
    "FilterOperator",
    "InLastPeriod",
    "LogicalOperator",
    "Settings",
    "__version__",
    "compile_filter",
    "deserialize",
    "evaluate",
    "filter_items",
    "get_settings",
    "load_fields",
    "register_entity",
    "serialize",
    "validate_filter",
]
