"""
Structured filter trees and their evaluation backends.

A filter is a tree of field comparisons combined with AND/OR. It can be
run two ways with the same results:

- ``evaluate``: a plain predicate over already-materialised items
- ``compile_filter``: an expression tree that runs in process or renders
  as a SQLite WHERE clause, so filtering happens inside the database

Example using the direct predicate:
    >>> from blueprint_filters.filter import FilterCondition, FilterDefinition, evaluate
    >>>
    >>> definition = FilterDefinition()
    >>> definition.add(FilterCondition.contains("customer", "acme"))
    >>> definition.add(FilterCondition.date_is("created", DatePreset.THIS_MONTH))
    >>>
    >>> predicate = evaluate(definition, fields)
    >>> matching = [order for order in orders if predicate(order)]

Example pushing the same filter down to SQL:
    >>> compiled = compile_filter(definition, fields)
    >>> where, params = compiled.to_sql()
"""

# Leaf modules load before compile, which pulls in blueprint_filters.expr
from blueprint_filters.filter.accessors import (
    AccessorRegistry,
    FieldAccessor,
    ValueKind,
    catalog_accessors,
    default_registry,
    register_entity,
)
from blueprint_filters.filter.dates import (
    DatePreset,
    InLastPeriod,
    in_last_window,
    in_next_window,
    resolve_preset,
)
from blueprint_filters.filter.definition import FilterCondition, FilterDefinition
from blueprint_filters.filter.operands import IncompleteCondition
from blueprint_filters.filter.operators import (
    OPERATORS_BY_TYPE,
    FilterOperator,
    LogicalOperator,
    is_date_preset,
    is_operator_allowed,
    is_range,
    is_relative_date,
    is_set,
    is_valueless,
    operator_label,
    operator_options,
    operators_for,
)
from blueprint_filters.filter.evaluate import evaluate, filter_items
from blueprint_filters.filter.compile import CompiledFilter, compile_filter
from blueprint_filters.filter.serialization import deserialize, from_dict, serialize, to_dict
from blueprint_filters.filter.validation import validate_filter

__all__ = [
    "OPERATORS_BY_TYPE",
    "AccessorRegistry",
    "CompiledFilter",
    "DatePreset",
    "FieldAccessor",
    "FilterCondition",
    "FilterDefinition",
    "FilterOperator",
    "InLastPeriod",
    "IncompleteCondition",
    "LogicalOperator",
    "ValueKind",
    "catalog_accessors",
    "compile_filter",
    "default_registry",
    "deserialize",
    "evaluate",
    "filter_items",
    "from_dict",
    "in_last_window",
    "in_next_window",
    "is_date_preset",
    "is_operator_allowed",
    "is_range",
    "is_relative_date",
    "is_set",
    "is_valueless",
    "operator_label",
    "operator_options",
    "operators_for",
    "register_entity",
    "resolve_preset",
    "serialize",
    "to_dict",
    "validate_filter",
]
