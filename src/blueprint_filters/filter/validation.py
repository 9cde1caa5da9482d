"""
Filter validation against a field catalog.

Evaluation tolerates everything a user can build; validation is for
callers that want to report problems before saving or applying a filter
(the CLI ``validate`` command, saved filter storage).
"""

from __future__ import annotations

from collections.abc import Iterable

from blueprint_filters.filter.definition import FilterDefinition
from blueprint_filters.filter.operators import is_operator_allowed, operator_label
from blueprint_filters.models.fields import FilterField


def validate_filter(
    filter: FilterDefinition,
    fields: Iterable[FilterField],
    max_conditions: int | None = None,
    max_depth: int | None = None,
) -> list[str]:
    """Check a filter tree against the field catalog and size limits.

    Args:
        filter: Filter tree to check
        fields: Field catalog
        max_conditions: Maximum total number of conditions (unbounded if None)
        max_depth: Maximum group nesting depth (unbounded if None)

    Returns:
        List of problems; empty if the filter is valid
    """
    catalog = {f.name.casefold(): f for f in fields}
    problems: list[str] = []

    count = filter.total_condition_count
    if max_conditions is not None and count > max_conditions:
        problems.append(f"Filter has {count} conditions (limit {max_conditions})")

    depth = filter.depth
    if max_depth is not None and depth > max_depth:
        problems.append(f"Filter is nested {depth} levels deep (limit {max_depth})")

    for condition in filter.iter_conditions():
        if not condition.field.strip():
            continue
        field = catalog.get(condition.field.casefold())
        if field is None:
            problems.append(f"Unknown field: {condition.field}")
            continue
        if not is_operator_allowed(condition.operator, field.type):
            problems.append(
                f"Operator '{operator_label(condition.operator)}' is not available "
                f"for {field.type.value} field {field.name}"
            )

    return problems
