"""
Command-line interface for blueprint-filters.

This module provides the main CLI entry points using Click.

Commands:
- operators: List the operators available for each field type
- show: Pretty-print a serialized filter
- validate: Check a filter against a field catalog
- sql: Print the SQL WHERE clause a filter compiles to
- load: Load JSON rows into a database table
- apply: Run a filter (or a saved filter) against a database table

Filters are read from JSON files in the wire format; field catalogs are
JSON lists of ``{"name", "label", "type", "options"}`` objects.

Example:
    $ blueprint-filters --help
    $ blueprint-filters operators --type DateTime
    $ blueprint-filters sql filter.json --fields fields.json
    $ blueprint-filters apply filter.json --fields fields.json --limit 20
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from blueprint_filters import __version__
from blueprint_filters.config import get_settings, load_settings
from blueprint_filters.errors import FilterError
from blueprint_filters.filter import (
    FilterDefinition,
    compile_filter,
    deserialize,
    operator_label,
    operator_options,
    validate_filter,
)
from blueprint_filters.models.fields import FilterField, FilterFieldType, load_fields
from blueprint_filters.models.values import is_absent, unwrap
from blueprint_filters.query import FilterEngine, SQLiteDatabase
from blueprint_filters.utils.logging import get_logger, setup_logging

console = Console()

_FILTER_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _read_filter(path: Path) -> FilterDefinition:
    return deserialize(path.read_text(encoding="utf-8"))


def _fail(ctx: click.Context, message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="blueprint-filters")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Blueprint Filters CLI.

    Inspect, validate, and run structured filter trees.
    """
    ctx.ensure_object(dict)

    if config:
        settings = load_settings(config)
    else:
        settings = get_settings()

    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose

    log_level = "DEBUG" if verbose else settings.logging.level
    setup_logging(
        level=log_level,
        format=settings.logging.format,
        include_timestamp=settings.logging.include_timestamp,
    )


@main.command("operators")
@click.option(
    "--type",
    "field_type",
    type=click.Choice([t.value for t in FilterFieldType], case_sensitive=False),
    help="Only show one field type",
)
def operators(field_type: str | None) -> None:
    """List the operators available for each field type."""
    types = [FilterFieldType(field_type)] if field_type else list(FilterFieldType)

    table = Table(title="Operators by Field Type")
    table.add_column("Field Type", style="cyan")
    table.add_column("Operator")
    table.add_column("Label", style="green")

    for ftype in types:
        for op, label in operator_options(ftype):
            table.add_row(ftype.value, op.value, label)

    console.print(table)


def _describe_value(value: object) -> str:
    text = repr(value)
    return text if len(text) <= 60 else text[:57] + "..."


def _build_tree(node: Tree, filter: FilterDefinition, fields: dict[str, FilterField]) -> None:
    for condition in filter.conditions:
        field = fields.get(condition.field.casefold())
        label = operator_label(condition.operator, field.type if field else None)
        name = field.label if field else condition.field
        parts = [f"[cyan]{name}[/cyan]", label]
        if not is_absent(condition.value):
            parts.append(_describe_value(unwrap(condition.value)))
        if not is_absent(condition.value_end):
            parts.append(_describe_value(unwrap(condition.value_end)))
        node.add(" ".join(parts))
    for group in filter.groups:
        child = node.add(f"[bold]{group.operator.value}[/bold]")
        _build_tree(child, group, fields)


@main.command("show")
@click.argument("filter_file", type=_FILTER_FILE)
@click.option(
    "--fields",
    "fields_file",
    type=_FILTER_FILE,
    help="Field catalog (for labels)",
)
@click.pass_context
def show(ctx: click.Context, filter_file: Path, fields_file: Path | None) -> None:
    """Pretty-print a serialized filter."""
    try:
        filter = _read_filter(filter_file)
        fields = load_fields(fields_file) if fields_file else []
    except FilterError as e:
        _fail(ctx, str(e))
        return

    catalog = {f.name.casefold(): f for f in fields}
    tree = Tree(f"[bold]{filter.operator.value}[/bold]")
    _build_tree(tree, filter, catalog)
    console.print(tree)
    console.print(
        f"[dim]{filter.total_condition_count} conditions, depth {filter.depth}[/dim]"
    )


@main.command("validate")
@click.argument("filter_file", type=_FILTER_FILE)
@click.option("--fields", "fields_file", type=_FILTER_FILE, required=True, help="Field catalog")
@click.pass_context
def validate(ctx: click.Context, filter_file: Path, fields_file: Path) -> None:
    """Check a filter against a field catalog and the configured limits."""
    settings = ctx.obj["settings"]

    try:
        filter = _read_filter(filter_file)
        fields = load_fields(fields_file)
    except FilterError as e:
        _fail(ctx, str(e))
        return

    problems = validate_filter(
        filter,
        fields,
        max_conditions=settings.limits.max_conditions,
        max_depth=settings.limits.max_depth,
    )

    if problems:
        for problem in problems:
            console.print(f"[red]✗[/red] {problem}")
        ctx.exit(1)
        return

    console.print(f"[green]✓[/green] {filter_file.name} is valid")


@main.command("sql")
@click.argument("filter_file", type=_FILTER_FILE)
@click.option("--fields", "fields_file", type=_FILTER_FILE, required=True, help="Field catalog")
@click.pass_context
def sql(ctx: click.Context, filter_file: Path, fields_file: Path) -> None:
    """Print the SQL WHERE clause a filter compiles to."""
    try:
        filter = _read_filter(filter_file)
        fields = load_fields(fields_file)
    except FilterError as e:
        _fail(ctx, str(e))
        return

    where, params = compile_filter(filter, fields).to_sql()
    click.echo(where)
    click.echo(json.dumps(params))


@main.command("load")
@click.argument("rows_file", type=_FILTER_FILE)
@click.option("--fields", "fields_file", type=_FILTER_FILE, required=True, help="Field catalog")
@click.option("--table", help="Target table (defaults to database.table)")
@click.pass_context
def load(ctx: click.Context, rows_file: Path, fields_file: Path, table: str | None) -> None:
    """Load a JSON list of row objects into a database table."""
    settings = ctx.obj["settings"]
    table = table or settings.database.table

    try:
        fields = load_fields(fields_file)
        rows = json.loads(rows_file.read_text(encoding="utf-8"))
    except (FilterError, json.JSONDecodeError) as e:
        _fail(ctx, str(e))
        return

    if not isinstance(rows, list):
        _fail(ctx, "rows file must contain a JSON list")
        return

    with SQLiteDatabase(settings.database_path, timeout=settings.database.timeout_seconds) as db:
        db.create_table(table, fields)
        count = db.insert_rows(table, rows)

    get_logger(__name__).info("rows_loaded", table=table, count=count)
    console.print(f"[green]✓[/green] Loaded {count:,} rows into [cyan]{table}[/cyan]")


@main.command("apply")
@click.argument("filter_file", type=_FILTER_FILE, required=False)
@click.option("--fields", "fields_file", type=_FILTER_FILE, required=True, help="Field catalog")
@click.option("--table", help="Table to filter (defaults to database.table)")
@click.option("--saved", help="Apply a saved filter instead of FILTER_FILE")
@click.option("--save", "save_as", help="Save FILTER_FILE under this name")
@click.option("--order-by", help="Column to order by")
@click.option("--asc", is_flag=True, help="Ascending order")
@click.option("--limit", type=int, default=100, help="Limit results")
@click.pass_context
def apply(
    ctx: click.Context,
    filter_file: Path | None,
    fields_file: Path,
    table: str | None,
    saved: str | None,
    save_as: str | None,
    order_by: str | None,
    asc: bool,
    limit: int,
) -> None:
    """Run a filter against a database table."""
    settings = ctx.obj["settings"]
    table = table or settings.database.table

    if not (filter_file or saved):
        _fail(ctx, "give a FILTER_FILE or --saved NAME")
        return

    db_path = settings.database_path
    if not db_path.exists():
        _fail(ctx, f"Database not found: {db_path}")
        return

    try:
        fields = load_fields(fields_file)
        with SQLiteDatabase(db_path, timeout=settings.database.timeout_seconds) as db:
            engine = FilterEngine(
                db,
                table,
                fields,
                max_conditions=settings.limits.max_conditions,
                max_depth=settings.limits.max_depth,
            )
            if saved:
                filter = engine.load_filter(saved)
                if filter is None:
                    raise FilterError(f"Filter not found: {saved}")
                title = saved
            else:
                filter = _read_filter(filter_file)
                title = filter_file.name
            if save_as:
                engine.save_filter(save_as, filter)
                console.print(f"[green]✓[/green] Saved as [cyan]{save_as}[/cyan]")

            total = engine.count(filter)
            df = engine.apply(filter, order_by=order_by, order_desc=not asc, limit=limit)
    except FilterError as e:
        _fail(ctx, str(e))
        return

    console.print(f"[bold]{title}[/bold] ({total:,} matching rows)")
    console.print()

    if len(df) > 0:
        result = Table(show_lines=True)
        for col in df.columns[:10]:
            result.add_column(str(col), overflow="fold")

        for _, row in df.head(20).iterrows():
            result.add_row(*[str(v)[:50] for v in row.values[:10]])

        console.print(result)

        if total > 20:
            console.print(f"[dim]... and {total - 20} more rows[/dim]")


if __name__ == "__main__":
    main()
