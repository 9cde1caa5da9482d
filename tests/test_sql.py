"""
Tests for SQL rendering and for agreement between the evaluation backends.

Every case in ``CASES`` runs four ways over the same orders:

- the direct predicate over dataclass instances
- the direct predicate over dict rows
- the compiled expression evaluated in process
- the compiled expression rendered as SQL and run by SQLite
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, date, datetime

import pytest

from blueprint_filters.expr import (
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
    SetMembership,
    SQLRenderer,
    StringOp,
    StringOpKind,
    quote_identifier,
    to_sql_value,
)
from blueprint_filters.filter import (
    DatePreset,
    FilterCondition,
    FilterDefinition,
    FilterOperator,
    InLastPeriod,
    LogicalOperator,
    compile_filter,
    evaluate,
)
from blueprint_filters.filter.accessors import FieldAccessor, ValueKind
from blueprint_filters.models.fields import FilterFieldType
from tests.fixtures import Order, Status


def column(name: str, field_type: FilterFieldType) -> FieldAccess:
    return FieldAccess(FieldAccessor.key(name, ValueKind.for_field_type(field_type)), field_type)


TOTAL = column("total", FilterFieldType.NUMBER)
NOTES = column("notes", FilterFieldType.TEXT)
CREATED = column("created", FilterFieldType.DATETIME)
ACTIVE = column("active", FilterFieldType.BOOLEAN)


# ============================================================================
# RENDERER TESTS
# ============================================================================


class TestSQLRenderer:
    """Tests for SQLRenderer output."""

    def test_literals(self):
        assert SQLRenderer().render(TRUE) == ("1=1", [])
        assert SQLRenderer().render(Literal(False)) == ("1=0", [])

    def test_guarded_compare(self):
        """Test a nullable comparison."""
        node = And((HasValue(TOTAL), Compare(CompareOp.GT, TOTAL, Literal(20.0))))

        assert SQLRenderer().render(node) == ('("total" IS NOT NULL AND "total" > ?)', [20.0])

    def test_not(self):
        sql, _ = SQLRenderer().render(Not(Compare(CompareOp.EQ, TOTAL, Literal(1.0))))
        assert sql == 'NOT ("total" = ?)'

    def test_has_text(self):
        """Test blank checks trim the whitespace str.strip removes."""
        sql, params = SQLRenderer().render(HasValue(NOTES, require_text=True))

        assert sql == (
            '("notes" IS NOT NULL AND TRIM("notes", char(32, 9, 10, 11, 12, 13)) <> \'\')'
        )
        assert params == []

    def test_text_compare_is_lowered(self):
        sql, params = SQLRenderer().render(Compare(CompareOp.EQ, NOTES, Literal("rush")))

        assert sql == 'LOWER("notes") = ?'
        assert params == ["rush"]

    def test_string_ops(self):
        """Test the three text searches."""
        renderer = SQLRenderer()

        contains = StringOp(StringOpKind.CONTAINS, NOTES, Literal("rush"))
        starts = StringOp(StringOpKind.STARTS_WITH, NOTES, Literal("rush"))
        ends = StringOp(StringOpKind.ENDS_WITH, NOTES, Literal("rush"))

        assert renderer.render(contains) == ('instr(LOWER("notes"), ?) > 0', ["rush"])
        assert renderer.render(starts) == (
            'substr(LOWER("notes"), 1, length(?)) = ?',
            ["rush", "rush"],
        )
        assert renderer.render(ends) == ('substr(LOWER("notes"), -length(?)) = ?', ["rush", "rush"])

    def test_string_op_on_number_casts(self):
        sql, _ = SQLRenderer().render(StringOp(StringOpKind.CONTAINS, TOTAL, Literal("1")))
        assert sql == 'instr(LOWER(CAST("total" AS TEXT)), ?) > 0'

    def test_temporal_compare(self):
        """Test dates compare as normalised millisecond timestamps."""
        low = Literal(datetime(2024, 5, 15))
        high = Literal(datetime(2024, 5, 16, 8, 30, 0, 250999))
        node = Between(CREATED, low, high)

        sql, params = SQLRenderer().render(node)

        assert sql == "strftime('%Y-%m-%d %H:%M:%f', \"created\") BETWEEN ? AND ?"
        assert params == ["2024-05-15 00:00:00.000", "2024-05-16 08:30:00.250"]

    def test_boolean_param(self):
        sql, params = SQLRenderer().render(Compare(CompareOp.EQ, ACTIVE, Literal(True)))

        assert sql == '"active" = ?'
        assert params == [1]

    def test_set_membership(self):
        status = column("status", FilterFieldType.ENUM)

        assert SQLRenderer().render(SetMembership(status, ("open", "closed"))) == (
            'LOWER("status") IN (?, ?)',
            ["open", "closed"],
        )
        assert SQLRenderer().render(SetMembership(status, ())) == ("1=0", [])

    def test_column_mapping(self):
        """Test field names mapped to other column names."""
        renderer = SQLRenderer({"TOTAL": "order_total"})

        sql, _ = renderer.render(HasValue(TOTAL))

        assert sql == '"order_total" IS NOT NULL'

    def test_unknown_node(self):
        with pytest.raises(TypeError):
            SQLRenderer().render(Node())


class TestSQLValues:
    """Tests for identifier quoting and stored values."""

    def test_quote_identifier(self):
        assert quote_identifier("orders") == '"orders"'
        assert quote_identifier('we"ird') == '"we""ird"'

    def test_to_sql_value(self):
        """Test the storage representation of Python values."""
        assert to_sql_value(datetime(2024, 5, 15, 8, 30)) == "2024-05-15 08:30:00"
        assert to_sql_value(date(2024, 5, 15)) == "2024-05-15"
        assert to_sql_value(True) == 1
        assert to_sql_value(Status.OPEN) == "open"
        assert to_sql_value(None) is None
        assert to_sql_value(2.5) == 2.5


# ============================================================================
# BACKEND EQUIVALENCE
# ============================================================================


def _where(*conditions, operator=LogicalOperator.AND):
    definition = FilterDefinition(operator=operator)
    for condition in conditions:
        definition.add(condition)
    return definition


def _nested():
    inner = _where(
        FilterCondition.is_true("active"),
        FilterCondition.lt("total", 10),
        operator=LogicalOperator.OR,
    )
    return _where(FilterCondition.in_list("status", ["open", "pending"])).add_group(inner)


ALL = [1, 2, 3, 4, 5, 6, 7, 8]

CASES = [
    pytest.param(FilterDefinition(), [1, 2, 3, 4, 5, 6, 7, 8], id="empty"),
    pytest.param(_where(FilterCondition("customer", "Equals")), [1, 2, 3, 4, 5, 6, 7, 8], id="incomplete"),
    pytest.param(_where(FilterCondition.eq("colour", "red")), [], id="unknown-field"),
    pytest.param(_where(FilterCondition.contains("total", "1")), [1, 2, 3, 4, 5, 6, 7, 8], id="not-allowed"),
    pytest.param(_where(FilterCondition.eq("customer", "ACME CORP")), [1], id="text-equals"),
    pytest.param(_where(FilterCondition.eq("notes", "")), [2], id="text-equals-empty"),
    pytest.param(_where(FilterCondition.ne("notes", "rush")), [1, 2, 3, 4, 5, 6, 8], id="text-not-equals"),
    pytest.param(_where(FilterCondition.contains("notes", "RUSH")), [1, 7], id="contains"),
    pytest.param(
        _where(FilterCondition("notes", FilterOperator.NOT_CONTAINS, "rush")),
        [2, 3, 4, 5, 6, 8],
        id="not-contains",
    ),
    pytest.param(_where(FilterCondition.starts_with("customer", "acme")), [1, 2], id="starts-with"),
    pytest.param(_where(FilterCondition.ends_with("notes", "Delivery")), [1, 5], id="ends-with"),
    pytest.param(_where(FilterCondition.ends_with("notes", "up")), [], id="ends-with-trailing-tab"),
    pytest.param(_where(FilterCondition.is_empty("notes")), [2, 3, 4], id="is-empty"),
    pytest.param(_where(FilterCondition.is_not_empty("notes")), [1, 5, 6, 7, 8], id="is-not-empty"),
    pytest.param(_where(FilterCondition.is_empty("total")), [5], id="is-empty-number"),
    pytest.param(_where(FilterCondition.between("total", 10, 20)), [1, 2, 6], id="between"),
    pytest.param(_where(FilterCondition.gt("total", 20)), [4, 7], id="greater-than"),
    pytest.param(_where(FilterCondition.le("total", 10)), [1, 3, 8], id="less-or-equal"),
    pytest.param(_where(FilterCondition.ne("total", 10)), [2, 3, 4, 5, 6, 7, 8], id="number-not-equals"),
    pytest.param(_where(FilterCondition.eq("quantity", 0)), [5], id="equals-zero"),
    pytest.param(_where(FilterCondition.is_true("active")), [1, 4, 7], id="is-true"),
    pytest.param(_where(FilterCondition.is_false("active")), [2, 3, 5, 6, 8], id="is-false"),
    pytest.param(_where(FilterCondition.in_list("status", ["open", "CLOSED"])), [1, 3, 5, 7, 8], id="in"),
    pytest.param(_where(FilterCondition.not_in_list("status", ["open"])), [2, 3, 4, 6, 7], id="not-in"),
    pytest.param(_where(FilterCondition.in_list("status", [])), [1, 2, 3, 4, 5, 6, 7, 8], id="in-empty"),
    pytest.param(_where(FilterCondition.not_in_list("status", [])), [], id="not-in-empty"),
    pytest.param(_where(FilterCondition.ne("status", "Open")), [2, 3, 4, 6, 7], id="enum-not-equals"),
    pytest.param(_where(FilterCondition.date_is("created", DatePreset.TODAY)), [1, 2], id="today"),
    pytest.param(
        _where(FilterCondition.date_is_not("created", DatePreset.TODAY)),
        [3, 4, 5, 6, 7, 8],
        id="not-today",
    ),
    pytest.param(_where(FilterCondition.date_is("due", DatePreset.THIS_WEEK)), [1, 2], id="this-week"),
    pytest.param(_where(FilterCondition.date_is("created", DatePreset.LAST_YEAR)), [8], id="last-year"),
    pytest.param(_where(FilterCondition.date_is("due", DatePreset.NEXT_MONTH)), [6], id="next-month"),
    pytest.param(_where(FilterCondition.in_last("created", 7)), [1, 2, 3, 4, 5], id="in-last-days"),
    pytest.param(
        _where(FilterCondition.in_last("created", 1, InLastPeriod.MONTHS)),
        [1, 2, 3, 4, 5],
        id="in-last-months",
    ),
    pytest.param(_where(FilterCondition.in_next("created", 1)), [2, 3], id="in-next-days"),
    pytest.param(
        _where(FilterCondition.in_next("due", 2, InLastPeriod.WEEKS)),
        [2, 3, 7],
        id="in-next-weeks-date",
    ),
    pytest.param(_where(FilterCondition.gt("created", "2024-05-15")), [2, 3], id="after-text-date"),
    pytest.param(_where(FilterCondition.lt("due", date(2024, 5, 1))), [8], id="before-date"),
    pytest.param(
        _where(FilterCondition.eq("created", datetime(2024, 5, 13, 8, 30))), [4], id="datetime-equals"
    ),
    pytest.param(
        _where(
            FilterCondition.starts_with("customer", "acme"),
            FilterCondition.gt("total", 1000),
            operator=LogicalOperator.OR,
        ),
        [1, 2, 7],
        id="or-group",
    ),
    pytest.param(_nested(), [1, 8], id="nested-groups"),
    pytest.param(_where(FilterCondition.ne("quantity", "nan")), ALL, id="nan-text-ignored"),
    pytest.param(_where(FilterCondition.ne("total", float("nan"))), ALL, id="nan-number-ignored"),
    pytest.param(_where(FilterCondition.gt("total", "inf")), ALL, id="infinity-ignored"),
    pytest.param(_where(FilterCondition.in_last("created", 10_000_000)), ALL, id="in-last-too-far"),
    pytest.param(
        _where(FilterCondition.in_next("due", 10**9, InLastPeriod.MONTHS)), ALL, id="in-next-too-far"
    ),
]


@pytest.mark.integration
class TestBackendEquivalence:
    """The direct, interpreted and SQL backends agree on every case."""

    @pytest.mark.parametrize("definition,expected", CASES)
    def test_direct(self, definition, expected, orders, order_fields, now):
        """Test the direct predicate over dataclass instances."""
        predicate = evaluate(definition, order_fields, now=now)
        assert [o.id for o in orders if predicate(o)] == expected

    @pytest.mark.parametrize("definition,expected", CASES)
    def test_direct_rows(self, definition, expected, orders, order_fields, now):
        """Test the direct predicate over dict rows."""
        predicate = evaluate(definition, order_fields, now=now)
        assert [r["id"] for r in map(asdict, orders) if predicate(r)] == expected

    @pytest.mark.parametrize("definition,expected", CASES)
    def test_interpreted(self, definition, expected, orders, order_fields, now):
        """Test the compiled expression evaluated in process."""
        compiled = compile_filter(definition, order_fields, Order, now=now)
        assert [o.id for o in orders if compiled(o)] == expected

    @pytest.mark.parametrize("definition,expected", CASES)
    def test_sql(self, definition, expected, orders_db, order_fields, now):
        """Test the compiled expression run by SQLite."""
        where, params = compile_filter(definition, order_fields, now=now).to_sql()

        rows = orders_db.query(f'SELECT id FROM "orders" WHERE {where} ORDER BY id', params)

        assert [int(row["id"]) for row in rows] == expected


@pytest.mark.integration
class TestAwareOperands:
    """Operands carrying a UTC offset compare as naive local time everywhere."""

    AWARE = datetime(2024, 5, 15, 6, tzinfo=UTC)

    @pytest.mark.parametrize("operand", [AWARE, AWARE.isoformat()], ids=["instant", "text"])
    def test_backends_agree(self, operand, orders, orders_db, order_fields, now):
        """Test that every backend matches the equivalent local-time filter."""
        local = self.AWARE.astimezone().replace(tzinfo=None)
        expected = [o.id for o in orders if o.created is not None and o.created > local]
        definition = _where(FilterCondition.gt("created", operand))

        predicate = evaluate(definition, order_fields, now=now)
        compiled = compile_filter(definition, order_fields, Order, now=now)
        where, params = compile_filter(definition, order_fields, now=now).to_sql()
        rows = orders_db.query(f'SELECT id FROM "orders" WHERE {where} ORDER BY id', params)

        assert {2, 3} <= set(expected)
        assert [o.id for o in orders if predicate(o)] == expected
        assert [o.id for o in orders if compiled(o)] == expected
        assert [int(row["id"]) for row in rows] == expected
