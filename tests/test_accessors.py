"""
Tests for field accessors and the accessor registry.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Optional

import pytest
from pydantic import BaseModel

from blueprint_filters.filter.accessors import (
    AccessorRegistry,
    FieldAccessor,
    ValueKind,
    catalog_accessors,
    derive_accessors,
    format_number,
    kind_of,
    register_entity,
    resolve_table,
    to_text,
)
from blueprint_filters.models.fields import FilterFieldType
from tests.fixtures import Order, Status


class Customer(BaseModel):
    name: str
    score: float | None = None
    _secret: str = "hidden"

    @property
    def display(self) -> str:
        return self.name.upper()


class Plain:
    title: str
    created: Optional[date]
    VERSION: ClassVar[int] = 1

    def __init__(self, title: str, created: date | None = None):
        self.title = title
        self.created = created


# ============================================================================
# TYPE INFERENCE TESTS
# ============================================================================


class TestKindOf:
    """Tests for kind_of."""

    def test_scalars(self):
        """Test inference of each scalar kind."""
        assert kind_of(str) == (ValueKind.TEXT, False)
        assert kind_of(int) == (ValueKind.NUMBER, False)
        assert kind_of(float) == (ValueKind.NUMBER, False)
        assert kind_of(Decimal) == (ValueKind.NUMBER, False)
        assert kind_of(bool) == (ValueKind.BOOLEAN, False)
        assert kind_of(datetime) == (ValueKind.DATETIME, False)
        assert kind_of(date) == (ValueKind.DATE, False)

    def test_str_enum_is_enum(self):
        """Test that str-valued enums are not mistaken for text."""
        assert kind_of(Status) == (ValueKind.ENUM, False)

    def test_optional(self):
        """Test both spellings of optional types."""
        assert kind_of(int | None) == (ValueKind.NUMBER, True)
        assert kind_of(Optional[datetime]) == (ValueKind.DATETIME, True)

    def test_ambiguous_types(self):
        """Test unions, Any, generics and unknown classes."""
        assert kind_of(int | str) == (ValueKind.OTHER, True)
        assert kind_of(Any) == (ValueKind.OTHER, True)
        assert kind_of(list[str]) == (ValueKind.OTHER, True)
        assert kind_of(Plain) == (ValueKind.OTHER, True)

    def test_field_type(self):
        """Test field types implied by value kinds."""
        assert ValueKind.NUMBER.field_type is FilterFieldType.NUMBER
        assert ValueKind.OTHER.field_type is FilterFieldType.TEXT
        assert ValueKind.for_field_type(FilterFieldType.DATETIME) is ValueKind.DATETIME


class TestToText:
    """Tests for the default string conversion."""

    def test_numbers(self):
        assert format_number(10.0) == "10"
        assert format_number(2.5) == "2.5"
        assert to_text(3) == "3"

    def test_other_values(self):
        assert to_text(Status.PENDING) == "pending"
        assert to_text(True) == "true"
        assert to_text(date(2024, 5, 15)) == "2024-05-15"


# ============================================================================
# DERIVATION TESTS
# ============================================================================


class TestDeriveAccessors:
    """Tests for derive_accessors."""

    def test_dataclass(self):
        """Test accessors derived from dataclass fields."""
        accessors = {a.name: a for a in derive_accessors(Order)}

        assert list(accessors) == [
            "id", "customer", "notes", "total", "quantity", "status", "active", "created", "due",
        ]
        assert accessors["quantity"].kind is ValueKind.NUMBER
        assert not accessors["quantity"].nullable
        assert accessors["total"].nullable
        assert accessors["status"].kind is ValueKind.ENUM
        assert accessors["due"].kind is ValueKind.DATE

    def test_pydantic_model(self):
        """Test model fields and properties, excluding private members."""
        accessors = {a.name: a for a in derive_accessors(Customer)}

        assert set(accessors) == {"name", "score", "display"}
        assert accessors["score"].nullable
        assert accessors["display"].kind is ValueKind.TEXT
        assert accessors["display"].getter(Customer(name="acme")) == "ACME"

    def test_annotated_class(self):
        """Test plain classes with annotations; ClassVars are skipped."""
        accessors = {a.name: a for a in derive_accessors(Plain)}

        assert set(accessors) == {"title", "created"}
        assert accessors["created"].nullable
        assert accessors["title"].getter(Plain("x")) == "x"

    def test_getter_missing_attribute(self):
        """Test that a missing attribute reads as None."""
        accessor = FieldAccessor.attribute("missing", ValueKind.TEXT)
        assert accessor.getter(Plain("x")) is None


class TestCatalogAccessors:
    """Tests for catalog_accessors."""

    def test_keys_and_types(self, order_fields):
        """Test key accessors typed by the catalog."""
        table = catalog_accessors(order_fields)

        assert table["created"].kind is ValueKind.DATETIME
        assert table["customer"].nullable
        assert table["customer"].getter({"customer": "Acme"}) == "Acme"

    def test_missing_key(self, order_fields):
        table = catalog_accessors(order_fields)
        assert table["customer"].getter({}) is None

    def test_case_insensitive(self, order_fields):
        assert "customer" in catalog_accessors(order_fields)
        assert catalog_accessors(order_fields).get("CUSTOMER".casefold()) is not None


# ============================================================================
# REGISTRY TESTS
# ============================================================================


class TestAccessorRegistry:
    """Tests for AccessorRegistry."""

    def test_table_is_cached(self, registry):
        """Test that a type's table is built once."""
        first = registry.table_for(Order)

        assert registry.table_for(Order) is first
        assert Order in registry

    def test_resolve_case_insensitive(self, registry):
        assert registry.resolve(Order, "CUSTOMER").name == "customer"
        assert registry.resolve(Order, "nope") is None

    def test_register_explicit(self, registry):
        """Test registering a computed accessor."""
        total_with_tax = FieldAccessor(
            "gross", lambda o: (o.total or 0) * 1.2, ValueKind.NUMBER
        )
        registry.register(Order, [total_with_tax])

        assert registry.resolve(Order, "gross") is total_with_tax
        assert registry.resolve(Order, "customer") is None

    def test_tables_are_read_only(self, registry):
        table = registry.table_for(Order)

        with pytest.raises(TypeError):
            table["x"] = None  # type: ignore[index]

    def test_clear(self, registry):
        registry.table_for(Order)
        registry.clear()
        assert Order not in registry

    def test_concurrent_first_lookup(self, registry):
        """Test that concurrent first lookups publish a single table."""
        results = []
        barrier = threading.Barrier(8)

        def lookup():
            barrier.wait()
            results.append(registry.table_for(Order))

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(table is results[0] for table in results)

    def test_register_entity_decorator(self, registry):
        """Test the class decorator registers at definition time."""

        @register_entity(registry=registry)
        @dataclass
        class Ticket:
            subject: str

        assert Ticket in registry
        assert registry.resolve(Ticket, "subject").kind is ValueKind.TEXT


class TestResolveTable:
    """Tests for resolve_table."""

    def test_no_entity_uses_catalog(self, order_fields, registry):
        table = resolve_table(None, order_fields, registry)
        assert table["total"].getter({"total": 5}) == 5

    def test_mapping_uses_catalog(self, order_fields, registry):
        """Test that unregistered mapping types key by the catalog."""
        table = resolve_table(dict, order_fields, registry)

        assert set(table) == {f.name for f in order_fields}
        assert dict not in registry

    def test_entity_uses_registry(self, order_fields, registry):
        table = resolve_table(Order, order_fields, registry)
        assert table is registry.table_for(Order)
