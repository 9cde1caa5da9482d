"""
Pytest configuration and shared fixtures for blueprint-filters.

This module provides:
- Order factories and the fixed order collection
- The order field catalog and a fixed "now"
- Temporary database fixtures
- Files for CLI tests

Example usage in tests:
    def test_something(orders, order_fields, now):
        predicate = evaluate(definition, order_fields, now=now)
        assert [o.id for o in orders if predicate(o)] == [1, 2]
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest

from blueprint_filters.config import settings as settings_module
from blueprint_filters.filter.accessors import AccessorRegistry
from blueprint_filters.models.fields import FilterField
from blueprint_filters.query import FilterEngine, SQLiteDatabase

# Import fixtures from fixtures module
from tests.fixtures.factories import NOW, ORDER_FIELDS, Order, OrderFactory


# ============================================================================
# FACTORY FIXTURES
# ============================================================================


@pytest.fixture
def order_factory() -> type[OrderFactory]:
    """Provide a fresh OrderFactory with counter reset.

    Returns:
        OrderFactory class with counter at 0
    """
    OrderFactory.reset()
    return OrderFactory


@pytest.fixture
def orders() -> list[Order]:
    """Provide the fixed order collection (ids 1-8)."""
    return OrderFactory.create_collection()


@pytest.fixture
def order_fields() -> list[FilterField]:
    """Provide the order field catalog."""
    return list(ORDER_FIELDS)


@pytest.fixture
def now() -> datetime:
    """Provide the fixed evaluation time (a Wednesday at noon)."""
    return NOW


@pytest.fixture
def registry() -> AccessorRegistry:
    """Provide an empty accessor registry."""
    return AccessorRegistry()


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def temp_db() -> Iterator[SQLiteDatabase]:
    """Provide a temporary SQLite database.

    Yields:
        SQLiteDatabase in a temp directory, closed after the test
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        db = SQLiteDatabase(Path(temp_dir) / "test.db")
        yield db
        db.close()


@pytest.fixture
def orders_db(temp_db: SQLiteDatabase, orders: list[Order]) -> SQLiteDatabase:
    """Provide a database with the order collection in an ``orders`` table."""
    temp_db.create_table("orders", ORDER_FIELDS)
    temp_db.insert_rows("orders", orders)
    return temp_db


@pytest.fixture
def engine(orders_db: SQLiteDatabase) -> FilterEngine:
    """Provide a filter engine over the ``orders`` table."""
    return FilterEngine(orders_db, "orders", ORDER_FIELDS)


# ============================================================================
# FILE FIXTURES
# ============================================================================


@pytest.fixture
def fields_file(tmp_path: Path) -> Path:
    """Provide the order field catalog as a JSON file."""
    path = tmp_path / "fields.json"
    path.write_text(json.dumps([f.model_dump(mode="json") for f in ORDER_FIELDS]))
    return path


@pytest.fixture
def temp_config_dir() -> Iterator[Path]:
    """Provide a temporary configuration directory.

    Yields:
        Path to temporary config directory
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "config"
        config_dir.mkdir()
        yield config_dir


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear BPF_* variables and the settings cache around every test."""
    import os

    for key in list(os.environ):
        if key.startswith(settings_module.ENV_PREFIX):
            monkeypatch.delenv(key)
    settings_module.get_settings.cache_clear()
    yield
    settings_module.get_settings.cache_clear()


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: mark as integration test")
    config.addinivalue_line("markers", "unit: mark as unit test")
