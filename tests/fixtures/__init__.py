"""
Test fixtures for blueprint-filters.

This module provides:
- Order / Status: Entity covering every field type
- ORDER_FIELDS: Field catalog for orders
- OrderFactory: Create test orders with sensible defaults
- NOW: Fixed evaluation time (a Wednesday)
"""

from tests.fixtures.factories import NOW, ORDER_FIELDS, Order, OrderFactory, Status

__all__ = [
    "NOW",
    "ORDER_FIELDS",
    "Order",
    "OrderFactory",
    "Status",
]
