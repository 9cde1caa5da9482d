"""
Blueprint Filters - Test Suite

Unit and integration tests for filter trees and their backends.

Test Organization:
- test_models.py: Field catalog and operand values
- test_operators.py: Operator catalog
- test_definition.py: Filter tree model
- test_dates.py: Date presets and relative windows
- test_accessors.py: Typed field accessors and the registry
- test_evaluate.py: Direct evaluation backend
- test_compile.py: Expression tree compilation and interpretation
- test_sql.py: SQL rendering and backend equivalence against SQLite
- test_serialization.py: JSON wire format
- test_validation.py: Filter validation
- test_engine.py: Query engine and saved filters
- test_config.py: Settings loading
- test_cli.py: Command-line interface

Fixtures are in tests/fixtures/:
- factories.py: Order entity, field catalog, and OrderFactory

Run tests:
    $ pytest tests/ -v
"""
