"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

import pytest
from click.testing import CliRunner

from blueprint_filters import __version__
from blueprint_filters.cli import main
from blueprint_filters.expr.sql import to_sql_value
from blueprint_filters.filter import FilterCondition, FilterDefinition, LogicalOperator, serialize


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CLI runner with settings isolated to a temp directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BPF_BASE_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("BPF_DATABASE_TABLE", "orders")
    return CliRunner()


@pytest.fixture
def filter_file(tmp_path: Path) -> Path:
    definition = FilterDefinition(operator=LogicalOperator.OR)
    definition.add(FilterCondition.starts_with("customer", "acme"))
    definition.add(FilterCondition.gt("total", 1000))
    path = tmp_path / "filter.json"
    path.write_text(serialize(definition))
    return path


@pytest.fixture
def rows_file(tmp_path: Path, orders) -> Path:
    rows = [{k: to_sql_value(v) for k, v in asdict(o).items()} for o in orders]
    path = tmp_path / "rows.json"
    path.write_text(json.dumps(rows))
    return path


class TestMain:
    """Tests for the command group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "validate" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestOperatorsCommand:
    """Tests for the operators command."""

    def test_single_type(self, runner):
        result = runner.invoke(main, ["operators", "--type", "boolean"])

        assert result.exit_code == 0
        assert "is true" in result.output
        assert "contains" not in result.output

    def test_all_types(self, runner):
        result = runner.invoke(main, ["operators"])

        assert result.exit_code == 0
        assert "DateTime" in result.output


class TestShowCommand:
    """Tests for the show command."""

    def test_show_with_labels(self, runner, filter_file, fields_file):
        result = runner.invoke(main, ["show", str(filter_file), "--fields", str(fields_file)])

        assert result.exit_code == 0
        assert "Customer" in result.output
        assert "starts with" in result.output
        assert "2 conditions, depth 1" in result.output

    def test_show_invalid_file(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope")

        result = runner.invoke(main, ["show", str(bad)])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid(self, runner, filter_file, fields_file):
        result = runner.invoke(main, ["validate", str(filter_file), "--fields", str(fields_file)])

        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_invalid(self, runner, tmp_path, fields_file):
        """Test that problems are listed and the exit code is 1."""
        path = tmp_path / "bad_filter.json"
        path.write_text(serialize(FilterDefinition().add(FilterCondition.eq("colour", "red"))))

        result = runner.invoke(main, ["validate", str(path), "--fields", str(fields_file)])

        assert result.exit_code == 1
        assert "Unknown field: colour" in result.output

    def test_limits_from_environment(self, runner, filter_file, fields_file, monkeypatch):
        monkeypatch.setenv("BPF_LIMITS_MAX_CONDITIONS", "1")

        result = runner.invoke(main, ["validate", str(filter_file), "--fields", str(fields_file)])

        assert result.exit_code == 1
        assert "limit 1" in result.output

    def test_fields_required(self, runner, filter_file):
        result = runner.invoke(main, ["validate", str(filter_file)])
        assert result.exit_code == 2


class TestSqlCommand:
    """Tests for the sql command."""

    def test_prints_where_and_params(self, runner, filter_file, fields_file):
        result = runner.invoke(main, ["sql", str(filter_file), "--fields", str(fields_file)])

        assert result.exit_code == 0
        where, params = result.stdout.strip().splitlines()
        assert where.startswith("(")
        assert " OR " in where
        assert json.loads(params) == ["acme", "acme", 1000]


class TestLoadAndApply:
    """Tests for the load and apply commands."""

    def test_load_then_apply(self, runner, filter_file, fields_file, rows_file):
        """Test loading rows and filtering them."""
        loaded = runner.invoke(main, ["load", str(rows_file), "--fields", str(fields_file)])
        assert loaded.exit_code == 0
        assert "Loaded 8 rows" in loaded.output

        args = ["apply", str(filter_file), "--fields", str(fields_file), "--order-by", "id", "--asc"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert "3 matching rows" in result.output

    def test_save_and_apply_saved(self, runner, filter_file, fields_file, rows_file):
        runner.invoke(main, ["load", str(rows_file), "--fields", str(fields_file)])

        saved = runner.invoke(
            main, ["apply", str(filter_file), "--fields", str(fields_file), "--save", "big"]
        )
        assert saved.exit_code == 0
        assert "Saved as" in saved.output

        result = runner.invoke(main, ["apply", "--saved", "big", "--fields", str(fields_file)])

        assert result.exit_code == 0
        assert "3 matching rows" in result.output

    def test_unknown_saved_filter(self, runner, fields_file, rows_file):
        runner.invoke(main, ["load", str(rows_file), "--fields", str(fields_file)])

        result = runner.invoke(main, ["apply", "--saved", "missing", "--fields", str(fields_file)])

        assert result.exit_code == 1
        assert "Filter not found" in result.output

    def test_apply_needs_filter(self, runner, fields_file):
        result = runner.invoke(main, ["apply", "--fields", str(fields_file)])
        assert result.exit_code == 1

    def test_apply_without_database(self, runner, filter_file, fields_file):
        result = runner.invoke(main, ["apply", str(filter_file), "--fields", str(fields_file)])

        assert result.exit_code == 1
        assert "Database not found" in result.output

    def test_load_rejects_non_list(self, runner, tmp_path, fields_file):
        path = tmp_path / "rows.json"
        path.write_text('{"id": 1}')

        result = runner.invoke(main, ["load", str(path), "--fields", str(fields_file)])

        assert result.exit_code == 1
        assert "JSON list" in result.output
