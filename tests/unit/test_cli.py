"""Tests for CLI commands."""

import argparse
from pathlib import Path
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from syncddl.cli import cmd_apply, cmd_drop, cmd_plan, cmd_validate
from tests.helpers import FakeCatalogClient

FIXTURES_PATH = Path(__file__).parent.parent / "fixtures" / "schema" / "tables"

DB_ENV = ("PGHOST", "PGPORT", "PGDATABASE", "PGUSER", "PGPASSWORD", "PGSERVICE", "SYNCDDL_CONNINFO")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in DB_ENV:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PGSERVICEFILE", str(tmp_path / "missing.conf"))


def printed(mock_print) -> str:
    return "\n".join(str(c.args[0]) for c in mock_print.call_args_list if c.args)


class TestCmdValidate:
    def test_valid_fixtures(self):
        args = argparse.Namespace(schema_path=FIXTURES_PATH)

        with patch("builtins.print") as mock_print:
            result = cmd_validate(args)

        assert result == 0
        mock_print.assert_any_call("Validated 2 tables:")

    def test_invalid_schema_returns_1(self, tmp_path):
        (tmp_path / "t.yaml").write_text(
            """
table: t
columns:
  - name: id
    type: int32
"""
        )
        args = argparse.Namespace(schema_path=tmp_path)

        with patch("builtins.print") as mock_print:
            result = cmd_validate(args)

        assert result == 1
        assert "has no primary key" in printed(mock_print)

    def test_load_error_returns_1(self, tmp_path):
        args = argparse.Namespace(schema_path=tmp_path / "missing")

        with patch("builtins.print"):
            assert cmd_validate(args) == 1


class TestCmdPlanOffline:
    def test_plan_offline_prints_all_statements(self):
        args = argparse.Namespace(schema_path=FIXTURES_PATH, online=False)

        with patch("builtins.print") as mock_print:
            result = cmd_plan(args)

        output = printed(mock_print)
        assert result == 0
        assert output.count('CREATE SCHEMA IF NOT EXISTS "sales";') == 1
        assert 'CREATE TABLE IF NOT EXISTS "sales"."orders"' in output
        assert '"fk_order_lines_orders"' in output
        assert "fk_order_lines_parent" not in output

    def test_plan_offline_empty_schema_dir(self, tmp_path):
        args = argparse.Namespace(schema_path=tmp_path, online=False)

        with patch("builtins.print") as mock_print:
            result = cmd_plan(args)

        assert result == 0
        mock_print.assert_called_with("No changes to apply")


class TestCmdPlanOnline:
    def test_plan_online_requires_db_config(self):
        args = argparse.Namespace(
            schema_path=FIXTURES_PATH, online=True, service=None, conninfo=None
        )

        with patch("builtins.print") as mock_print:
            result = cmd_plan(args)

        assert result == 2
        assert "Configuration error" in printed(mock_print)

    def test_plan_online_shows_only_missing_objects(self):
        client = FakeCatalogClient(
            schemas={"public", "sales"},
            tables={("sales", "orders")},
            primary_keys={("sales", "orders")},
        )
        args = argparse.Namespace(
            schema_path=FIXTURES_PATH, online=True, service=None, conninfo="host=db dbname=app"
        )

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_plan(args)

        output = printed(mock_print)
        assert result == 0
        assert client.connect_calls == 1
        assert "CREATE SCHEMA" not in output
        assert 'CREATE TABLE IF NOT EXISTS "sales"."orders"' not in output
        assert 'CREATE TABLE IF NOT EXISTS "sales"."order_lines"' in output
        assert client.executed == []

    def test_plan_online_creates_new_schema_once(self):
        client = FakeCatalogClient()
        args = argparse.Namespace(
            schema_path=FIXTURES_PATH, online=True, service=None, conninfo="host=db dbname=app"
        )

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_plan(args)

        assert result == 0
        assert printed(mock_print).count('CREATE SCHEMA IF NOT EXISTS "sales";') == 1


class TestCmdApply:
    def _args(self, **overrides):
        values = dict(
            schema_path=FIXTURES_PATH,
            dry_run=False,
            service=None,
            conninfo="host=db dbname=app user=me",
        )
        values.update(overrides)
        return argparse.Namespace(**values)

    def test_apply_executes_and_is_idempotent(self):
        client = FakeCatalogClient()

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                assert cmd_apply(self._args()) == 0
            mock_print.assert_called_with("Executed 6 statements")

            with patch("builtins.print") as mock_print:
                assert cmd_apply(self._args()) == 0
            mock_print.assert_called_with("Executed 0 statements")

        assert client.is_open is False
        assert client.connect_calls == 2
        assert client.close_calls == 2

    def test_apply_dry_run(self):
        client = FakeCatalogClient()

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_apply(self._args(dry_run=True))

        assert result == 0
        assert client.executed == []
        mock_print.assert_called_with("[DRY RUN] 6 statements pending")
        assert client.connect_calls == 1

    def test_apply_reports_failed_statement(self):
        client = FakeCatalogClient()
        client.fail_on = "FOREIGN KEY"

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_apply(self._args())

        assert result == 1
        assert "DDL error on fk_order_lines_orders" in printed(mock_print)

    def test_apply_holds_one_connection_for_the_pass(self):
        client = FakeCatalogClient()

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print"):
                assert cmd_apply(self._args()) == 0

        assert client.connect_calls == 1
        assert client.close_calls == 1
        assert len(client.queries) > 1

    def test_apply_reports_connection_failure(self):
        client = FakeCatalogClient()
        client.connect = MagicMock(side_effect=psycopg.OperationalError("connection refused"))

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_apply(self._args())

        assert result == 1
        assert "Connection error: connection refused" in printed(mock_print)
        assert client.executed == []

    def test_apply_missing_config(self):
        with patch("builtins.print"):
            assert cmd_apply(self._args(conninfo=None)) == 2


class TestCmdDrop:
    def _args(self, table):
        return argparse.Namespace(
            table=table, schema_path=FIXTURES_PATH, service=None, conninfo="host=db"
        )

    def test_drop_existing_table(self):
        client = FakeCatalogClient(schemas={"public", "sales"}, tables={("sales", "orders")})

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_drop(self._args("sales.orders"))

        assert result == 0
        mock_print.assert_called_with("Dropped sales.orders")
        assert client.executed == ['DROP TABLE "sales"."orders"']
        assert client.connect_calls == 1
        assert client.close_calls == 1

    def test_drop_missing_table(self):
        client = FakeCatalogClient()

        with patch("syncddl.cli.make_client", return_value=client):
            with patch("builtins.print") as mock_print:
                result = cmd_drop(self._args("sales.orders"))

        assert result == 0
        mock_print.assert_called_with("Table sales.orders does not exist")

    def test_drop_undeclared_table(self):
        with patch("builtins.print"):
            assert cmd_drop(self._args("sales.unknown")) == 1
