"""
Tests for the schema DDL and startup/audit helpers.

psycopg2.connect is patched; no real Postgres required.
"""

from unittest.mock import MagicMock, patch

import pytest

from pipeline import migrations
from fitness_schema import REQUIRED_COLUMNS, schema_statements, upgrade_database


def _mock_conn(columns_by_table):
    """Connection whose cursor answers information_schema lookups per table."""
    cur = MagicMock()
    state = {}

    def execute(query, params=None):
        state["table"] = params[0] if params else None

    cur.execute.side_effect = execute
    cur.fetchall.side_effect = lambda: [(c,) for c in columns_by_table.get(state["table"], [])]

    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    return conn, cur


class TestSchemaStatements:

    def test_every_required_table_is_created(self):
        ddl = "\n".join(schema_statements())
        for table in REQUIRED_COLUMNS:
            assert f"CREATE TABLE IF NOT EXISTS {table}" in ddl

    def test_statements_are_non_empty(self):
        assert all(stmt.strip() for stmt in schema_statements())

    @patch("fitness_schema.psycopg2")
    def test_upgrade_runs_every_statement(self, mock_pg):
        conn, cur = _mock_conn({})
        mock_pg.connect.return_value = conn

        upgrade_database("postgresql://x")

        assert cur.execute.call_count == len(list(schema_statements()))
        conn.close.assert_called_once()


class TestSchemaAudit:

    def test_without_connection_string(self, monkeypatch):
        monkeypatch.setattr(migrations, "get_conn_str", lambda: "")
        out = migrations.schema_audit(None)
        assert out["ok"] is False
        assert "not configured" in out["error"]

    @patch("pipeline.migrations.psycopg2")
    def test_complete_schema_is_ok(self, mock_pg):
        conn, _ = _mock_conn(REQUIRED_COLUMNS)
        mock_pg.connect.return_value = conn

        out = migrations.schema_audit("postgresql://x")

        assert out["ok"] is True
        assert out["missing_tables"] == []

    @patch("pipeline.migrations.psycopg2")
    def test_reports_missing_tables_and_columns(self, mock_pg):
        cols = dict(REQUIRED_COLUMNS)
        del cols["sleep_entries"]
        cols["users"] = ["id", "name"]
        conn, _ = _mock_conn(cols)
        mock_pg.connect.return_value = conn

        out = migrations.schema_audit("postgresql://x")

        assert out["ok"] is False
        assert out["missing_tables"] == ["sleep_entries"]
        assert out["tables"]["users"]["missing_columns"] == ["fitness_goal", "current_streak", "longest_streak"]


def test_startup_schema_requires_connection(monkeypatch):
    monkeypatch.setattr(migrations, "get_conn_str", lambda: "")
    with pytest.raises(RuntimeError, match="not configured"):
        migrations.ensure_startup_schema(None)


def test_startup_schema_runs_upgrade(monkeypatch):
    calls = []
    monkeypatch.setattr(migrations, "upgrade_database", lambda cs: calls.append(cs))
    migrations.ensure_startup_schema("postgresql://x")
    assert calls == ["postgresql://x"]
