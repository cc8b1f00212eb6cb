"""Unit tests for engines.sql.executor (execute_sql / query_sql)."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from dynsql.core.errors import BindError, DatabaseError
from dynsql.core.param_type import BindValue
from dynsql.core.pool import MappedRow, connect
from dynsql.engines.sql import execute_sql, query_sql
from dynsql.engines.sql.executor import bound_values


@pytest.fixture
def conn():
    c = connect("sqlite://")
    execute_sql(c, "CREATE TABLE t (a INTEGER, b TEXT)")
    yield c
    c.close()


class TestBoundValues:
    def test_strip_colon_and_unwrap(self):
        assert bound_values([(":a", BindValue.of(1)), ("b", "x")]) == {"a": 1, "b": "x"}

    def test_duplicate(self):
        with pytest.raises(BindError, match="more than once"):
            bound_values([(":a", 1), (":a", 2)])

    def test_unsupported(self):
        with pytest.raises(BindError):
            bound_values([(":a", object())])


class TestExecuteSql:
    def test_rowcount(self, conn):
        assert execute_sql(conn, "INSERT INTO t (a, b) VALUES (:a, :b)", [(":a", 1), (":b", "x")]) == 1
        assert execute_sql(conn, "UPDATE t SET b=:b", [(":b", "y")]) == 1

    def test_missing_placeholder_value(self, conn):
        with pytest.raises(DatabaseError, match=":b"):
            execute_sql(conn, "INSERT INTO t (a, b) VALUES (:a, :b)", [(":a", 1)])

    def test_unused_bind_dropped(self, conn):
        n = execute_sql(conn, "INSERT INTO t (a) VALUES (:a)", [(":a", 1), (":zzz", 2)])
        assert n == 1

    def test_strict_binding_off_defers_to_driver(self, conn):
        with patch("dynsql.engines.sql.executor.settings") as s:
            s.STRICT_BINDING = False
            s.LOG_RENDERED_SQL = False
            with pytest.raises(DatabaseError):
                execute_sql(conn, "INSERT INTO t (a, b) VALUES (:a, :b)", [(":a", 1)])

    def test_engine_error(self, conn):
        with pytest.raises(DatabaseError):
            execute_sql(conn, "INSERT INTO missing_table (a) VALUES (:a)", [(":a", 1)])


class TestQuerySql:
    def test_maps_rows(self, conn):
        for a in (1, 2, 3):
            execute_sql(conn, "INSERT INTO t (a, b) VALUES (:a, 'x')", [(":a", a)])
        rows = query_sql(conn, "SELECT a FROM t WHERE a>=:a ORDER BY a", [(":a", 2)], lambda r: r["a"])
        assert rows == [2, 3]

    def test_failed_rows_skipped_and_logged(self, conn, caplog):
        execute_sql(conn, "INSERT INTO t (a, b) VALUES (1, 'x')")
        execute_sql(conn, "INSERT INTO t (a, b) VALUES (2, NULL)")
        execute_sql(conn, "INSERT INTO t (a, b) VALUES (3, 'z')")

        with caplog.at_level(logging.WARNING, logger="dynsql.engines.sql.executor"):
            rows = query_sql(conn, "SELECT a, b FROM t ORDER BY a", [], lambda r: r["b"] + "!")

        assert rows == ["x!", "z!"]
        assert any("failed to map row" in r.getMessage() for r in caplog.records)

    def test_any_mapper_exception_skips_row(self, conn):
        execute_sql(conn, "INSERT INTO t (a, b) VALUES (1, 'x')")
        execute_sql(conn, "INSERT INTO t (a, b) VALUES (2, NULL)")

        rows = query_sql(conn, "SELECT a, b FROM t ORDER BY a", [], lambda r: r["b"].upper())

        assert rows == ["X"]

    def test_empty_result(self, conn):
        assert query_sql(conn, "SELECT * FROM t", [], dict) == []

    def test_fetch_error_propagates(self):
        stmt = MagicMock()
        stmt.placeholders = []

        def rows(bound, mapper):
            yield MappedRow(1, None)
            raise DatabaseError("connection lost")

        stmt.query_with_mapper.side_effect = rows
        fake_conn = MagicMock()
        fake_conn.prepare.return_value = stmt

        with pytest.raises(DatabaseError, match="connection lost"):
            query_sql(fake_conn, "SELECT 1", [], lambda r: r)
