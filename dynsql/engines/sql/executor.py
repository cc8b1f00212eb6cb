"""
Run rendered SQL against a connection.

- execute_sql: returns the affected-row count.
- query_sql: returns mapped rows; rows the mapper cannot convert are
  skipped and logged.

Values are bound by name from a BindList (``[(":name", BindValue), ...]``).
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from dynsql.core.config import settings
from dynsql.core.errors import BindError, DatabaseError
from dynsql.core.param_type import BindValue
from dynsql.core.pool import Connection, Statement

_log = logging.getLogger(__name__)

T = TypeVar("T")

# ":name" -> value pairs; values may be BindValue or plain scalars
BindItems = Iterable[tuple[str, Any]]


def bound_values(bind_list: BindItems) -> dict[str, Any]:
    """Bind items -> ``{name: value}`` without the leading colon."""
    out: dict[str, Any] = {}
    for name, value in bind_list:
        key = name[1:] if name.startswith(":") else name
        if key in out:
            raise BindError(f"{name!r} is bound more than once")
        out[key] = BindValue.of(value).value
    return out


def _check_binding(stmt: Statement, bound: dict[str, Any]) -> dict[str, Any]:
    missing = [p for p in stmt.placeholders if p not in bound]
    if missing:
        names = ", ".join(f":{m}" for m in missing)
        raise DatabaseError(f"No value bound for placeholder(s) {names}", sql=stmt.sql)
    unused = [k for k in bound if k not in stmt.placeholders]
    if unused:
        _log.debug("Dropping bound values without placeholder: %s", unused)
        bound = {k: bound[k] for k in stmt.placeholders}
    return bound


def _prepare(conn: Connection, sql: str, bind_list: BindItems) -> tuple[Statement, dict[str, Any]]:
    bound = bound_values(bind_list)
    stmt = conn.prepare(sql)
    if settings.STRICT_BINDING:
        bound = _check_binding(stmt, bound)
    if settings.LOG_RENDERED_SQL:
        _log.debug("SQL: %s | params: %s", sql, sorted(bound))
    return stmt, bound


def execute_sql(conn: Connection, sql: str, bind_list: BindItems = ()) -> int:
    """Run *sql* and return the affected-row count. Raises DatabaseError."""
    stmt, bound = _prepare(conn, sql, bind_list)
    try:
        return stmt.execute(bound)
    except DatabaseError:
        _log.error("Statement failed: %s", sql, exc_info=True)
        raise


def query_sql(
    conn: Connection,
    sql: str,
    bind_list: BindItems,
    row_mapper: Callable[[dict[str, Any]], T],
) -> list[T]:
    """
    Run *sql* and map every row with *row_mapper*.

    A row whose mapping raises is dropped with a warning; the remaining rows
    are still returned. Statement failures raise DatabaseError.
    """
    stmt, bound = _prepare(conn, sql, bind_list)
    result: list[T] = []
    skipped = 0
    try:
        for mapped in stmt.query_with_mapper(bound, row_mapper):
            if mapped.error is not None:
                skipped += 1
                _log.warning("failed to map row, the error is: %s", mapped.error)
                continue
            result.append(mapped.value)
    except DatabaseError:
        _log.error("Query failed: %s", sql, exc_info=True)
        raise
    if skipped:
        _log.warning("%d of %d rows skipped while mapping", skipped, skipped + len(result))
    return result
