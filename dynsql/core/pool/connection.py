"""
Storage-engine connections.

Uses sqlite3 (SQLite), psycopg (PostgreSQL) or pymysql (MySQL) depending on
the connection target. Templates always write placeholders as ``:name``;
``Connection.prepare`` adapts them to the driver's parameter style.

A Connection carries driver state and must not be shared between threads
without external locking.
"""

import logging
import sqlite3
from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple
from urllib.parse import unquote, urlsplit

import psycopg
import pymysql

from dynsql.core.config import settings
from dynsql.core.errors import DatabaseError

from .paramstyle import find_placeholders, to_pyformat

_log = logging.getLogger(__name__)

DRIVER_ERRORS: tuple[type[Exception], ...] = (
    sqlite3.Error,
    psycopg.Error,
    pymysql.MySQLError,
)


class ProductTypeEnum(str, Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"


class MappedRow(NamedTuple):
    """Result of mapping one row: either ``value`` or ``error`` is set."""

    value: Any
    error: Exception | None


def resolve_product_type(target: str | Path) -> ProductTypeEnum:
    if isinstance(target, Path):
        return ProductTypeEnum.SQLITE
    scheme = urlsplit(target).scheme.lower() if "://" in target else ""
    if scheme in ("postgres", "postgresql"):
        return ProductTypeEnum.POSTGRES
    if scheme in ("mysql", "mysql+pymysql"):
        return ProductTypeEnum.MYSQL
    if scheme in ("", "sqlite", "file"):
        return ProductTypeEnum.SQLITE
    raise DatabaseError(f"Unsupported connection target scheme: {scheme!r}")


def sqlite_path(target: str | Path) -> str:
    """
    Database path for a SQLite target.

    ``sqlite://`` and ``:memory:`` open an in-memory database,
    ``sqlite:///rel.db`` a relative file and ``sqlite:////abs.db`` an
    absolute one. Anything else is taken as a file path.
    """
    if isinstance(target, Path):
        return str(target)
    if target in ("", ":memory:", "sqlite://", "sqlite:///:memory:"):
        return ":memory:"
    for prefix in ("sqlite:///", "file:///"):
        if target.startswith(prefix):
            return target[len(prefix) :]
    return target


def _connect_mysql(target: str) -> Any:
    parts = urlsplit(target)
    return pymysql.connect(
        host=parts.hostname or "localhost",
        port=parts.port or 3306,
        user=unquote(parts.username or ""),
        password=unquote(parts.password or ""),
        database=parts.path.lstrip("/") or None,
        connect_timeout=settings.CONNECT_TIMEOUT,
        autocommit=True,
    )


def connect(target: str | Path | None = None) -> "Connection":
    """
    Open a connection to *target* (defaults to ``settings.DATABASE_URL``).

    Raises DatabaseError when the driver cannot open the connection.
    """
    target = settings.DATABASE_URL if target is None else target
    pt = resolve_product_type(target)
    try:
        if pt == ProductTypeEnum.SQLITE:
            # isolation_level=None: autocommit, one statement per round-trip
            raw = sqlite3.connect(sqlite_path(target), isolation_level=None)
        elif pt == ProductTypeEnum.POSTGRES:
            raw = psycopg.connect(
                str(target),
                connect_timeout=settings.CONNECT_TIMEOUT,
                autocommit=True,
            )
        else:
            raw = _connect_mysql(str(target))
    except DRIVER_ERRORS as e:
        _log.error("Failed to open %s connection: %s", pt.value, e)
        raise DatabaseError(f"Cannot open {pt.value} connection: {e}") from e
    return Connection(raw, pt)


class Connection:
    """A DB-API connection plus the placeholder adaptation for its driver."""

    def __init__(self, raw: Any, product_type: ProductTypeEnum) -> None:
        self.raw = raw
        self.product_type = product_type

    @property
    def paramstyle(self) -> str:
        return "named" if self.product_type == ProductTypeEnum.SQLITE else "pyformat"

    def prepare(self, sql: str) -> "Statement":
        return Statement(self, sql)

    def close(self) -> None:
        try:
            self.raw.close()
        except DRIVER_ERRORS as e:
            _log.warning("Error while closing connection: %s", e)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Statement:
    """
    SQL text ready to run on one connection.

    ``sql`` is the text as rendered (``:name`` placeholders); ``driver_sql``
    is what is sent to the driver.
    """

    def __init__(self, connection: Connection, sql: str) -> None:
        self.connection = connection
        self.sql = sql
        self.placeholders = find_placeholders(sql)
        if connection.paramstyle == "named":
            self.driver_sql = sql
        else:
            self.driver_sql = to_pyformat(sql)

    def _run(self, bound: Mapping[str, Any]) -> Any:
        cur = None
        try:
            cur = self.connection.raw.cursor()
            cur.execute(self.driver_sql, dict(bound))
        except DRIVER_ERRORS as e:
            if cur is not None:
                _close_quiet(cur)
            raise DatabaseError(f"Statement failed: {e}", sql=self.sql) from e
        return cur

    def execute(self, bound: Mapping[str, Any]) -> int:
        """Run the statement and return the affected-row count."""
        cur = self._run(bound)
        try:
            count = cur.rowcount
        finally:
            _close_quiet(cur)
        # SQLite reports -1 for DDL / SELECT
        return count if count is not None and count >= 0 else 0

    def query_with_mapper(
        self,
        bound: Mapping[str, Any],
        mapper: Callable[[dict[str, Any]], Any],
    ) -> Iterator[MappedRow]:
        """
        Run the statement and lazily map each row with *mapper*.

        The statement runs immediately; rows are fetched as the iterator is
        consumed. A mapper failure is reported as ``MappedRow(None, error)``
        and does not stop iteration.
        """
        cur = self._run(bound)
        return self._iter_mapped(cur, mapper)

    def _iter_mapped(
        self, cur: Any, mapper: Callable[[dict[str, Any]], Any]
    ) -> Iterator[MappedRow]:
        try:
            names = [d[0] for d in cur.description or ()]
            while True:
                try:
                    row = cur.fetchone()
                except DRIVER_ERRORS as e:
                    raise DatabaseError(f"Fetching rows failed: {e}", sql=self.sql) from e
                if row is None:
                    break
                record = dict(zip(names, row, strict=True))
                try:
                    mapped = MappedRow(mapper(record), None)
                except Exception as e:  # any mapper failure skips the row
                    mapped = MappedRow(None, e)
                yield mapped
        finally:
            _close_quiet(cur)


def _close_quiet(cur: Any) -> None:
    try:
        cur.close()
    except DRIVER_ERRORS:
        pass
