"""
Query executor: render a template with a parameter object, then bind and run it.

    executor = QueryExecutor.open("sqlite:///dogs.db", templates=[Q_DOGS_SELECT])
    dogs = executor.query("Q_DOGS_SELECT", DogQuery(color="white"), Dog.from_row)

The executor owns one connection and is not thread-safe; use one executor
per worker. The TemplateStore it renders from may be shared.
"""

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

from dynsql.core.pool import Connection, connect
from dynsql.engines.sql import SqlTemplate, TemplateStore, execute_sql, query_sql
from dynsql.params import QueryParameters

_log = logging.getLogger(__name__)

T = TypeVar("T")

TemplateRef = str | SqlTemplate | tuple[str, str]


def _template_name(template: TemplateRef) -> str:
    if isinstance(template, str):
        return template
    return template[0]


class QueryExecutor:
    """
    query(template, params, row_mapper) -> list of mapped rows
    execute(template, params) -> affected-row count
    """

    def __init__(self, conn: Connection, store: TemplateStore) -> None:
        self.conn = conn
        self.store = store

    @classmethod
    def open(
        cls,
        target: str | Path | None = None,
        templates: Iterable[SqlTemplate | tuple[str, str]] = (),
        partials: Iterable[SqlTemplate | tuple[str, str]] = (),
        *,
        store: TemplateStore | None = None,
    ) -> "QueryExecutor":
        """
        Connect to *target* (default ``settings.DATABASE_URL``) and register
        *templates* and *partials* in a new store (or in *store*).
        """
        store = store if store is not None else TemplateStore()
        store.register_all(templates, partials)
        return cls(connect(target), store)

    def render(self, template: TemplateRef, params: QueryParameters) -> str:
        """Render phase only: final SQL text for *params*."""
        name = _template_name(template)
        sql = self.store.render(name, params.render_context())
        _log.debug("Rendered %s: %s", name, sql)
        return sql

    def query(
        self,
        template: TemplateRef,
        params: QueryParameters,
        row_mapper: Callable[[dict[str, Any]], T],
    ) -> list[T]:
        """
        Render, bind and run a SELECT-like template; map every row.

        Rows that fail mapping are skipped and logged. Raises RenderError or
        DatabaseError.
        """
        sql = self.render(template, params)
        return query_sql(self.conn, sql, params.bind_list(), row_mapper)

    def execute(self, template: TemplateRef, params: QueryParameters) -> int:
        """Render, bind and run a DML template; return the affected-row count."""
        sql = self.render(template, params)
        return execute_sql(self.conn, sql, params.bind_list())

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "QueryExecutor":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
