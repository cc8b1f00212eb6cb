"""
Template store for dynamic SQL.

Templates and partials are registered once, by name, in handlebars-style
syntax (see ``syntax``). Each body is translated to Jinja2 source and
syntax-checked at registration; partial inclusion (``{{> name}}``) is
resolved when a template is rendered, so partials may be registered in any
order.

After setup the store is read-only and can be shared between threads.
Compiled templates are kept in the Jinja2 environment cache.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from jinja2 import (
    DictLoader,
    Environment,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
    nodes,
)

from dynsql.core.config import settings
from dynsql.core.errors import RegistrationError, RenderError
from dynsql.engines.sql.extensions import SQL_EXTENSIONS
from dynsql.engines.sql.filters import sql_finalize
from dynsql.engines.sql.safety import check_sql_template_safety
from dynsql.engines.sql.syntax import CONTEXT_VAR, translate

_log = logging.getLogger(__name__)

_PARSE_ENV: Environment | None = None


class SqlTemplate(NamedTuple):
    """A named SQL template body."""

    name: str
    sql: str


def _make_env(loader: DictLoader | None = None, cache_size: int | None = None) -> Environment:
    return Environment(
        loader=loader,
        autoescape=False,
        extensions=SQL_EXTENSIONS,
        finalize=sql_finalize,
        cache_size=settings.TEMPLATE_CACHE_SIZE if cache_size is None else cache_size,
    )


def _get_parse_env() -> Environment:
    """Shared loader-less Environment used for parsing only."""
    global _PARSE_ENV
    if _PARSE_ENV is None:
        _PARSE_ENV = _make_env()
    return _PARSE_ENV


def _preview(body: str) -> str:
    limit = settings.TEMPLATE_PREVIEW_CHARS
    return body[:limit] + "..." if len(body) > limit else body


def parse_parameters(body: str) -> list[str]:
    """
    Names referenced by presence tests, block arguments and literal output
    (``[:name]``) in a template body, sorted. Partials are not followed.
    """
    ast = _get_parse_env().parse(translate(body))
    names: set[str] = set()
    for node in ast.find_all(nodes.Getitem):
        if (
            isinstance(node.node, nodes.Name)
            and node.node.name == CONTEXT_VAR
            and isinstance(node.arg, nodes.Const)
        ):
            names.add(node.arg.value)
    return sorted(names)


class TemplateStore:
    """Named SQL templates and partials sharing one lookup table."""

    def __init__(self, *, cache_size: int | None = None) -> None:
        self._bodies: dict[str, str] = {}
        self._sources: dict[str, str] = {}
        self._env = _make_env(DictLoader(self._sources), cache_size)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def names(self) -> list[str]:
        return sorted(self._sources)

    def body(self, name: str) -> str:
        """The template body as registered."""
        try:
            return self._bodies[name]
        except KeyError:
            raise RenderError(f"Unknown template {name!r}") from None

    def register(self, name: str, body: str) -> None:
        """Register a template. Raises RegistrationError."""
        self._add(name, body, "template")

    def register_partial(self, name: str, body: str) -> None:
        """Register a partial. Raises RegistrationError."""
        self._add(name, body, "partial")

    def register_all(
        self,
        templates: Iterable[SqlTemplate | tuple[str, str]],
        partials: Iterable[SqlTemplate | tuple[str, str]] = (),
    ) -> None:
        for name, body in templates:
            self.register(name, body)
        for name, body in partials:
            self.register_partial(name, body)

    def _add(self, name: str, body: str, kind: str) -> None:
        if not name:
            raise RegistrationError(f"{kind} name must not be empty")
        if name in self._sources:
            raise RegistrationError(f"{kind} {name!r} is already registered")
        try:
            source = translate(body)
            self._env.parse(source)
        except RegistrationError as e:
            raise RegistrationError(f"Cannot register {kind} {name!r}: {e}") from e
        except TemplateSyntaxError as e:
            raise RegistrationError(
                f"Cannot register {kind} {name!r}: {e}. Template preview:\n{_preview(body)}"
            ) from e

        for warning in check_sql_template_safety(body):
            _log.debug("%s %r line %s: %s", kind, name, warning["line"], warning["message"])

        self._bodies[name] = body
        self._sources[name] = source
        _log.debug("Registered %s %r", kind, name)

    def render(self, name: str, context: Mapping[str, Any]) -> str:
        """Render template *name* with a render context to final SQL text."""
        if name not in self._sources:
            raise RenderError(f"Unknown template {name!r}")
        try:
            t = self._env.get_template(name)
            return t.render({CONTEXT_VAR: dict(context)})
        except TemplateNotFound as e:
            raise RenderError(
                f"Partial {e.name!r} used by template {name!r} is not registered"
            ) from e
        except UndefinedError as e:
            raise RenderError(
                f"Render value not found in template {name!r}: {e}. "
                f"Available names: {sorted(context)}."
            ) from e
        except TemplateError as e:
            raise RenderError(
                f"SQL template render error in {name!r}: {e}. "
                f"Template preview:\n{_preview(self._bodies[name])}"
            ) from e
