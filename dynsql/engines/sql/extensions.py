"""
Conditional clause blocks for the SQL template engine.

{% sql_where %}: combine conditions, strip a dangling ``AND ``, prefix ``WHERE``.
{% sql_set %}: combine assignments, strip a dangling ``,``, prefix ``SET``.
{% sql_trim "TOKEN" %}: strip a dangling TOKEN, no prefix.
{% sql_in LIST %}: replace ``:values`` / ``:VALUES`` with a quoted literal list.

Templates use the handlebars spelling (``{{#where}}``, ``{{#set}}`` ...);
``syntax.translate`` maps it onto these tags.
"""

import re
from typing import Any

from jinja2 import nodes
from jinja2.ext import Extension
from jinja2.runtime import Undefined

from dynsql.core.errors import RenderError
from dynsql.engines.sql.filters import quote_values

_VALUES_PLACEHOLDER = re.compile(r":(?:VALUES|values)\b")


def trim_block(content: str, prefix: str, delimiter: str | None) -> str:
    """
    Trim whitespace and one leading/trailing *delimiter* from *content*.

    Returns ``" " + prefix + " " + content`` or ``""`` when nothing is left.
    """
    s = content.strip()
    if delimiter:
        if s.startswith(delimiter):
            s = s[len(delimiter) :]
        if s.endswith(delimiter):
            s = s[: -len(delimiter)]
    if not s:
        return ""
    return " " + prefix + " " + s


class _SqlBlockExtension(Extension):
    """Parses ``{% tag [arg, ...] %} body {% endtag %}`` into a call block."""

    helper = ""

    def parse(self, parser) -> nodes.CallBlock:
        token = next(parser.stream)
        lineno = token.lineno
        args: list[nodes.Expr] = []
        while parser.stream.current.type != "block_end":
            if args:
                parser.stream.expect("comma")
            args.append(parser.parse_expression())
        body = parser.parse_statements((f"name:end{token.value}",), drop_needle=True)
        return nodes.CallBlock(
            self.call_method(
                "_render_block", [nodes.List(args), nodes.Const(bool(body))]
            ),
            [],
            [],
            body,
        ).set_lineno(lineno)

    def _render_block(self, args: list[Any], has_body: bool, caller: Any) -> str:
        if not has_body:
            raise RenderError(f"{{{{#{self.helper}}}}} requires a block body")
        return self.render_body(args, caller())

    def render_body(self, args: list[Any], content: str) -> str:
        raise NotImplementedError


class TrimExtension(_SqlBlockExtension):
    """
    {{#trim "TOKEN"}} ... {{/trim}}
    The delimiter is required as the first argument.
    """

    tags = {"sql_trim"}
    helper = "trim"
    keyword = ""
    delimiter: str | None = None

    def render_body(self, args: list[Any], content: str) -> str:
        delimiter = self.delimiter
        if delimiter is None:
            if not args or not isinstance(args[0], str) or not args[0]:
                raise RenderError("delimiter is required for trimming helpers")
            delimiter = args[0]
        return trim_block(content, self.keyword, delimiter)


class WhereExtension(TrimExtension):
    tags = {"sql_where"}
    helper = "where"
    keyword = "WHERE"
    delimiter = "AND "


class SetExtension(TrimExtension):
    tags = {"sql_set"}
    helper = "set"
    keyword = "SET"
    delimiter = ","


class InExtension(_SqlBlockExtension):
    """
    {{#in [:ids]}} id IN (:values) {{/in}}

    The argument is a comma-separated list known at render time. It is
    spliced into the SQL text, not bound, so it must come from a trusted
    source.
    """

    tags = {"sql_in"}
    helper = "in"

    def render_body(self, args: list[Any], content: str) -> str:
        if not args or args[0] is None or isinstance(args[0], Undefined):
            raise RenderError("{{#in}} requires a comma-separated list argument")
        raw = args[0]
        if isinstance(raw, (list, tuple)):
            raw = ",".join(str(v) for v in raw)
        joined = quote_values(str(raw))
        return _VALUES_PLACEHOLDER.sub(lambda _m: joined, content)


# Handlebars helper name -> Jinja2 tag
HELPER_TAGS: dict[str, str] = {
    "set": "sql_set",
    "where": "sql_where",
    "trim": "sql_trim",
    "in": "sql_in",
}

# List of extensions to pass to Jinja2 Environment
SQL_EXTENSIONS: list[type[Extension]] = [
    TrimExtension,
    WhereExtension,
    SetExtension,
    InExtension,
]
