"""
Value formatting for render-time substitution.

Render contexts only ever hold presence markers (``True``) and literal
strings, so output needs no escaping: whatever a schema put into the render
context is trusted text.
"""

from typing import Any

from jinja2.runtime import Undefined

from dynsql.core.errors import RenderError
from dynsql.core.param_type import to_sql_segment


def quote_values(raw: str) -> str:
    """
    Turn ``"a,b,a,c"`` into ``"'a','b','c'"``.

    Duplicates are dropped keeping first-occurrence order. Items are quoted
    but not escaped; an item containing a single quote is refused instead.
    """
    items = list(dict.fromkeys(raw.split(",")))
    for item in items:
        if "'" in item:
            raise RenderError(
                f"IN-list item {item!r} contains a single quote; "
                "literal lists only accept trusted values"
            )
    return ",".join(f"'{item}'" for item in items)


def sql_finalize(value: Any) -> str:
    """Jinja2 ``finalize`` callback for ``{{ [:name] }}`` output."""
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, str):
        return value
    return to_sql_segment(value)
