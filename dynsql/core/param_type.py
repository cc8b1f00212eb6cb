"""
Bind value kinds.

A bound value is one of INTEGER, REAL, TEXT, BOOLEAN or NULL. Values are
classified once when a BindList is built; anything else is rejected with
BindError before it reaches the driver.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from dynsql.core.errors import BindError

# Rendered when a value has no textual form (presence only)
PRESENCE_MARKER = "true"


class SqlKind(str, Enum):
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BOOLEAN = "boolean"
    NULL = "null"


class BindValue(NamedTuple):
    """A typed value destined for parameter binding."""

    kind: SqlKind
    value: Any

    @classmethod
    def of(cls, value: Any) -> BindValue:
        """Classify *value*. Raises BindError for unsupported types."""
        if isinstance(value, BindValue):
            return value
        if isinstance(value, Enum):
            value = value.value
        return cls(sql_kind(value), value)

    def to_segment(self) -> str:
        """Textual form used for render-time substitution."""
        return to_sql_segment(self.value)


def sql_kind(value: Any) -> SqlKind:
    if value is None:
        return SqlKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return SqlKind.BOOLEAN
    if isinstance(value, int):
        return SqlKind.INTEGER
    if isinstance(value, float):
        return SqlKind.REAL
    if isinstance(value, str):
        return SqlKind.TEXT
    if isinstance(value, Enum):
        return sql_kind(value.value)
    raise BindError(f"Unsupported bind value type: {type(value).__name__}")


def to_sql_segment(value: Any) -> str:
    """
    Convert a value to the text substituted into a template.

    Integers, reals and text keep their textual form; any other kind
    (booleans, enums of other kinds, None) becomes the presence marker.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return PRESENCE_MARKER
    if isinstance(value, (int, float, str)):
        return str(value)
    return PRESENCE_MARKER
