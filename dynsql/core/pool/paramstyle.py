"""
Locate ``:name`` placeholders in SQL text and adapt them to a driver's
parameter style.

The scanner skips single/double-quoted literals, ``--`` and ``/* */``
comments and Postgres ``::`` casts, so that ``'12:30'`` or ``x::text`` are
never taken for placeholders.
"""

from collections.abc import Iterator
from typing import NamedTuple


class Placeholder(NamedTuple):
    start: int
    end: int
    name: str


def _is_name_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_name_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def iter_placeholders(sql: str) -> Iterator[Placeholder]:
    """Yield every ``:name`` placeholder outside literals and comments."""
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if ch in ("'", '"'):
            quote = ch
            i += 1
            while i < length:
                if sql[i] == quote:
                    if i + 1 < length and sql[i + 1] == quote:
                        i += 2
                        continue
                    break
                i += 1
            i += 1
            continue

        if ch == "-" and i + 1 < length and sql[i + 1] == "-":
            end = sql.find("\n", i)
            i = length if end == -1 else end + 1
            continue

        if ch == "/" and i + 1 < length and sql[i + 1] == "*":
            end = sql.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue

        if ch == ":":
            if i + 1 < length and sql[i + 1] == ":":
                i += 2
                continue
            if i + 1 < length and _is_name_start(sql[i + 1]):
                j = i + 2
                while j < length and _is_name_char(sql[j]):
                    j += 1
                yield Placeholder(i, j, sql[i + 1 : j])
                i = j
                continue

        i += 1


def find_placeholders(sql: str) -> list[str]:
    """Placeholder names (without the colon) in first-occurrence order."""
    seen: dict[str, None] = {}
    for p in iter_placeholders(sql):
        seen.setdefault(p.name, None)
    return list(seen)


def to_pyformat(sql: str) -> str:
    """
    Rewrite ``:name`` as ``%(name)s`` for psycopg / PyMySQL.

    Literal ``%`` characters are doubled everywhere (including inside string
    literals) since both drivers interpolate the whole statement text.
    """
    out: list[str] = []
    pos = 0
    for p in iter_placeholders(sql):
        out.append(sql[pos : p.start].replace("%", "%%"))
        out.append(f"%({p.name})s")
        pos = p.end
    out.append(sql[pos:].replace("%", "%%"))
    return "".join(out)
