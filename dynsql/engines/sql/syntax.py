"""
Translate the handlebars-style template surface into Jinja2 source.

Templates are written as::

    SELECT * FROM dogs{{#where}}
      {{#if [:q_color]}} AND color=:q_color{{/if}}
    {{/where}}

and become Jinja2 source that the SQL extensions (``sql_where`` and
friends) understand. ``:name`` placeholders outside of ``{{ }}`` are plain
SQL text and are left alone for binding.

Supported constructs:

- ``{{#if ARG}} .. {{else}} .. {{/if}}`` and ``{{#unless ARG}} .. {{/unless}}``
- ``{{#set}}``, ``{{#where}}``, ``{{#trim "TOKEN"}}``, ``{{#in ARG}}`` blocks
- ``{{> partial_name}}``
- ``{{ARG}}`` / ``{{{ARG}}}`` literal output of a render value
- ``{{! comment }}`` / ``{{!-- comment --}}``
- ``~`` whitespace control on either side of a tag

ARG is ``[:name]`` / ``[name]``, a bare ``name``, a quoted string or a
number. The render context is exposed to Jinja2 as ``params``.
"""

import re

from dynsql.core.errors import RegistrationError
from dynsql.engines.sql.extensions import HELPER_TAGS

CONTEXT_VAR = "params"

_ARG_TOKEN = re.compile(r"""\[[^\]]*\]|"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|\S+""")
_SEGMENT_NAME = re.compile(r"^:?[A-Za-z_][A-Za-z0-9_]*$")
_BARE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
_PARTIAL_NAME = re.compile(r"^[A-Za-z_][\w./-]*$")

_CONDITIONALS = {"if", "unless"}


def _line_of(body: str, offset: int) -> int:
    return body.count("\n", 0, offset) + 1


def _split_args(text: str) -> list[str]:
    return _ARG_TOKEN.findall(text)


def translate_arg(token: str, *, line: int) -> str:
    """Turn one handlebars argument into a Jinja2 expression."""
    if token.startswith("["):
        if not token.endswith("]"):
            raise RegistrationError(f"Malformed placeholder {token!r} at line {line}")
        name = token[1:-1].strip()
        if not _SEGMENT_NAME.match(name):
            raise RegistrationError(f"Malformed placeholder {token!r} at line {line}")
        return f"{CONTEXT_VAR}[{name!r}]"
    if token[0] in ("'", '"'):
        return token
    if _NUMBER.match(token):
        return token
    if _BARE_NAME.match(token):
        return f"{CONTEXT_VAR}[{token!r}]"
    if token.startswith(":"):
        raise RegistrationError(
            f"Malformed placeholder {token!r} at line {line}: "
            f"write it as [{token}] inside {{{{ }}}}"
        )
    raise RegistrationError(f"Unsupported argument {token!r} at line {line}")


def _emit_text(out: list[str], text: str) -> None:
    if not text:
        return
    if "{%" in text or "{#" in text:
        out.append("{% raw %}" + text + "{% endraw %}")
    else:
        out.append(text)


def _tag(content: str, left: bool, right: bool) -> str:
    return "{%" + ("-" if left else "") + " " + content + " " + ("-" if right else "") + "%}"


def translate(body: str) -> str:
    """
    Return the Jinja2 source for a handlebars-style template *body*.

    Raises RegistrationError for unterminated tags, unbalanced or unknown
    blocks and malformed placeholders.
    """
    out: list[str] = []
    stack: list[tuple[str, int]] = []
    pos = 0

    while True:
        start = body.find("{{", pos)
        if start == -1:
            _emit_text(out, body[pos:])
            break
        _emit_text(out, body[pos:start])
        line = _line_of(body, start)

        if body.startswith("{{!--", start) or body.startswith("{{~!--", start):
            end = body.find("--}}", start)
            if end == -1:
                end = body.find("--~}}", start)
                if end == -1:
                    raise RegistrationError(f"Unterminated comment at line {line}")
                pos = end + 5
            else:
                pos = end + 4
            continue

        triple = body.startswith("{{{", start)
        open_len, close = (3, "}}}") if triple else (2, "}}")
        end = body.find(close, start + open_len)
        if end == -1:
            raise RegistrationError(f"Unterminated '{{{{' at line {line}")
        inner = body[start + open_len : end]
        pos = end + len(close)

        left = inner.startswith("~")
        right = inner.endswith("~")
        inner = inner.strip("~").strip()
        if not inner:
            raise RegistrationError(f"Empty tag at line {line}")

        if inner.startswith("!"):
            continue

        if inner.startswith("#"):
            head, *args = _split_args(inner[1:]) or [""]
            if head in _CONDITIONALS:
                if len(args) != 1:
                    raise RegistrationError(
                        f"{{{{#{head}}}}} takes exactly one argument (line {line})"
                    )
                expr = translate_arg(args[0], line=line)
                test = expr if head == "if" else f"not {expr}"
                out.append(_tag(f"if {test}", left, right))
            elif head in HELPER_TAGS:
                exprs = ", ".join(translate_arg(a, line=line) for a in args)
                out.append(_tag(f"{HELPER_TAGS[head]} {exprs}".rstrip(), left, right))
            else:
                raise RegistrationError(f"Unknown block '{head}' at line {line}")
            stack.append((head, line))
            continue

        if inner.startswith("/"):
            head = inner[1:].strip()
            if not stack:
                raise RegistrationError(f"Unexpected {{{{/{head}}}}} at line {line}")
            opened, opened_line = stack.pop()
            if head != opened:
                raise RegistrationError(
                    f"{{{{/{head}}}}} at line {line} does not close "
                    f"{{{{#{opened}}}}} opened at line {opened_line}"
                )
            end_tag = "endif" if opened in _CONDITIONALS else f"end{HELPER_TAGS[opened]}"
            out.append(_tag(end_tag, left, right))
            continue

        if inner == "else":
            if not stack or stack[-1][0] not in _CONDITIONALS:
                raise RegistrationError(f"{{{{else}}}} outside of #if/#unless at line {line}")
            out.append(_tag("else", left, right))
            continue

        if inner.startswith(">"):
            name = inner[1:].strip()
            if len(name) >= 2 and name[0] == name[-1] and name[0] in ("'", '"'):
                name = name[1:-1]
            if not _PARTIAL_NAME.match(name):
                raise RegistrationError(f"Malformed partial name {name!r} at line {line}")
            out.append(_tag(f"include {name!r}", left, right))
            continue

        head, *args = _split_args(inner)
        if head in HELPER_TAGS:
            # Helper used inline, without a block body: fails when rendered.
            exprs = ", ".join(translate_arg(a, line=line) for a in args)
            tag = HELPER_TAGS[head]
            out.append(_tag(f"{tag} {exprs}".rstrip(), left, False))
            out.append(_tag(f"end{tag}", False, right))
            continue
        if args:
            raise RegistrationError(f"Unknown helper '{head}' at line {line}")
        expr = translate_arg(head, line=line)
        out.append("{{" + ("-" if left else "") + " " + expr + " " + ("-" if right else "") + "}}")

    if stack:
        head, line = stack[-1]
        raise RegistrationError(f"Unclosed {{{{#{head}}}}} opened at line {line}")
    return "".join(out)
