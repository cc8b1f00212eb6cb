"""
Static analysis for SQL templates: find literal-splice sites.

Most of a template's values travel as bound parameters (``:name`` in SQL
text). Two constructs put render-time text straight into the SQL instead:

- ``{{[:name]}}`` / ``{{{[:name]}}}`` output of a render value;
- ``{{#in [:name]}} .. {{/in}}`` literal IN-lists.

Both are only safe for trusted values. The store logs these sites when a
template is registered.

Usage::

    warnings = check_sql_template_safety(template_body)
    # [{"variable": ":ids", "line": 3, "kind": "in", "message": "..."}]
"""

import re
from typing import Any

_TAG_PATTERN = re.compile(r"\{\{\{?~?(?P<expr>.*?)~?\}?\}\}", re.DOTALL)

# Tags that never output a value
_STRUCTURAL = ("#", "/", ">", "!", "else")


def _variable(arg: str) -> str:
    arg = arg.strip()
    if arg.startswith("[") and arg.endswith("]"):
        return arg[1:-1].strip()
    return arg


def check_sql_template_safety(template: str) -> list[dict[str, Any]]:
    """Return one warning per literal-splice site in *template*.

    Each warning is a dict with ``variable``, ``line``, ``kind``
    (``"output"`` or ``"in"``) and ``message`` keys. An empty list means the
    template only binds values.
    """
    warnings: list[dict[str, Any]] = []

    for match in _TAG_PATTERN.finditer(template):
        expr = match.group("expr").strip()
        if not expr:
            continue
        line_no = template.count("\n", 0, match.start()) + 1

        if expr.startswith("#"):
            parts = expr[1:].split(None, 1)
            if parts and parts[0] == "in":
                var_name = _variable(parts[1]) if len(parts) > 1 else ""
                warnings.append(
                    {
                        "variable": var_name,
                        "line": line_no,
                        "kind": "in",
                        "message": (
                            f"'{{{{#in [{var_name}]}}}}' splices a literal list into "
                            f"the SQL text. Only pass trusted, internally built lists."
                        ),
                    }
                )
            continue
        if expr.startswith(_STRUCTURAL):
            continue

        head = expr.split()[0]
        if head in ("set", "where", "trim", "in"):
            continue
        var_name = _variable(head)
        warnings.append(
            {
                "variable": var_name,
                "line": line_no,
                "kind": "output",
                "message": (
                    f"'{{{{[{var_name}]}}}}' inlines a render value into the SQL "
                    f"text. Bind it as :{var_name.lstrip(':')} unless the value is trusted."
                ),
            }
        )

    return warnings
