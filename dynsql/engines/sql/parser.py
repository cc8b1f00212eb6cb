"""
Parse names out of SQL templates and rendered SQL.

- parse_parameters: render-context names a template body references
  (``[:name]`` in presence tests, block arguments and literal output).
- find_placeholders: ``:name`` placeholders left in rendered SQL text, i.e.
  the names that need a bound value.
"""

from dynsql.core.pool.paramstyle import find_placeholders
from dynsql.engines.sql.template_engine import parse_parameters

__all__ = ["parse_parameters", "find_placeholders"]
