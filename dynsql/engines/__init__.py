"""
Engines: SQL templates (Jinja2) and the QueryExecutor that runs them.
"""

from dynsql.engines.executor import QueryExecutor
from dynsql.engines.sql import SqlTemplate, TemplateStore, parse_parameters

__all__ = [
    "QueryExecutor",
    "TemplateStore",
    "SqlTemplate",
    "parse_parameters",
]
