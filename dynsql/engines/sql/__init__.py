"""
Dynamic SQL templates (handlebars-style syntax on top of Jinja2).

Exports: TemplateStore, SqlTemplate, parse_parameters, find_placeholders,
execute_sql, query_sql.
"""

from dynsql.engines.sql.executor import execute_sql, query_sql
from dynsql.engines.sql.parser import find_placeholders, parse_parameters
from dynsql.engines.sql.template_engine import SqlTemplate, TemplateStore

__all__ = [
    "TemplateStore",
    "SqlTemplate",
    "parse_parameters",
    "find_placeholders",
    "execute_sql",
    "query_sql",
]
