"""
dynsql: SQL templates with optional fragments.

One template plus a parameter schema replaces every hand-written
combination of optional filters and updates.
"""

from dynsql.core.errors import (
    BindError,
    DatabaseError,
    DynamicSqlError,
    RegistrationError,
    RenderError,
    SchemaError,
)
from dynsql.core.param_type import BindValue, SqlKind
from dynsql.core.pool import Connection, connect
from dynsql.engines import QueryExecutor, SqlTemplate, TemplateStore
from dynsql.params import Dual, Execution, ParameterSchema, QueryParameters, Render

__all__ = [
    "TemplateStore",
    "SqlTemplate",
    "QueryExecutor",
    "ParameterSchema",
    "QueryParameters",
    "Execution",
    "Render",
    "Dual",
    "BindValue",
    "SqlKind",
    "connect",
    "Connection",
    "DynamicSqlError",
    "RegistrationError",
    "RenderError",
    "BindError",
    "SchemaError",
    "DatabaseError",
]
