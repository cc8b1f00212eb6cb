from dynsql.core.config import Settings, settings
from dynsql.core.errors import (
    BindError,
    DatabaseError,
    DynamicSqlError,
    RegistrationError,
    RenderError,
    SchemaError,
)

__all__ = [
    "Settings",
    "settings",
    "DynamicSqlError",
    "RegistrationError",
    "RenderError",
    "BindError",
    "SchemaError",
    "DatabaseError",
]
