"""
Error taxonomy.

RegistrationError and RenderError come from the template layer, BindError
from parameter/row conversion, DatabaseError from the storage engine.
"""


class DynamicSqlError(Exception):
    """Base class for every error raised by dynsql."""

    pass


class RegistrationError(DynamicSqlError):
    """Duplicate template/partial name or malformed template body."""

    pass


class RenderError(DynamicSqlError):
    """Unknown template/partial at render time or malformed block usage."""

    pass


class BindError(DynamicSqlError, ValueError):
    """A value cannot be bound, or a result row cannot be mapped."""

    pass


class SchemaError(DynamicSqlError, TypeError):
    """Invalid ParameterSchema definition (e.g. a name used twice)."""

    pass


class DatabaseError(DynamicSqlError):
    """Failure at the storage-engine boundary (prepare, bind, execute)."""

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql
