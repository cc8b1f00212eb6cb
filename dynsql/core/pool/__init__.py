"""
Storage-engine access: connections, prepared statements, placeholder styles.

sqlite3 ships with Python; psycopg and pymysql are installed via pip.
"""

from .connection import (
    Connection,
    MappedRow,
    ProductTypeEnum,
    Statement,
    connect,
)
from .paramstyle import find_placeholders, iter_placeholders, to_pyformat

__all__ = [
    "connect",
    "Connection",
    "Statement",
    "MappedRow",
    "ProductTypeEnum",
    "find_placeholders",
    "iter_placeholders",
    "to_pyformat",
]
