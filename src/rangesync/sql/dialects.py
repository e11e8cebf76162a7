"""
Database dialect enumeration.

Identifies which grammar renders SQL for a given DB-API connection.
"""

from enum import Enum
from typing import Any

from rangesync.exceptions import ConfigurationError

_ALIASES = {
    "postgres": "postgresql",
    "pg": "postgresql",
    "psycopg2": "postgresql",
    "mssql": "sqlserver",
    "pyodbc": "sqlserver",
    "sqlite3": "sqlite",
}


class DatabaseType(str, Enum):
    """
    Supported SQL dialects.

    Inherits from str so values compare equal to their plain names.
    """

    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: "DatabaseType | str") -> "DatabaseType":
        """
        Resolve a dialect name or alias.

        Raises:
            ConfigurationError: If the name is not a supported dialect
        """
        if isinstance(value, cls):
            return value

        name = str(value).strip().lower()
        name = _ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(f"Unsupported database dialect: {value!r}") from None

    @classmethod
    def from_connection(cls, connection: Any) -> "DatabaseType":
        """
        Detect the dialect from a DB-API connection's driver module.

        Raises:
            ConfigurationError: If the driver is not recognised
        """
        module = type(connection).__module__.split(".")[0].lower()

        if module.startswith("psycopg"):
            return cls.POSTGRESQL
        if module == "pyodbc":
            return cls.SQLSERVER
        if module in ("sqlite3", "_sqlite3"):
            return cls.SQLITE

        raise ConfigurationError(
            f"Cannot detect dialect for connection type {type(connection).__name__!r}"
        )
