"""
Connection factories for the supported drivers.

Settings come from a DatabaseConfig, usually built from environment
variables with DatabaseConfig.from_env(). Server connections are opened in
autocommit mode so every delete/upsert statement is applied on its own.
"""

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import trace

from rangesync.exceptions import ConfigurationError
from rangesync.utils.tracing import trace_operation

from .connection import Connection
from .grammar import PostgresGrammar, SQLiteGrammar, SQLServerGrammar

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"POSTGRES": 5432, "SQLSERVER": 1433}
DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


@dataclass
class DatabaseConfig:
    """Connection settings for one database server."""

    host: str
    database: str
    user: str
    password: str
    port: int | None = None
    driver: str | None = None
    connect_timeout: int = 10
    extra: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(host={self.host!r}, port={self.port!r}, "
            f"database={self.database!r}, user={self.user!r}, password='***')"
        )

    @classmethod
    def from_env(cls, prefix: str) -> "DatabaseConfig":
        """
        Build a config from ``<PREFIX>_*`` environment variables.

        Environment variables:
            <PREFIX>_HOST: Server host (default: localhost)
            <PREFIX>_PORT: Server port (default: driver default)
            <PREFIX>_DB: Database name (required)
            <PREFIX>_USER: User name (required)
            <PREFIX>_PASSWORD: Password (required)
            <PREFIX>_DRIVER: ODBC driver name (SQL Server only)

        Raises:
            ConfigurationError: If a required variable is missing or the port
                is not an integer
        """
        prefix = prefix.upper().rstrip("_")

        def required(name: str) -> str:
            value = os.getenv(f"{prefix}_{name}")
            if not value:
                raise ConfigurationError(f"Environment variable {prefix}_{name} is not set")
            return value

        port = os.getenv(f"{prefix}_PORT")
        try:
            port_value = int(port) if port else DEFAULT_PORTS.get(prefix)
        except ValueError:
            raise ConfigurationError(f"{prefix}_PORT must be an integer, got {port!r}") from None

        return cls(
            host=os.getenv(f"{prefix}_HOST", "localhost"),
            port=port_value,
            database=required("DB"),
            user=required("USER"),
            password=required("PASSWORD"),
            driver=os.getenv(f"{prefix}_DRIVER"),
        )


def connect_postgres(config: DatabaseConfig) -> Connection:
    """Open a psycopg2 connection and wrap it."""
    import psycopg2

    with trace_operation(
        "postgres_connect",
        kind=trace.SpanKind.CLIENT,
        db_host=config.host,
        db_name=config.database,
    ):
        conn = psycopg2.connect(
            host=config.host,
            port=config.port or DEFAULT_PORTS["POSTGRES"],
            dbname=config.database,
            user=config.user,
            password=config.password,
            connect_timeout=config.connect_timeout,
            **config.extra,
        )
        conn.autocommit = True

    logger.info(f"Connected to PostgreSQL {config.host}/{config.database}")
    return Connection(conn, PostgresGrammar())


def build_odbc_connection_string(config: DatabaseConfig) -> str:
    """Render an ODBC connection string for SQL Server."""
    parts = {
        "DRIVER": f"{{{config.driver or DEFAULT_ODBC_DRIVER}}}",
        "SERVER": f"{config.host},{config.port or DEFAULT_PORTS['SQLSERVER']}",
        "DATABASE": config.database,
        "UID": config.user,
        "PWD": config.password,
        "TrustServerCertificate": "yes",
        "Encrypt": "yes",
    }
    parts.update({key: str(value) for key, value in config.extra.items()})
    return "".join(f"{key}={value};" for key, value in parts.items())


def connect_sqlserver(config: DatabaseConfig) -> Connection:
    """Open a pyodbc connection and wrap it."""
    import pyodbc

    with trace_operation(
        "sqlserver_connect",
        kind=trace.SpanKind.CLIENT,
        db_host=config.host,
        db_name=config.database,
    ):
        conn = pyodbc.connect(
            build_odbc_connection_string(config),
            timeout=config.connect_timeout,
        )
        conn.autocommit = True

    logger.info(f"Connected to SQL Server {config.host}/{config.database}")
    return Connection(conn, SQLServerGrammar())


def connect_sqlite(path: str = ":memory:") -> Connection:
    """Open an sqlite3 database file (or an in-memory database) and wrap it."""
    conn = sqlite3.connect(path)
    logger.debug(f"Opened SQLite database {path}")
    return Connection(conn, SQLiteGrammar())
