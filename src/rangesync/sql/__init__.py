"""
SQL execution layer for rangesync.

Components:
- grammar: per-dialect SQL rendering (PostgreSQL, SQL Server, SQLite)
- builder: QueryBuilder for selects, deletes and upserts
- connection: Connection wrapping a DB-API connection, plus introspection
- connectors: environment-driven connection factories
"""

from .builder import QueryBuilder
from .connection import Connection
from .connectors import (
    DatabaseConfig,
    connect_postgres,
    connect_sqlite,
    connect_sqlserver,
)
from .dialects import DatabaseType
from .expression import Expression, Predicate
from .grammar import (
    Grammar,
    PostgresGrammar,
    SQLiteGrammar,
    SQLServerGrammar,
    TupleComparison,
    get_grammar,
)

__all__ = [
    "Connection",
    "QueryBuilder",
    "DatabaseConfig",
    "DatabaseType",
    "Expression",
    "Predicate",
    "Grammar",
    "PostgresGrammar",
    "SQLServerGrammar",
    "SQLiteGrammar",
    "TupleComparison",
    "get_grammar",
    "connect_postgres",
    "connect_sqlserver",
    "connect_sqlite",
]
