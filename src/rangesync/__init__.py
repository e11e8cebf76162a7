"""
Range-partitioned table reconciliation.

Compares a table between two databases chunk by chunk in primary-key order:
fingerprint each chunk on both sides, and fetch, prune and upsert rows only
for chunks whose fingerprints differ.

Components:
- table: Table, the range engine (pagination, fingerprint, fetch, delete, upsert)
- ranges: compound-key range predicate construction
- definition / key / where_clause: table definition, row keys, filter clause
- sql: dialect grammars, query builder and DB-API connection wrapper

Usage:
    from rangesync import Table, WhereClause
    from rangesync.sql import connect_postgres, DatabaseConfig

    source = Table(connect_postgres(DatabaseConfig.from_env("SOURCE")), "public", "orders")
    source.set_where_clause(WhereClause("tenant_id = ?", [42]))
    boundary = source.get_key_at_position(None, 1000)
"""

from .definition import Definition
from .exceptions import (
    ConfigurationError,
    MissingPrimaryKeyError,
    RangeSyncError,
    TableNotFoundError,
)
from .key import Key
from .table import Table
from .where_clause import WhereClause

__version__ = "1.0.0"
__all__ = [
    "Table",
    "Definition",
    "Key",
    "WhereClause",
    "RangeSyncError",
    "ConfigurationError",
    "TableNotFoundError",
    "MissingPrimaryKeyError",
]
