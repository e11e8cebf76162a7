"""
SQL execution port.

Connection wraps a DB-API 2.0 connection together with the grammar for its
dialect. It builds queries, executes them and performs the two
introspection lookups the engine needs. It never commits or rolls back;
transaction control stays with the caller that owns the DB-API connection.
"""

import logging
from collections.abc import Sequence
from typing import Any

from opentelemetry import trace

from rangesync.utils.tracing import trace_operation

from .builder import QueryBuilder
from .dialects import DatabaseType
from .grammar import Grammar, get_grammar

logger = logging.getLogger(__name__)


class Connection:
    """DB-API connection plus dialect grammar."""

    def __init__(self, dbapi_connection: Any, grammar: Grammar | None = None):
        """
        Args:
            dbapi_connection: Open psycopg2, pyodbc or sqlite3 connection
            grammar: Grammar to render SQL with; detected from the driver
                module when omitted
        """
        self.dbapi_connection = dbapi_connection
        if grammar is None:
            grammar = get_grammar(DatabaseType.from_connection(dbapi_connection))
        self.grammar = grammar

    @property
    def dialect(self) -> DatabaseType:
        return self.grammar.dialect

    def table(self, qualified_name: str) -> QueryBuilder:
        """Start a query against ``schema.table``."""
        return QueryBuilder(self, qualified_name)

    def _execute(self, sql: str, bindings: Sequence[Any]):
        prepared = self.grammar.prepare(sql)
        logger.debug("Executing SQL: %s bindings=%s", prepared, list(bindings))

        cursor = self.dbapi_connection.cursor()
        try:
            if bindings or self.grammar.always_bind:
                cursor.execute(prepared, tuple(bindings))
            else:
                cursor.execute(prepared)
        except Exception:
            cursor.close()
            raise
        return cursor

    def select(self, sql: str, bindings: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a query and return rows as dicts keyed by column name."""
        cursor = self._execute(sql, bindings)
        try:
            columns = [description[0] for description in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def scalar(self, sql: str, bindings: Sequence[Any] = ()) -> Any:
        """Run a query and return the first column of the first row, or None."""
        cursor = self._execute(sql, bindings)
        try:
            row = cursor.fetchone()
            return row[0] if row is not None else None
        finally:
            cursor.close()

    def affecting_statement(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        """Run a DML statement and return the driver's affected row count."""
        cursor = self._execute(sql, bindings)
        try:
            rowcount = cursor.rowcount
        finally:
            cursor.close()

        if rowcount is None or rowcount < 0:
            logger.warning(f"Driver did not report an affected row count for: {sql[:80]}")
            return 0
        return rowcount

    def introspect_columns(self, schema: str, table: str) -> list[str]:
        """Column names of ``schema.table`` in declaration order."""
        with trace_operation(
            "introspect_columns", kind=trace.SpanKind.CLIENT,
            db_system=self.dialect.value, schema=schema, table=table,
        ):
            sql, bindings = self.grammar.compile_column_listing(schema, table)
            return [row[0] for row in self._rows(sql, bindings)]

    def introspect_primary_key(self, schema: str, table: str) -> list[str]:
        """Primary-key column names of ``schema.table`` in key sequence order."""
        with trace_operation(
            "introspect_primary_key", kind=trace.SpanKind.CLIENT,
            db_system=self.dialect.value, schema=schema, table=table,
        ):
            sql, bindings = self.grammar.compile_primary_key_listing(schema, table)
            return [row[0] for row in self._rows(sql, bindings)]

    def _rows(self, sql: str, bindings: Sequence[Any]) -> list[tuple]:
        cursor = self._execute(sql, bindings)
        try:
            return [tuple(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
