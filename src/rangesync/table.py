"""
Range engine for one table.

Table answers the questions a sync driver asks while walking a table in
primary-key order: where does the next chunk end, what is the fingerprint
of a chunk, which rows does it hold. It also applies the two repair
primitives: delete rows the source no longer has, and upsert rows that are
new or changed.

Every query is scoped by the optional WhereClause and by the chunk's
``[start, end)`` key range.
"""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

from .definition import Definition
from .exceptions import MissingPrimaryKeyError, TableNotFoundError
from .key import Key, KeyLike, coerce_key
from .metrics import RangeSyncMetrics, get_metrics
from .ranges import RangePredicateBuilder
from .sql.builder import QueryBuilder
from .sql.connection import Connection
from .sql.dialects import DatabaseType
from .sql.expression import Expression, as_expression
from .sql.grammar import get_grammar
from .utils.logging import ContextLogger
from .utils.sql_safety import validate_identifier
from .utils.tracing import trace_operation
from .where_clause import WhereClause


class Table:
    """Primary-key range operations over ``schema.table`` on one connection."""

    def __init__(
        self,
        connection: Connection,
        database: str,
        table: str,
        metrics: RangeSyncMetrics | None = None,
    ):
        """
        Introspect the table's columns and primary key.

        Args:
            connection: Connection the engine issues all statements on; it
                must not be shared with another concurrent Table
            database: Schema name
            table: Table name
            metrics: Metrics sink (default: process-wide instance)

        Raises:
            ValueError: If the schema or table name is not a valid identifier
            TableNotFoundError: If the table has no columns
        """
        validate_identifier(database)
        validate_identifier(table)

        self.connection = connection
        self.database = database
        self.table = table
        self.metrics = metrics or get_metrics()
        self.where: WhereClause | None = None
        self.log = ContextLogger(__name__, table=self.get_qualified_name())

        self.definition = self._configure()
        self._ranges = RangePredicateBuilder(self.get_primary_key(), connection.grammar)

    @classmethod
    def from_dbapi(
        cls,
        dbapi_connection: Any,
        database: str,
        table: str,
        dialect: DatabaseType | str | None = None,
        **kwargs: Any,
    ) -> "Table":
        """Build a Table straight from a psycopg2, pyodbc or sqlite3 connection."""
        grammar = get_grammar(dialect) if dialect is not None else None
        return cls(Connection(dbapi_connection, grammar), database, table, **kwargs)

    def _configure(self) -> Definition:
        columns = self.connection.introspect_columns(self.database, self.table)
        if not columns:
            raise TableNotFoundError(self.get_qualified_name())

        primary_key = self.connection.introspect_primary_key(self.database, self.table)
        if not primary_key:
            self.log.warning("Table has no primary key; ranged operations are unavailable")

        self.log.debug(
            "Loaded table definition",
            columns=len(columns),
            primary_key=",".join(primary_key),
        )
        return Definition(columns, primary_key)

    def set_where_clause(self, where: WhereClause | None) -> None:
        """
        Scope every following query to the rows matching ``where``.

        Raises:
            ConfigurationError: If the clause's placeholders, as this
                connection's dialect reads them, do not match its bindings
        """
        if where is not None:
            where.validate(self.connection.grammar)
        self.where = where

    def get_where_clause(self) -> WhereClause | None:
        return self.where

    @contextmanager
    def _operation(self, name: str, **attributes: Any) -> Iterator[Any]:
        with trace_operation(
            f"rangesync.{name}",
            kind=trace.SpanKind.CLIENT,
            db_system=self.connection.dialect.value,
            table=self.get_qualified_name(),
            **attributes,
        ) as span:
            with self.metrics.track(self.get_qualified_name(), name):
                yield span

    def get_key_at_position(self, last_key: KeyLike, position: int) -> Key | None:
        """
        Key of the row ``position`` rows from ``last_key`` in primary-key order.

        ``last_key`` is inclusive: position 0 returns ``last_key`` itself when
        that row exists. Without ``last_key`` counting starts at the first row.

        Returns:
            The Key found, or None when the table has no primary key or fewer
            than ``position + 1`` rows remain
        """
        primary_key = self.get_primary_key()
        if not primary_key:
            return None

        with self._operation("get_key_at_position", position=position):
            query = self._query().select(primary_key).offset(position).limit(1)

            for column in primary_key:
                query.order_by(column)

            self._apply_primary_key_where(query, last_key, None, "pagination")

            row = query.first()
            return Key.from_row(row, primary_key) if row is not None else None

    def get_hash_for_key(
        self,
        columns: Sequence[str],
        hash_expression: Expression | str,
        start_index: KeyLike,
        end_index: KeyLike,
    ) -> Any:
        """
        Evaluate the aggregate ``hash_expression`` over ``columns`` of the rows in range.

        The selected rows become a derived table ``t``, so the expression can
        refer to any selected column by name.

        Returns:
            The aggregate's scalar value (None when the driver returns no row)
        """
        expression = as_expression(hash_expression)

        with self._operation("get_hash_for_key"):
            sub_query = self._query().select(columns)
            self._apply_primary_key_where(sub_query, start_index, end_index, "fingerprint")

            return sub_query.as_subquery("t").value(expression)

    def get_rows_for_key(
        self,
        columns: Sequence[str],
        start_index: KeyLike,
        end_index: KeyLike,
    ) -> list[dict[str, Any]]:
        """Rows in range as dicts of ``columns``, in whatever order the store returns."""
        with self._operation("get_rows_for_key") as span:
            query = self._query().select(columns)
            self._apply_primary_key_where(query, start_index, end_index, "fetch")

            rows = query.get()
            span.set_attribute("rows.returned", len(rows))
            return rows

    def delete(
        self,
        start_index: KeyLike,
        end_index: KeyLike,
        rows: Sequence[Mapping[str, Any]],
    ) -> int:
        """
        Delete rows in range whose primary key matches none of ``rows``.

        ``rows`` are the rows confirmed present in the source; each may carry
        extra columns in any order and is projected onto the primary key.

        While the exclusions fit the dialect's predicate and parameter limits
        a single DELETE is issued. Past them the keys in range are read
        first and the ones not kept are deleted in batches by key.

        Returns:
            Number of rows deleted, as reported by the driver

        Raises:
            MissingPrimaryKeyError: If bounds or keep rows are given and the
                table has no primary key
        """
        primary_key = self.get_primary_key()
        if rows and not primary_key:
            raise MissingPrimaryKeyError(self.get_qualified_name(), "delete")

        with self._operation("delete", keep_rows=len(rows)) as span:
            keep = [Key.from_row(row, primary_key) for row in rows]

            query = self._query()
            self._apply_primary_key_where(query, start_index, end_index, "delete")

            if self._fits_one_statement(query, len(keep)):
                for key in keep:
                    query.where_predicate(self._ranges.exclude(key))
                affected = query.delete()
            else:
                span.set_attribute("batched", True)
                affected = self._delete_unkept(start_index, end_index, keep)

            span.set_attribute("rows.affected", affected)
            self.metrics.record_rows_affected(self.get_qualified_name(), "delete", affected)
            self.log.info("Deleted rows", affected=affected, kept=len(rows))
            return affected

    def _fits_one_statement(self, query: QueryBuilder, keep_count: int) -> bool:
        grammar = self.connection.grammar
        if len(query.wheres) + keep_count > grammar.max_predicates:
            return False
        bindings = len(query.bindings) + keep_count * len(self.get_primary_key())
        return bindings <= grammar.max_bindings

    def _delete_unkept(self, start_index: KeyLike, end_index: KeyLike, keep: Sequence[Key]) -> int:
        """Read the keys in range and delete those not in ``keep``, a batch of keys at a time."""
        primary_key = self.get_primary_key()
        grammar = self.connection.grammar

        existing = self._query().select(primary_key)
        self._apply_primary_key_where(existing, start_index, end_index, "delete")

        kept = {key.values for key in keep}
        unkept = []
        for row in existing.get():
            values = Key.from_row(row, primary_key).values
            if values not in kept:
                unkept.append(values)

        if not unkept:
            return 0

        affected = 0
        batches = 0
        batch_size = None
        offset = 0
        while offset < len(unkept):
            query = self._query()
            self._apply_primary_key_where(query, start_index, end_index, "delete")
            if batch_size is None:
                available = (grammar.max_bindings - len(query.bindings)) // len(primary_key)
                batch_size = max(1, min(available, grammar.max_predicates - len(query.wheres)))

            batch = unkept[offset:offset + batch_size]
            query.where_raw(
                grammar.key_in(primary_key, len(batch)),
                [value for values in batch for value in values],
            )
            affected += query.delete()
            batches += 1
            offset += len(batch)

        self.log.debug("Deleted rows by key", candidates=len(unkept), batches=batches)
        return affected

    def insert(self, rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> int:
        """
        Insert ``rows``; on a primary-key conflict update ``columns`` instead.

        Returns:
            Number of rows inserted or updated, as reported by the driver
        """
        if not rows:
            return 0

        with self._operation("insert", rows=len(rows)) as span:
            affected = self._query().insert(
                rows,
                unique_by=self.get_primary_key(),
                update_columns=columns,
            )

            span.set_attribute("rows.affected", affected)
            self.metrics.record_rows_affected(self.get_qualified_name(), "insert", affected)
            self.log.info("Upserted rows", affected=affected, rows=len(rows))
            return affected

    def get_columns(self) -> tuple[str, ...]:
        return self.definition.get_columns()

    def get_primary_key(self) -> tuple[str, ...]:
        return self.definition.get_primary_key()

    def _apply_primary_key_where(
        self,
        query: QueryBuilder,
        start_index: KeyLike,
        end_index: KeyLike,
        operation: str,
    ) -> None:
        if self.where is not None:
            query.where_predicate(self.where.to_predicate())

        primary_key = self.get_primary_key()
        if not primary_key:
            if start_index or end_index:
                raise MissingPrimaryKeyError(self.get_qualified_name(), operation)
            return

        start = coerce_key(start_index, primary_key)
        end = coerce_key(end_index, primary_key)

        for predicate in self._ranges.build(start, end):
            query.where_predicate(predicate)

    def _query(self) -> QueryBuilder:
        return self.connection.table(self.get_qualified_name())

    def get_qualified_name(self) -> str:
        return f"{self.database}.{self.table}"

    def __str__(self) -> str:
        return self.get_qualified_name()

    def __repr__(self) -> str:
        return f"Table({self.get_qualified_name()!r}, dialect={self.connection.dialect.value!r})"
