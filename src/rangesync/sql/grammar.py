"""
Dialect grammars.

A grammar turns a QueryBuilder into SQL text for one database engine:
identifier quoting, tuple comparisons, pagination clauses, upserts and the
introspection queries. Everything is rendered with qmark placeholders;
prepare() converts to the driver's paramstyle just before execution.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rangesync.utils.sql_safety import split_schema_table

from .dialects import DatabaseType
from .expression import Expression, Predicate
from .placeholders import count_placeholders, qmark_to_format

if TYPE_CHECKING:
    from .builder import QueryBuilder

COMPARISON_OPERATORS = frozenset({"=", "<>", "<", "<=", ">", ">="})


@dataclass(frozen=True)
class TupleComparison:
    """
    Rendered comparison of a column tuple against a value tuple.

    ``binding_map`` lists, per placeholder, the index of the key value bound
    to it. Row-value dialects bind each value once; expanded forms repeat
    values.
    """

    sql: str
    binding_map: tuple[int, ...]

    def bind(self, values: Sequence[Any]) -> Predicate:
        return Predicate(self.sql, tuple(values[i] for i in self.binding_map))


@dataclass(frozen=True)
class Subquery:
    """A compiled SELECT used as a derived table."""

    sql: str
    bindings: tuple[Any, ...]
    alias: str


class Grammar:
    """Base grammar: ANSI quoting, row-value comparisons, LIMIT/OFFSET."""

    dialect: DatabaseType
    default_schema: str | None = None
    # Highest number of bound parameters allowed in a single statement
    max_bindings: int = 32766
    max_rows_per_statement: int | None = None
    # Highest number of predicates joined into a single WHERE clause
    max_predicates: int = 500
    supports_row_values = True
    # Pass an (empty) parameter tuple even when a statement has no bindings
    always_bind = False
    # [...] is a quoted identifier in raw SQL
    bracket_identifiers = False

    quote_open = '"'
    quote_close = '"'

    def wrap(self, identifier: str) -> str:
        """Quote a single identifier, escaping embedded quote characters."""
        if not identifier or "\x00" in identifier:
            raise ValueError(f"Invalid SQL identifier: {identifier!r}")
        escaped = identifier.replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def wrap_table(self, qualified_name: str) -> str:
        """Quote ``schema.table`` part by part."""
        schema, table = split_schema_table(qualified_name)
        if schema is None:
            return self.wrap(table)
        return f"{self.wrap(schema)}.{self.wrap(table)}"

    def wrap_column(self, column: "str | Expression") -> str:
        if isinstance(column, Expression):
            return column.sql
        if column == "*":
            return column
        return self.wrap(column)

    def columnize(self, columns: Sequence["str | Expression"]) -> str:
        return ", ".join(self.wrap_column(column) for column in columns)

    def parameterize(self, values: Sequence[Any]) -> str:
        return ", ".join("?" for _ in values)

    def prepare(self, sql: str) -> str:
        """Convert qmark SQL to the driver's paramstyle."""
        return sql

    def count_placeholders(self, sql: str) -> int:
        """Count ``?`` placeholders in raw SQL as this dialect would parse it."""
        return count_placeholders(sql, brackets=self.bracket_identifiers)

    # Comparisons

    def compare(self, column: str, operator: str) -> str:
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {operator!r}")
        return f"{self.wrap(column)} {operator} ?"

    def tuple_comparison(self, columns: Sequence[str], operator: str) -> TupleComparison:
        """
        Render ``(c1, ..., cn) <operator> (?, ..., ?)``.

        A single column renders as a plain comparison.
        """
        if not columns:
            raise ValueError("Tuple comparison requires at least one column")
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {operator!r}")

        if len(columns) == 1:
            return TupleComparison(self.compare(columns[0], operator), (0,))

        if self.supports_row_values:
            sql = f"({self.columnize(columns)}) {operator} ({self.parameterize(columns)})"
            return TupleComparison(sql, tuple(range(len(columns))))

        return self._expand_tuple_comparison(columns, operator)

    def _expand_tuple_comparison(self, columns: Sequence[str], operator: str) -> TupleComparison:
        """Lexicographic comparison spelled out with AND/OR for engines without row values."""
        count = len(columns)
        equalities = " AND ".join(self.compare(column, "=") for column in columns)

        if operator == "=":
            return TupleComparison(f"({equalities})", tuple(range(count)))
        if operator == "<>":
            return TupleComparison(f"NOT ({equalities})", tuple(range(count)))

        strict = ">" if operator in (">", ">=") else "<"

        sql = self.compare(columns[-1], operator)
        binding_map: tuple[int, ...] = (count - 1,)
        for index in range(count - 2, -1, -1):
            column = columns[index]
            sql = (
                f"({self.compare(column, strict)} OR "
                f"({self.compare(column, '=')} AND {sql}))"
            )
            binding_map = (index, index) + binding_map

        return TupleComparison(sql, binding_map)

    def key_in(self, columns: Sequence[str], count: int) -> str:
        """
        Membership test of the column tuple in ``count`` value tuples.

        Bindings are the value tuples flattened in order. Engines without row
        values get one parenthesised equality group per tuple, ORed together.
        """
        if not columns:
            raise ValueError("Key membership requires at least one column")
        if count < 1:
            raise ValueError("Key membership requires at least one key")

        if len(columns) == 1:
            return f"{self.wrap(columns[0])} IN ({', '.join('?' for _ in range(count))})"

        if self.supports_row_values:
            row = f"({self.parameterize(columns)})"
            values = ", ".join(row for _ in range(count))
            return f"({self.columnize(columns)}) IN (VALUES {values})"

        equalities = " AND ".join(self.compare(column, "=") for column in columns)
        return "(" + " OR ".join(f"({equalities})" for _ in range(count)) + ")"

    # Statements

    def compile_from(self, query: "QueryBuilder") -> str:
        source = query.source
        if isinstance(source, Subquery):
            return f"({source.sql}) {self.wrap(source.alias)}"
        return self.wrap_table(source)

    def compile_wheres(self, query: "QueryBuilder") -> str:
        if not query.wheres:
            return ""
        return " WHERE " + " AND ".join(predicate.sql for predicate in query.wheres)

    def compile_orders(self, query: "QueryBuilder") -> str:
        if not query.orders:
            return ""
        return " ORDER BY " + ", ".join(
            f"{self.wrap(column)} {direction}" for column, direction in query.orders
        )

    def compile_limit_offset(self, query: "QueryBuilder") -> str:
        sql = ""
        if query.limit_value is not None:
            sql += f" LIMIT {query.limit_value}"
        if query.offset_value is not None:
            if query.limit_value is None:
                sql += " LIMIT -1"
            sql += f" OFFSET {query.offset_value}"
        return sql

    def compile_select(self, query: "QueryBuilder") -> str:
        columns = self.columnize(query.columns) if query.columns else "*"
        return (
            f"SELECT {columns} FROM {self.compile_from(query)}"
            f"{self.compile_wheres(query)}"
            f"{self.compile_orders(query)}"
            f"{self.compile_limit_offset(query)}"
        )

    def compile_delete(self, query: "QueryBuilder") -> str:
        return f"DELETE FROM {self.compile_from(query)}{self.compile_wheres(query)}"

    def compile_insert(self, table: str, columns: Sequence[str], row_count: int) -> str:
        row = f"({self.parameterize(columns)})"
        values = ", ".join(row for _ in range(row_count))
        return f"INSERT INTO {self.wrap_table(table)} ({self.columnize(columns)}) VALUES {values}"

    def compile_upsert(
        self,
        table: str,
        columns: Sequence[str],
        row_count: int,
        unique_by: Sequence[str],
        update_columns: Sequence[str],
    ) -> str:
        """INSERT ... ON CONFLICT (unique_by) DO UPDATE SET col = excluded.col."""
        sql = self.compile_insert(table, columns, row_count)
        sql += f" ON CONFLICT ({self.columnize(unique_by)})"
        if not update_columns:
            return sql + " DO NOTHING"
        assignments = ", ".join(
            f"{self.wrap(column)} = excluded.{self.wrap(column)}" for column in update_columns
        )
        return sql + f" DO UPDATE SET {assignments}"

    # Introspection

    def compile_column_listing(self, schema: str, table: str) -> tuple[str, tuple]:
        sql = (
            "SELECT column_name FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE table_schema = ? AND table_name = ? "
            "ORDER BY ordinal_position"
        )
        return sql, (schema, table)

    def compile_primary_key_listing(self, schema: str, table: str) -> tuple[str, tuple]:
        sql = (
            "SELECT kcu.column_name "
            "FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc "
            "JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu "
            "ON tc.constraint_name = kcu.constraint_name "
            "AND tc.table_schema = kcu.table_schema "
            "AND tc.table_name = kcu.table_name "
            "WHERE tc.constraint_type = 'PRIMARY KEY' "
            "AND tc.table_schema = ? AND tc.table_name = ? "
            "ORDER BY kcu.ordinal_position"
        )
        return sql, (schema, table)


class PostgresGrammar(Grammar):
    """PostgreSQL via psycopg2 (``format`` paramstyle)."""

    dialect = DatabaseType.POSTGRESQL
    default_schema = "public"
    max_bindings = 65535
    always_bind = True

    def prepare(self, sql: str) -> str:
        return qmark_to_format(sql)

    def compile_limit_offset(self, query: "QueryBuilder") -> str:
        sql = ""
        if query.limit_value is not None:
            sql += f" LIMIT {query.limit_value}"
        if query.offset_value is not None:
            sql += f" OFFSET {query.offset_value}"
        return sql


class SQLServerGrammar(Grammar):
    """SQL Server via pyodbc: bracket quoting, no row values, MERGE upserts."""

    dialect = DatabaseType.SQLSERVER
    default_schema = "dbo"
    # Server limit is 2100 parameters per request
    max_bindings = 2000
    max_rows_per_statement = 1000
    supports_row_values = False
    bracket_identifiers = True

    quote_open = "["
    quote_close = "]"

    def compile_limit_offset(self, query: "QueryBuilder") -> str:
        if query.limit_value is None and query.offset_value is None:
            return ""
        sql = f" OFFSET {query.offset_value or 0} ROWS"
        if query.limit_value is not None:
            sql += f" FETCH NEXT {query.limit_value} ROWS ONLY"
        return sql

    def compile_orders(self, query: "QueryBuilder") -> str:
        sql = super().compile_orders(query)
        if not sql and (query.limit_value is not None or query.offset_value is not None):
            # OFFSET/FETCH is only valid after ORDER BY
            return " ORDER BY (SELECT NULL)"
        return sql

    def compile_upsert(
        self,
        table: str,
        columns: Sequence[str],
        row_count: int,
        unique_by: Sequence[str],
        update_columns: Sequence[str],
    ) -> str:
        row = f"({self.parameterize(columns)})"
        values = ", ".join(row for _ in range(row_count))
        on = " AND ".join(
            f"target.{self.wrap(column)} = source.{self.wrap(column)}" for column in unique_by
        )

        sql = (
            f"MERGE INTO {self.wrap_table(table)} WITH (HOLDLOCK) AS target "
            f"USING (VALUES {values}) AS source ({self.columnize(columns)}) "
            f"ON {on}"
        )
        if update_columns:
            assignments = ", ".join(
                f"target.{self.wrap(column)} = source.{self.wrap(column)}"
                for column in update_columns
            )
            sql += f" WHEN MATCHED THEN UPDATE SET {assignments}"

        source_columns = ", ".join(f"source.{self.wrap(column)}" for column in columns)
        sql += (
            f" WHEN NOT MATCHED THEN INSERT ({self.columnize(columns)}) "
            f"VALUES ({source_columns});"
        )
        return sql


class SQLiteGrammar(Grammar):
    """SQLite via the stdlib sqlite3 module."""

    dialect = DatabaseType.SQLITE
    default_schema = "main"
    # SQLITE_MAX_VARIABLE_NUMBER on builds older than 3.32
    max_bindings = 999
    bracket_identifiers = True

    def compile_column_listing(self, schema: str, table: str) -> tuple[str, tuple]:
        return "SELECT name FROM pragma_table_info(?, ?) ORDER BY cid", (table, schema)

    def compile_primary_key_listing(self, schema: str, table: str) -> tuple[str, tuple]:
        return (
            "SELECT name FROM pragma_table_info(?, ?) WHERE pk > 0 ORDER BY pk",
            (table, schema),
        )


_GRAMMARS: dict[DatabaseType, type[Grammar]] = {
    DatabaseType.POSTGRESQL: PostgresGrammar,
    DatabaseType.SQLSERVER: SQLServerGrammar,
    DatabaseType.SQLITE: SQLiteGrammar,
}


def get_grammar(dialect: DatabaseType | str) -> Grammar:
    """
    Return a grammar instance for a dialect name or DatabaseType.

    Raises:
        ConfigurationError: If the dialect is not supported
    """
    return _GRAMMARS[DatabaseType.parse(dialect)]()
