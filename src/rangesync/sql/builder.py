"""
Fluent query builder.

Collects columns, predicates, ordering and pagination for one table (or a
derived table), compiles them through the connection's grammar and runs the
result on the connection. Builder methods mutate and return ``self``.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from rangesync.utils.sql_safety import validate_integer_param

from .expression import Expression, Predicate
from .grammar import Subquery

if TYPE_CHECKING:
    from .connection import Connection


class QueryBuilder:
    """Builds and executes SELECT, DELETE and INSERT/upsert statements."""

    def __init__(self, connection: "Connection", source: "str | Subquery"):
        self.connection = connection
        self.grammar = connection.grammar
        self.source = source
        self.columns: list[str | Expression] = []
        self.wheres: list[Predicate] = []
        self.orders: list[tuple[str, str]] = []
        self.limit_value: int | None = None
        self.offset_value: int | None = None

    def new_query(self, source: "str | Subquery") -> "QueryBuilder":
        return QueryBuilder(self.connection, source)

    def select(self, columns: Sequence["str | Expression"]) -> "QueryBuilder":
        self.columns = list(columns)
        return self

    def where_raw(self, sql: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        self.wheres.append(Predicate.of(sql, bindings))
        return self

    def where_predicate(self, predicate: Predicate) -> "QueryBuilder":
        self.wheres.append(predicate)
        return self

    def where(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self.wheres.append(Predicate(self.grammar.compare(column, operator), (value,)))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> "QueryBuilder":
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise ValueError(f"Invalid order direction: {direction!r}")
        self.orders.append((column, direction))
        return self

    def offset(self, value: int) -> "QueryBuilder":
        validate_integer_param(value, "offset")
        self.offset_value = value
        return self

    def limit(self, value: int) -> "QueryBuilder":
        validate_integer_param(value, "limit", min_value=1)
        self.limit_value = value
        return self

    @property
    def bindings(self) -> list[Any]:
        """Bindings in placeholder order: derived table first, then predicates."""
        bindings: list[Any] = []
        if isinstance(self.source, Subquery):
            bindings.extend(self.source.bindings)
        for predicate in self.wheres:
            bindings.extend(predicate.bindings)
        return bindings

    def to_sql(self) -> str:
        return self.grammar.compile_select(self)

    def as_subquery(self, alias: str = "t") -> "QueryBuilder":
        """Return a new query selecting from this one as a derived table."""
        return self.new_query(Subquery(self.to_sql(), tuple(self.bindings), alias))

    # Execution

    def get(self) -> list[dict[str, Any]]:
        return self.connection.select(self.to_sql(), self.bindings)

    def first(self) -> dict[str, Any] | None:
        if self.limit_value is None:
            self.limit(1)
        rows = self.get()
        return rows[0] if rows else None

    def value(self, expression: "Expression | str") -> Any:
        """Select a single expression and return the first column of the first row."""
        if not isinstance(expression, Expression):
            expression = Expression(expression)
        self.columns = [expression]
        return self.connection.scalar(self.to_sql(), self.bindings)

    def delete(self) -> int:
        if isinstance(self.source, Subquery):
            raise ValueError("Cannot delete from a derived table")
        sql = self.grammar.compile_delete(self)
        return self.connection.affecting_statement(sql, self.bindings)

    def insert(
        self,
        rows: Sequence[Mapping[str, Any]],
        unique_by: Sequence[str] = (),
        update_columns: Sequence[str] = (),
    ) -> int:
        """
        Insert rows, updating ``update_columns`` when ``unique_by`` conflicts.

        Without ``unique_by`` a plain INSERT is issued. Rows are split over as
        many statements as the dialect's parameter limits require.

        Returns:
            Sum of affected row counts reported by the driver
        """
        if isinstance(self.source, Subquery):
            raise ValueError("Cannot insert into a derived table")
        if not rows:
            return 0

        columns = list(rows[0].keys())
        missing = [column for column in update_columns if column not in columns]
        if missing:
            raise ValueError(f"Update columns not present in rows: {missing}")

        values = []
        for row in rows:
            if set(row.keys()) != set(columns):
                raise ValueError(
                    f"All rows must have the same columns; expected {columns}, "
                    f"got {list(row.keys())}"
                )
            values.append([row[column] for column in columns])

        batch_size = max(1, self.grammar.max_bindings // len(columns))
        if self.grammar.max_rows_per_statement:
            batch_size = min(batch_size, self.grammar.max_rows_per_statement)

        affected = 0
        for start in range(0, len(values), batch_size):
            batch = values[start:start + batch_size]
            if unique_by:
                sql = self.grammar.compile_upsert(
                    self.source, columns, len(batch), unique_by, update_columns
                )
            else:
                sql = self.grammar.compile_insert(self.source, columns, len(batch))
            bindings = [value for row_values in batch for value in row_values]
            affected += self.connection.affecting_statement(sql, bindings)

        return affected
