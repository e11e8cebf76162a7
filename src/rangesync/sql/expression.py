"""
Raw SQL value objects.

Expression carries opaque scalar SQL (a fingerprint aggregate, a column
list). Predicate carries a boolean condition plus its positional bindings;
a query's WHERE clause is a list of predicates joined with AND.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Expression:
    """Raw SQL text rendered verbatim."""

    sql: str

    def __post_init__(self):
        if not isinstance(self.sql, str) or not self.sql.strip():
            raise ValueError("Expression text cannot be empty")

    def __str__(self) -> str:
        return self.sql


@dataclass(frozen=True)
class Predicate:
    """Boolean SQL condition with ``?`` placeholders and their bindings."""

    sql: str
    bindings: tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, sql: str, bindings: Sequence[Any] = ()) -> "Predicate":
        return cls(sql, tuple(bindings))


def as_expression(value: "Expression | str") -> Expression:
    """Coerce a string to Expression, passing Expression through."""
    if isinstance(value, Expression):
        return value
    return Expression(value)
