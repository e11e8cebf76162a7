"""
Filter clause scoping every engine query to a subset of rows.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigurationError
from .sql.expression import Predicate
from .sql.placeholders import count_placeholders

if TYPE_CHECKING:
    from .sql.grammar import Grammar


class WhereClause:
    """
    Pre-validated raw predicate with ``?`` positional bindings.

    Example:
        WhereClause("tenant_id = ? AND deleted_at IS NULL", [42])
    """

    def __init__(self, where: str, bindings: Sequence[Any] = ()):
        """
        The placeholder count is checked without knowing the dialect, so
        ``[...]`` may be read either as a quoted identifier or as plain text.
        validate() settles it once the target grammar is known.

        Raises:
            ConfigurationError: If the text is empty or the number of ``?``
                placeholders does not match the number of bindings
        """
        if not isinstance(where, str) or not where.strip():
            raise ConfigurationError("Where clause text cannot be empty")

        bindings = tuple(bindings)
        placeholders = count_placeholders(where)
        if placeholders != len(bindings) and count_placeholders(where, brackets=True) != len(bindings):
            raise ConfigurationError(
                f"Where clause has {placeholders} placeholder(s) "
                f"but {len(bindings)} binding(s): {where!r}"
            )

        self._where = where.strip()
        self._bindings = bindings

    def validate(self, grammar: "Grammar") -> None:
        """
        Check the placeholder count as ``grammar``'s dialect parses the text.

        Raises:
            ConfigurationError: If the count does not match the bindings
        """
        placeholders = grammar.count_placeholders(self._where)
        if placeholders != len(self._bindings):
            raise ConfigurationError(
                f"Where clause has {placeholders} placeholder(s) "
                f"but {len(self._bindings)} binding(s) "
                f"for {grammar.dialect.value}: {self._where!r}"
            )

    def get_where(self) -> str:
        return self._where

    def get_bindings(self) -> tuple[Any, ...]:
        return self._bindings

    def to_predicate(self) -> Predicate:
        """Parenthesised predicate, safe to AND with other conditions."""
        if "--" in self._where:
            # A trailing line comment would swallow the closing parenthesis
            return Predicate(f"({self._where}\n)", self._bindings)
        return Predicate(f"({self._where})", self._bindings)

    def __repr__(self) -> str:
        return f"WhereClause({self._where!r}, {list(self._bindings)!r})"
