"""
Primary-key range predicates.

A chunk is the half-open range ``[start, end)`` in primary-key order. The
range is always expressed with tuple comparisons. For compound keys extra
single-column conditions are added that the planner can use for index
seeks and partition pruning:

- both bounds: equality on the shared leading columns, then
  ``col >= start AND col <= end`` on the first column where they differ
- end bound only: ``first_col <= end_first_value``
- start bound only: nothing beyond the tuple comparison
"""

from collections.abc import Sequence

from .key import Key
from .sql.expression import Predicate
from .sql.grammar import Grammar, TupleComparison


class RangePredicateBuilder:
    """Renders the WHERE conditions selecting one chunk."""

    def __init__(self, primary_key: Sequence[str], grammar: Grammar):
        self.primary_key = tuple(primary_key)
        self.grammar = grammar
        self._comparisons: dict[str, TupleComparison] = {}

    @property
    def is_compound(self) -> bool:
        return len(self.primary_key) > 1

    def comparison(self, operator: str) -> TupleComparison:
        """Tuple comparison over the primary key, rendered once per operator."""
        if operator not in self._comparisons:
            self._comparisons[operator] = self.grammar.tuple_comparison(
                self.primary_key, operator
            )
        return self._comparisons[operator]

    def start(self, key: Key) -> Predicate:
        return self.comparison(">=").bind(key.values)

    def end(self, key: Key) -> Predicate:
        return self.comparison("<").bind(key.values)

    def exclude(self, key: Key) -> Predicate:
        return self.comparison("<>").bind(key.values)

    def build(self, start: Key | None, end: Key | None) -> list[Predicate]:
        """
        Conditions for ``start <= key < end``; either bound may be None.

        Raises:
            ValueError: If a bound is given and the table has no primary key
        """
        if (start is not None or end is not None) and not self.primary_key:
            raise ValueError("Range bounds require a primary key")

        predicates: list[Predicate] = []

        if start is not None:
            predicates.append(self.start(start))

            if self.is_compound and end is not None:
                for column, value in start:
                    if end[column] != value:
                        predicates.append(self._compare(column, ">=", value))
                        predicates.append(self._compare(column, "<=", end[column]))
                        break

                    predicates.append(self._compare(column, "=", value))

        if end is not None:
            predicates.append(self.end(end))

            # With a start bound the leading columns are already pinned above
            if start is None and self.is_compound:
                first = self.primary_key[0]
                predicates.append(self._compare(first, "<=", end[first]))

        return predicates

    def _compare(self, column: str, operator: str, value) -> Predicate:
        return Predicate(self.grammar.compare(column, operator), (value,))
