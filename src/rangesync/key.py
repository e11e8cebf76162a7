"""
Primary-key values of a single row.

A Key is the row's position in primary-key order: ``(column, value)`` pairs
in key column order. Keys compare like tuples of their values, matching how
a multi-column ascending ORDER BY sorts rows.
"""

from collections.abc import Iterator, Mapping, Sequence
from functools import total_ordering
from typing import Any


@total_ordering
class Key:
    """Ordered ``(column, value)`` pairs over the primary-key columns."""

    __slots__ = ("_columns", "_values")

    def __init__(self, pairs: Sequence[tuple[str, Any]]):
        self._columns = tuple(column for column, _ in pairs)
        self._values = tuple(value for _, value in pairs)
        if len(set(self._columns)) != len(self._columns):
            raise ValueError(f"Duplicate key columns: {self._columns}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any], primary_key: Sequence[str]) -> "Key":
        """
        Project a row onto the primary key, in primary-key order.

        Extra columns are ignored and the row's own column order does not
        matter.

        Raises:
            ValueError: If the row lacks a primary-key column
        """
        missing = [column for column in primary_key if column not in row]
        if missing:
            raise ValueError(f"Row is missing primary key columns {missing}")
        return cls([(column, row[column]) for column in primary_key])

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values

    def __getitem__(self, column: str) -> Any:
        try:
            return self._values[self._columns.index(column)]
        except ValueError:
            raise KeyError(column) from None

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(zip(self._columns, self._values))

    def __len__(self) -> int:
        return len(self._columns)

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self._columns, self._values))

    def _check_comparable(self, other: "Key") -> None:
        if self._columns != other._columns:
            raise ValueError(
                f"Cannot compare keys over {self._columns} and {other._columns}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Key):
            return NotImplemented
        return self._columns == other._columns and self._values == other._values

    def __lt__(self, other: "Key") -> bool:
        if not isinstance(other, Key):
            return NotImplemented
        self._check_comparable(other)
        return self._values < other._values

    def __hash__(self) -> int:
        return hash((self._columns, self._values))

    def __repr__(self) -> str:
        inner = ", ".join(f"{column}={value!r}" for column, value in self)
        return f"Key({inner})"


KeyLike = Key | Mapping[str, Any] | None


def coerce_key(value: KeyLike, primary_key: Sequence[str]) -> Key | None:
    """
    Normalise a range bound to a Key over ``primary_key``.

    None and empty mappings mean an open bound. A Key over different
    columns is re-projected through its dict form.
    """
    if value is None or len(value) == 0:
        return None
    if isinstance(value, Key):
        if value.columns == tuple(primary_key):
            return value
        value = value.as_dict()
    return Key.from_row(value, primary_key)
