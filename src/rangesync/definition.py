"""
Table definition: column names and primary-key order.
"""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Definition:
    """Immutable column list and primary key of one table."""

    columns: tuple[str, ...]
    primary_key: tuple[str, ...] = ()

    def __init__(self, columns: Sequence[str], primary_key: Sequence[str] = ()):
        object.__setattr__(self, "columns", tuple(columns))
        object.__setattr__(self, "primary_key", tuple(primary_key))

        unknown = [column for column in self.primary_key if column not in self.columns]
        if unknown:
            raise ValueError(f"Primary key columns {unknown} are not table columns")

    def get_columns(self) -> tuple[str, ...]:
        return self.columns

    def get_primary_key(self) -> tuple[str, ...]:
        return self.primary_key

    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_key)

    @property
    def is_compound(self) -> bool:
        return len(self.primary_key) > 1
