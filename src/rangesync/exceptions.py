"""Exceptions raised by rangesync."""


class RangeSyncError(Exception):
    """Base exception for rangesync errors."""

    pass


class ConfigurationError(RangeSyncError, ValueError):
    """Raised for invalid filter clauses, dialects or connection settings."""

    pass


class TableNotFoundError(RangeSyncError):
    """Raised when introspection finds no columns for a table."""

    def __init__(self, qualified_name: str):
        super().__init__(f"Table {qualified_name} does not exist or has no columns")
        self.qualified_name = qualified_name


class MissingPrimaryKeyError(RangeSyncError):
    """Raised when a ranged operation is requested on a table without a primary key."""

    def __init__(self, qualified_name: str, operation: str):
        super().__init__(
            f"Table {qualified_name} has no primary key; "
            f"ranged {operation} is not supported"
        )
        self.qualified_name = qualified_name
        self.operation = operation
