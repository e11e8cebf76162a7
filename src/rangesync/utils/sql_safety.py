"""
SQL safety utilities for range queries.

Validates the identifiers and integer parameters that end up as literal
text in generated SQL (schema/table names, OFFSET/LIMIT values). Column
names are quoted by the dialect grammar instead.
"""

import re


# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_$]*(\.[a-zA-Z_][a-zA-Z0-9_$]*)?$"
)


def validate_identifier(identifier: str) -> None:
    """
    Validate a schema or table name.

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier is empty or contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, underscores and '$' are allowed, "
            "and must start with a letter or underscore."
        )


def validate_schema_table(schema_table: str) -> None:
    """
    Validate a qualified ``schema.table`` name.

    Raises:
        ValueError: If the name format is invalid
    """
    if not schema_table:
        raise ValueError("Schema.table identifier cannot be empty")

    if not VALID_SCHEMA_TABLE.match(schema_table):
        raise ValueError(
            f"Invalid schema.table identifier: {schema_table!r}. "
            "Expected 'table' or 'schema.table'."
        )


def split_schema_table(schema_table: str) -> tuple[str | None, str]:
    """
    Split a validated qualified name into ``(schema, table)``.

    The schema part is None for an unqualified name.
    """
    validate_schema_table(schema_table)

    if "." in schema_table:
        schema, table = schema_table.split(".", 1)
        return schema, table
    return None, schema_table


def validate_integer_param(value: int, param_name: str, min_value: int = 0) -> None:
    """
    Validate an integer rendered directly into SQL (OFFSET, LIMIT).

    Args:
        value: The value to validate
        param_name: Name of the parameter (for error messages)
        min_value: Minimum allowed value (default 0)

    Raises:
        ValueError: If the value is not an integer or is below minimum
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(
            f"Invalid {param_name}: {value!r}. Must be an integer."
        )

    if value < min_value:
        raise ValueError(
            f"Invalid {param_name}: {value}. Must be >= {min_value}."
        )
