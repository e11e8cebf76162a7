"""
Security tests for SQL identifier handling.

Schema and table names are validated before they reach generated SQL;
column names are always quoted by the grammar, with embedded quote
characters escaped.
"""

import sqlite3

import pytest

from rangesync import Table
from rangesync.sql import PostgresGrammar, SQLServerGrammar
from rangesync.utils.sql_safety import (
    split_schema_table,
    validate_identifier,
    validate_integer_param,
    validate_schema_table,
)


class TestIdentifierValidation:

    @pytest.mark.parametrize("name", ["orders", "_tmp", "Order_Items2", "sys$log", "select"])
    def test_allowed(self, name):
        validate_identifier(name)

    @pytest.mark.parametrize(
        "name",
        [
            "orders; DROP TABLE users--",
            "orders'",
            'orders"',
            "orders]",
            "1orders",
            "my table",
            "public.orders",
            "tablé",
        ],
    )
    def test_rejected(self, name):
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            validate_identifier(name)

    def test_empty(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_identifier("")


class TestSchemaTable:

    def test_split_qualified(self):
        assert split_schema_table("dbo.orders") == ("dbo", "orders")

    def test_split_unqualified(self):
        assert split_schema_table("orders") == (None, "orders")

    @pytest.mark.parametrize("name", ["a.b.c", "a.", ".b", "a;b.c"])
    def test_rejected(self, name):
        with pytest.raises(ValueError, match="Invalid schema.table"):
            validate_schema_table(name)

    def test_grammar_refuses_injected_table(self):
        with pytest.raises(ValueError):
            PostgresGrammar().wrap_table("public.t; DELETE FROM users")


class TestColumnQuoting:

    def test_postgres_escapes_double_quote(self):
        assert PostgresGrammar().wrap('x" OR 1=1 --') == '"x"" OR 1=1 --"'

    def test_sqlserver_escapes_closing_bracket(self):
        assert SQLServerGrammar().wrap("x] OR 1=1 --") == "[x]] OR 1=1 --]"

    def test_nul_byte_rejected(self):
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            PostgresGrammar().wrap("id\x00")

    def test_hostile_column_is_treated_as_a_name(self, simple_table, sqlite_connection):
        try:
            simple_table.get_rows_for_key(['id" FROM t; DROP TABLE t; --'], None, None)
        except sqlite3.OperationalError:
            pass

        assert sqlite_connection.scalar("SELECT COUNT(*) FROM t") == 3


class TestIntegerParams:

    def test_accepts_zero(self):
        validate_integer_param(0, "offset")

    @pytest.mark.parametrize("value", ["10; DROP TABLE t", 2.0, None, False])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError, match="Must be an integer"):
            validate_integer_param(value, "offset")

    def test_minimum(self):
        with pytest.raises(ValueError, match="Must be >= 1"):
            validate_integer_param(0, "limit", min_value=1)


def test_table_constructor_rejects_injected_schema(sqlite_connection):
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        Table(sqlite_connection, "main; DROP TABLE t", "t")
