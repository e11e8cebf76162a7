"""
Unit tests for rangesync.sql.connectors

Driver modules are replaced with mocks; no server is contacted.
"""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

from rangesync import ConfigurationError
from rangesync.sql import Connection, DatabaseType
from rangesync.sql.connectors import (
    DatabaseConfig,
    build_odbc_connection_string,
    connect_postgres,
    connect_sqlite,
    connect_sqlserver,
)


class TestDatabaseConfigFromEnv:

    @patch.dict(os.environ, {
        "SOURCE_HOST": "db.internal",
        "SOURCE_PORT": "6432",
        "SOURCE_DB": "shop",
        "SOURCE_USER": "sync",
        "SOURCE_PASSWORD": "s3cret",
    }, clear=True)
    def test_all_vars_set(self):
        config = DatabaseConfig.from_env("source")

        assert config.host == "db.internal"
        assert config.port == 6432
        assert config.database == "shop"
        assert config.user == "sync"
        assert config.password == "s3cret"

    @patch.dict(os.environ, {
        "POSTGRES_DB": "shop",
        "POSTGRES_USER": "sync",
        "POSTGRES_PASSWORD": "pw",
    }, clear=True)
    def test_defaults(self):
        config = DatabaseConfig.from_env("POSTGRES_")

        assert config.host == "localhost"
        assert config.port == 5432
        assert config.driver is None

    @patch.dict(os.environ, {"TARGET_DB": "shop", "TARGET_USER": "sync"}, clear=True)
    def test_missing_password(self):
        with pytest.raises(ConfigurationError, match="TARGET_PASSWORD"):
            DatabaseConfig.from_env("TARGET")

    @patch.dict(os.environ, {
        "TARGET_DB": "shop",
        "TARGET_USER": "sync",
        "TARGET_PASSWORD": "pw",
        "TARGET_PORT": "fifty",
    }, clear=True)
    def test_non_integer_port(self):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            DatabaseConfig.from_env("TARGET")

    def test_repr_masks_password(self):
        config = DatabaseConfig(host="h", database="d", user="u", password="hunter2")

        assert "hunter2" not in repr(config)
        assert "***" in repr(config)


class TestOdbcConnectionString:

    def test_defaults(self):
        config = DatabaseConfig(host="mssql", database="shop", user="sa", password="pw")

        result = build_odbc_connection_string(config)

        assert result.startswith("DRIVER={ODBC Driver 18 for SQL Server};SERVER=mssql,1433;")
        assert "DATABASE=shop;UID=sa;PWD=pw;" in result

    def test_extra_options_override(self):
        config = DatabaseConfig(
            host="mssql", database="shop", user="sa", password="pw",
            port=14330, driver="FreeTDS", extra={"Encrypt": "no"},
        )

        result = build_odbc_connection_string(config)

        assert "DRIVER={FreeTDS};SERVER=mssql,14330;" in result
        assert "Encrypt=no;" in result
        assert "Encrypt=yes;" not in result


class TestConnect:

    def setup_method(self):
        self.config = DatabaseConfig(host="h", database="d", user="u", password="p")

    def test_connect_postgres(self):
        driver = MagicMock()

        with patch.dict(sys.modules, {"psycopg2": driver}):
            connection = connect_postgres(self.config)

        driver.connect.assert_called_once_with(
            host="h", port=5432, dbname="d", user="u", password="p", connect_timeout=10,
        )
        assert connection.dbapi_connection.autocommit is True
        assert connection.dialect is DatabaseType.POSTGRESQL

    def test_connect_sqlserver(self):
        driver = MagicMock()

        with patch.dict(sys.modules, {"pyodbc": driver}):
            connection = connect_sqlserver(self.config)

        connection_string = driver.connect.call_args[0][0]
        assert "SERVER=h,1433;" in connection_string
        assert driver.connect.call_args[1] == {"timeout": 10}
        assert connection.dialect is DatabaseType.SQLSERVER

    def test_connect_sqlite(self):
        connection = connect_sqlite()

        try:
            assert isinstance(connection, Connection)
            assert connection.scalar("SELECT 1 + 1") == 2
        finally:
            connection.dbapi_connection.close()
