"""
Pytest configuration and fixtures for rangesync tests.

Unit tests run the engine against in-memory SQLite databases; each test
gets its own database and its own Prometheus registry.
"""

import pytest
from prometheus_client import CollectorRegistry

from rangesync import Table
from rangesync.metrics import RangeSyncMetrics
from rangesync.sql import connect_sqlite


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: requires a live PostgreSQL server")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def seed(connection, ddl: str, table: str, rows: list[dict]) -> None:
    """Create a table and insert rows through the raw DB-API connection."""
    cursor = connection.dbapi_connection.cursor()
    cursor.execute(ddl)
    for row in rows:
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        cursor.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(row.values()),
        )
    connection.dbapi_connection.commit()
    cursor.close()


def all_rows(connection, table: str, order_by: str) -> list[dict]:
    return connection.select(f"SELECT * FROM {table} ORDER BY {order_by}")


@pytest.fixture
def metrics() -> RangeSyncMetrics:
    """Metrics bound to a throwaway registry."""
    return RangeSyncMetrics(CollectorRegistry())


@pytest.fixture
def sqlite_connection():
    """Fresh in-memory SQLite connection."""
    connection = connect_sqlite(":memory:")
    yield connection
    connection.dbapi_connection.close()


@pytest.fixture
def simple_table(sqlite_connection, metrics) -> Table:
    """Table ``t`` with primary key ``(id)`` and rows 1, 2, 3."""
    seed(
        sqlite_connection,
        "CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)",
        "t",
        [
            {"id": 1, "name": "alpha"},
            {"id": 2, "name": "beta"},
            {"id": 3, "name": "gamma"},
        ],
    )
    return Table(sqlite_connection, "main", "t", metrics=metrics)


@pytest.fixture
def compound_table(sqlite_connection, metrics) -> Table:
    """
    Table ``orders`` with primary key ``(tenant, id)``.

    Columns are declared in a different order from the key, so key order
    must come from the key definition and not from the column list.
    """
    rows = [
        {"id": order_id, "tenant": tenant, "amount": tenant * 100 + order_id}
        for tenant in (1, 2, 5)
        for order_id in range(1, 26)
    ]
    seed(
        sqlite_connection,
        "CREATE TABLE orders (id INTEGER NOT NULL, tenant INTEGER NOT NULL, "
        "amount INTEGER, PRIMARY KEY (tenant, id))",
        "orders",
        rows,
    )
    return Table(sqlite_connection, "main", "orders", metrics=metrics)
