"""
Prometheus metrics for range engine operations.

Tracks how many range operations ran, how long they took and how many rows
delete/upsert touched, labelled by table and operation.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)


class RangeSyncMetrics:
    """
    Metrics for range engine operations.

    Pass a dedicated CollectorRegistry in tests; the module-level default
    instance registers on the global REGISTRY.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Args:
            registry: Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry if registry is not None else REGISTRY

        self.operations_total = Counter(
            "rangesync_operations_total",
            "Total number of range engine operations",
            ["table", "operation", "status"],
            registry=self.registry,
        )

        self.operation_seconds = Histogram(
            "rangesync_operation_seconds",
            "Duration of range engine operations in seconds",
            ["table", "operation"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300),
            registry=self.registry,
        )

        self.rows_affected_total = Counter(
            "rangesync_rows_affected_total",
            "Rows removed or written by delete/upsert operations",
            ["table", "operation"],
            registry=self.registry,
        )

    @contextmanager
    def track(self, table: str, operation: str) -> Iterator[None]:
        """Time an operation and count it as success or failure."""
        started = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception:
            status = "failed"
            raise
        finally:
            self.operation_seconds.labels(table=table, operation=operation).observe(
                time.perf_counter() - started
            )
            self.operations_total.labels(
                table=table, operation=operation, status=status
            ).inc()

    def record_rows_affected(self, table: str, operation: str, count: int) -> None:
        if count > 0:
            self.rows_affected_total.labels(table=table, operation=operation).inc(count)


_default_metrics: RangeSyncMetrics | None = None


def get_metrics() -> RangeSyncMetrics:
    """Return the process-wide metrics instance, registering it on first use."""
    global _default_metrics

    if _default_metrics is None:
        _default_metrics = RangeSyncMetrics()
        logger.debug("Registered rangesync metrics on the default registry")
    return _default_metrics
