"""
Unit tests for rangesync.metrics

Each test gets its own CollectorRegistry so counters start at zero.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from rangesync import metrics as metrics_module
from rangesync.metrics import RangeSyncMetrics, get_metrics


class TestRangeSyncMetrics:
    """Test RangeSyncMetrics class"""

    def setup_method(self):
        self.registry = CollectorRegistry()
        self.metrics = RangeSyncMetrics(self.registry)

    def sample(self, name, **labels):
        return self.registry.get_sample_value(name, labels)

    def test_uses_given_registry(self):
        assert self.metrics.registry is self.registry

    def test_track_counts_success(self):
        with self.metrics.track("public.orders", "get_hash_for_key"):
            pass

        assert self.sample(
            "rangesync_operations_total",
            table="public.orders", operation="get_hash_for_key", status="success",
        ) == 1

    def test_track_observes_duration(self):
        with self.metrics.track("public.orders", "delete"):
            pass

        assert self.sample(
            "rangesync_operation_seconds_count", table="public.orders", operation="delete"
        ) == 1

    def test_track_counts_failure_and_reraises(self):
        with pytest.raises(RuntimeError):
            with self.metrics.track("public.orders", "insert"):
                raise RuntimeError("connection reset")

        assert self.sample(
            "rangesync_operations_total",
            table="public.orders", operation="insert", status="failed",
        ) == 1
        assert self.sample(
            "rangesync_operations_total",
            table="public.orders", operation="insert", status="success",
        ) is None

    def test_record_rows_affected_accumulates(self):
        self.metrics.record_rows_affected("public.orders", "insert", 10)
        self.metrics.record_rows_affected("public.orders", "insert", 5)

        assert self.sample(
            "rangesync_rows_affected_total", table="public.orders", operation="insert"
        ) == 15

    def test_record_rows_affected_ignores_zero(self):
        self.metrics.record_rows_affected("public.orders", "delete", 0)

        assert self.sample(
            "rangesync_rows_affected_total", table="public.orders", operation="delete"
        ) is None

    def test_two_instances_on_separate_registries(self):
        other = RangeSyncMetrics(CollectorRegistry())

        other.record_rows_affected("t", "delete", 1)

        assert self.sample("rangesync_rows_affected_total", table="t", operation="delete") is None


class TestGetMetrics:
    """Test the module-level default instance"""

    def test_returns_singleton(self):
        with patch.object(metrics_module, "_default_metrics", None), \
                patch.object(metrics_module, "RangeSyncMetrics") as mock_metrics:
            first = get_metrics()
            second = get_metrics()

        assert first is second
        mock_metrics.assert_called_once_with()
