"""
Tests for logging, tracing and metrics
"""

import pytest
from somap.observability import (
    CorrelationIDProcessor,
    get_correlation_id,
    get_metrics,
    log_bmu_query,
    log_training_metrics,
    trace_operation,
)


@pytest.mark.unit
class TestTracing:
    """Test operation tracing"""

    @pytest.mark.unit
    def test_trace_yields_correlation_id(self):
        with trace_operation("unit_test") as correlation_id:
            assert isinstance(correlation_id, str)
            assert len(correlation_id) == 36

    @pytest.mark.unit
    def test_trace_reraises(self):
        with pytest.raises(RuntimeError, match="boom"):
            with trace_operation("unit_test"):
                raise RuntimeError("boom")

    @pytest.mark.unit
    def test_correlation_ids_unique(self):
        assert get_correlation_id() != get_correlation_id()

    @pytest.mark.unit
    def test_processor_sets_default(self):
        event = CorrelationIDProcessor()(None, "info", {"event": "x"})
        assert event["correlation_id"] == "unknown"
        event = CorrelationIDProcessor()(None, "info", {"correlation_id": "abc"})
        assert event["correlation_id"] == "abc"


@pytest.mark.unit
class TestMetrics:
    """Test Prometheus metrics"""

    @pytest.mark.unit
    def test_metrics_exported(self):
        log_training_metrics(2, 3, "seq", 0.5, 10)
        log_bmu_query(5)
        metrics = get_metrics().decode()
        assert "somap_training_duration_seconds" in metrics
        assert "somap_training_iterations_total" in metrics
        assert "somap_bmu_queries_total" in metrics

    @pytest.mark.unit
    def test_map_creation_counted(self, iris_map):
        assert "somap_maps_created_total" in get_metrics().decode()
