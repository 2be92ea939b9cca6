"""Tests for poll run instrumentation."""

import time

import pytest

from freebox_status.instrumentation import PerformanceInstrumentation
from freebox_status.models import TimingMetrics


@pytest.mark.unit
class TestTimingMetrics:
    def test_duration_ms(self):
        """Test TimingMetrics creation and properties."""
        start_time = time.time()
        metrics = TimingMetrics(
            operation="phone:phone-state",
            start_time=start_time,
            end_time=start_time + 0.5,
            duration=0.5,
            success=True,
        )

        assert metrics.duration_ms == 500.0
        assert metrics.details == {}


@pytest.mark.unit
class TestPerformanceInstrumentation:
    def test_empty_summary(self):
        assert PerformanceInstrumentation().get_performance_summary() == {"error": "No timing metrics recorded"}

    def test_record_timing(self):
        instrumentation = PerformanceInstrumentation()
        start = instrumentation.start_timer("phone:phone-calls")

        metric = instrumentation.record_timing("phone:phone-calls", start, run=1)

        assert metric.success is True
        assert metric.details == {"run": 1}
        assert list(instrumentation.request_metrics["phone:phone-calls"]) == [metric.duration]

    def test_summary(self):
        """Test the per-task breakdown and success rates."""
        instrumentation = PerformanceInstrumentation()
        now = time.time()
        instrumentation.record_timing("bridge:lan-hosts", now)
        instrumentation.record_timing("bridge:lan-hosts", now, success=False, error_type="FreeboxTimeoutError")
        instrumentation.record_timing("phone:phone-state", now)

        summary = instrumentation.get_performance_summary()

        assert summary["session_metrics"]["total_operations"] == 3
        assert summary["session_metrics"]["failed_operations"] == 1
        lan = summary["operation_breakdown"]["bridge:lan-hosts"]
        assert lan["count"] == 2
        assert lan["success_rate"] == 0.5
        assert lan["error_types"] == ["FreeboxTimeoutError"]
        assert set(summary["response_time_percentiles"]) == {"p50", "p90", "p99"}

    def test_only_recent_runs_are_kept(self):
        instrumentation = PerformanceInstrumentation(max_metrics=5)
        now = time.time()

        for run in range(12):
            instrumentation.record_timing("bridge:lan-hosts", now, run=run)

        assert len(instrumentation.timing_metrics) == 5
        assert len(instrumentation.request_metrics["bridge:lan-hosts"]) == 5
        assert instrumentation.timing_metrics[0].details == {"run": 7}
        summary = instrumentation.get_performance_summary()
        assert summary["operation_breakdown"]["bridge:lan-hosts"]["count"] == 5
