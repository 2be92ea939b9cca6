"""
Poll Instrumentation for Freebox Status Monitor
===============================================

Records the timing and outcome of every scheduled poll run so a long-running
monitor can report how its tasks behave.

"""

import logging
import threading
import time
from collections import deque
from typing import Any, Deque, Dict, Optional

from .models import TimingMetrics

logger = logging.getLogger("freebox-status")

DEFAULT_MAX_METRICS = 5000


class PerformanceInstrumentation:
    """
    Collects TimingMetrics for poll runs.

    Tracks, per task id:
    - number of runs and their success rate
    - min/avg/max run time
    - failure types

    Only the most recent ``max_metrics`` runs are kept (per task for
    ``request_metrics``), so a monitor can run indefinitely.
    """

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS) -> None:
        self.max_metrics = max_metrics
        self.timing_metrics: Deque[TimingMetrics] = deque(maxlen=max_metrics)
        self.session_start_time = time.time()
        self.request_metrics: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def start_timer(self, operation: str) -> float:
        """Start timing an operation."""
        return time.time()

    def record_timing(
        self,
        operation: str,
        start_time: float,
        success: bool = True,
        error_type: Optional[str] = None,
        **details: Any,
    ) -> TimingMetrics:
        """Record timing metrics for an operation."""
        end_time = time.time()
        duration = end_time - start_time

        metric = TimingMetrics(
            operation=operation,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            success=success,
            error_type=error_type,
            details=details,
        )

        with self._lock:
            self.timing_metrics.append(metric)
            self.request_metrics.setdefault(operation, deque(maxlen=self.max_metrics)).append(duration)

        logger.debug(f"📊 {operation}: {duration * 1000:.1f}ms (success: {success})")
        return metric

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get a summary of the retained runs."""
        with self._lock:
            metrics = list(self.timing_metrics)

        if not metrics:
            return {"error": "No timing metrics recorded"}

        total_session_time = time.time() - self.session_start_time

        operation_stats = {}
        runs_by_operation: Dict[str, list] = {}
        for m in metrics:
            runs_by_operation.setdefault(m.operation, []).append(m)

        for operation, runs in runs_by_operation.items():
            durations = [m.duration for m in runs]
            operation_stats[operation] = {
                "count": len(durations),
                "total_time": sum(durations),
                "avg_time": sum(durations) / len(durations),
                "min_time": min(durations),
                "max_time": max(durations),
                "success_rate": len([m for m in runs if m.success]) / len(runs),
                "error_types": sorted({m.error_type for m in runs if m.error_type}),
            }

        all_durations = sorted(m.duration for m in metrics if m.success)
        if all_durations:
            n = len(all_durations)
            percentiles = {
                "p50": all_durations[n // 2],
                "p90": all_durations[int(n * 0.9)],
                "p99": all_durations[int(n * 0.99)],
            }
        else:
            percentiles = {"p50": 0, "p90": 0, "p99": 0}

        return {
            "session_metrics": {
                "total_session_time": total_session_time,
                "total_operations": len(metrics),
                "successful_operations": len([m for m in metrics if m.success]),
                "failed_operations": len([m for m in metrics if not m.success]),
            },
            "operation_breakdown": operation_stats,
            "response_time_percentiles": percentiles,
        }


__all__ = ["PerformanceInstrumentation"]
