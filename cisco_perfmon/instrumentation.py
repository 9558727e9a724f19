"""
Performance Instrumentation for Cisco Perfmon Client
====================================================

Records timing for every HTTP attempt the client makes so callers can see
how long each perfmon operation takes and how often it has to be retried.

Author: Charles Marshall
Version: 1.0.0
"""

import logging
import threading
import time
from collections import deque
from typing import Any, Deque, Dict, Optional

from .models import TimingMetrics

logger = logging.getLogger("cisco-perfmon")

DEFAULT_MAX_METRICS = 1000


class PerformanceInstrumentation:
    """
    Performance instrumentation for the perfmon client.

    Tracks:
    - Per-operation request timing (one entry per HTTP attempt)
    - Retry counts and HTTP status of each attempt
    - Response sizes

    Only the most recent ``max_metrics`` attempts are kept, overall and per
    operation, so a long-running poller does not grow without bound. Totals
    since creation are kept as counters.

    A client may be shared between threads, so recording is serialized with
    a lock.
    """

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS) -> None:
        self.max_metrics = max_metrics
        self.timing_metrics: Deque[TimingMetrics] = deque(maxlen=max_metrics)
        self.session_start_time = time.time()
        self.request_metrics: Dict[str, Deque[float]] = {}
        self.total_recorded = 0
        self.operation_totals: Dict[str, int] = {}
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
        retry_count: int = 0,
        http_status: Optional[int] = None,
        response_size: int = 0,
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
            retry_count=retry_count,
            http_status=http_status,
            response_size=response_size,
        )

        with self._lock:
            self.timing_metrics.append(metric)
            self.request_metrics.setdefault(operation, deque(maxlen=self.max_metrics)).append(duration)
            self.total_recorded += 1
            self.operation_totals[operation] = self.operation_totals.get(operation, 0) + 1

        logger.debug(f"📊 {operation}: {duration * 1000:.1f}ms (success: {success})")
        return metric

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get a summary of all recorded attempts."""
        with self._lock:
            metrics = list(self.timing_metrics)
            request_metrics = {operation: list(durations) for operation, durations in self.request_metrics.items()}
            total_recorded = self.total_recorded
            operation_totals = dict(self.operation_totals)

        if not metrics:
            return {"error": "No timing metrics recorded"}

        total_session_time = time.time() - self.session_start_time

        operation_stats = {}
        for operation, durations in request_metrics.items():
            attempts = [m for m in metrics if m.operation == operation]
            operation_stats[operation] = {
                "count": len(durations),
                "total_recorded": operation_totals.get(operation, 0),
                "total_time": sum(durations),
                "avg_time": sum(durations) / len(durations),
                "min_time": min(durations),
                "max_time": max(durations),
                "success_rate": len([m for m in attempts if m.success]) / len(attempts) if attempts else 0.0,
                "retries": len([m for m in attempts if m.retry_count > 0]),
            }

        successful = sorted(m.duration for m in metrics if m.success)
        if successful:
            n = len(successful)
            percentiles = {
                "p50": successful[n // 2],
                "p90": successful[int(n * 0.9)],
                "p95": successful[int(n * 0.95)],
                "p99": successful[int(n * 0.99)],
            }
        else:
            percentiles = {"p50": 0, "p90": 0, "p95": 0, "p99": 0}

        return {
            "session_metrics": {
                "total_session_time": total_session_time,
                "total_operations": len(metrics),
                "total_recorded": total_recorded,
                "successful_operations": len([m for m in metrics if m.success]),
                "failed_operations": len([m for m in metrics if not m.success]),
                "retried_operations": len([m for m in metrics if m.retry_count > 0]),
            },
            "operation_breakdown": operation_stats,
            "response_time_percentiles": percentiles,
        }


# Export instrumentation classes
__all__ = ["PerformanceInstrumentation"]
