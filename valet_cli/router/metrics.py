"""
Request metrics for the router.

- Request counts by status and by site
- Dispatch outcomes (static, front controller, each 404 kind)
- Latency percentiles over recent requests
"""

import threading
import time
from collections import deque


def calculate_percentile(values: list[float], percentile: float) -> float:
    """
    Percentile of a list of values (0.0 for an empty list).

    Args:
        values: List of numeric values
        percentile: Percentile to calculate (0-100)
    """
    if not values:
        return 0.0
    sorted_values = sorted(values)
    index = int((percentile / 100.0) * len(sorted_values))
    if index >= len(sorted_values):
        index = len(sorted_values) - 1
    return sorted_values[index]


class Metrics:
    """Thread-safe counters; the dispatch route runs in a worker thread pool."""

    def __init__(self, max_latency_samples: int = 1000) -> None:
        self.start_time = time.time()
        self.requests_total = 0
        self.requests_by_status: dict[int, int] = {}
        self.requests_by_site: dict[str, dict[str, int]] = {}
        self.outcomes: dict[str, int] = {}
        self.latency_samples: deque = deque(maxlen=max_latency_samples)
        self._lock = threading.Lock()

    def record(self, site_name: str | None, status_code: int, latency_ms: float | None = None) -> None:
        with self._lock:
            self.requests_total += 1
            self.requests_by_status[status_code] = self.requests_by_status.get(status_code, 0) + 1
            if latency_ms is not None:
                self.latency_samples.append(latency_ms)
            if not site_name:
                return
            bucket = self.requests_by_site.setdefault(site_name, {"count": 0, "errors": 0})
            bucket["count"] += 1
            if status_code >= 400:
                bucket["errors"] += 1

    def record_outcome(self, outcome: str) -> None:
        """Count a dispatch result, e.g. "static" or "no_driver"."""
        with self._lock:
            self.outcomes[outcome] = self.outcomes.get(outcome, 0) + 1

    def get_latency_percentiles(self) -> dict[str, float]:
        samples = list(self.latency_samples)
        return {
            "p50": round(calculate_percentile(samples, 50), 2),
            "p95": round(calculate_percentile(samples, 95), 2),
            "p99": round(calculate_percentile(samples, 99), 2),
        }

    def get_error_rate(self) -> float:
        """Error rate as a percentage (0-100)."""
        if self.requests_total == 0:
            return 0.0
        error_count = sum(count for status, count in self.requests_by_status.items() if status >= 400)
        return round((error_count / self.requests_total) * 100, 2)

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            return {
                "uptime_seconds": int(time.time() - self.start_time),
                "requests_total": self.requests_total,
                "requests_by_status": dict(self.requests_by_status),
                "requests_by_site": {k: dict(v) for k, v in self.requests_by_site.items()},
                "outcomes": dict(self.outcomes),
                "latency": self.get_latency_percentiles(),
                "error_rate": self.get_error_rate(),
            }
