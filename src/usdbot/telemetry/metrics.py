"""
Metrics collection for the gateway and the trading cycle.

Tracks counters, RPC round-trip latencies and rate-limit usage
with in-memory storage. Everything runs on the event loop thread.
"""

import time
from collections import deque
from dataclasses import dataclass

from usdbot.config.constants import LATENCY_WINDOW_SIZE
from usdbot.utils.time import format_duration_us


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


class MetricsCollector:
    """
    Collects and aggregates runtime metrics.

    Counters in use:
    - frames_received, frames_dropped
    - requests_sent, responses_delivered, requests_failed
    - reconnects, api_errors
    - evaluations, orders_placed, orders_acknowledged
    """

    def __init__(self, latency_window_size: int = LATENCY_WINDOW_SIZE) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep per RPC method.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a round-trip measurement.

        Args:
            name: RPC method name.
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def set_gauge(self, name: str, value: float) -> None:
        """Set a point-in-time value, e.g. rate-limit usage."""
        self._gauges[name] = value

    def get_gauge(self, name: str) -> float | None:
        return self._gauges.get(name)

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a method.

        Args:
            name: RPC method name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all methods."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def summary(self) -> list[str]:
        """Human-readable lines for the shutdown log."""
        lines = [f"uptime={self.uptime_seconds:.0f}s"]

        if self._counters:
            lines.append(
                " ".join(f"{name}={count}" for name, count in sorted(self._counters.items()))
            )

        for name, stats in sorted(self.get_all_latency_stats().items()):
            lines.append(
                f"rtt[{name}] n={stats.count} "
                f"avg={format_duration_us(stats.avg_us)} "
                f"p99={format_duration_us(stats.p99_us)} "
                f"max={format_duration_us(stats.max_us)}"
            )

        for name, value in sorted(self._gauges.items()):
            lines.append(f"{name}={value:.2f}")

        return lines

    def to_dict(self) -> dict[str, object]:
        """Export all metrics as a dict."""
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "latencies": {
                name: {
                    "min": stats.min_us,
                    "max": stats.max_us,
                    "avg": stats.avg_us,
                    "p50": stats.p50_us,
                    "p99": stats.p99_us,
                    "count": stats.count,
                }
                for name, stats in self.get_all_latency_stats().items()
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._gauges.clear()
        self._start_time = time.time()
