"""
Metrics collection for the scouting loop.

Tracks tick latencies, event counters and jump statistics with
efficient in-memory storage.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Final


# Counter names
TICKS: Final[str] = "ticks"
TICKS_FAILED: Final[str] = "ticks_failed"
OPPORTUNITIES_FOUND: Final[str] = "opportunities_found"
JUMPS_EXECUTED: Final[str] = "jumps_executed"
JUMPS_FAILED: Final[str] = "jumps_failed"
JUMPS_PARTIAL: Final[str] = "jumps_partial"
SIZING_ABORTS: Final[str] = "sizing_aborts"

# Latency names
TICK_LATENCY: Final[str] = "tick"


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


@dataclass
class JumpStats:
    """Realized jump statistics."""

    jumps_successful: int = 0
    total_profit: float = 0.0
    best_profit: float = 0.0
    last_jump_ms: int | None = None


class MetricsCollector:
    """
    Collects and aggregates runtime metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Realized profit accumulation

    Every mutation happens on the event loop thread.
    """

    def __init__(
        self,
        latency_window_size: int = 1000,
    ) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = dict.fromkeys(
            (
                TICKS,
                TICKS_FAILED,
                OPPORTUNITIES_FOUND,
                JUMPS_EXECUTED,
                JUMPS_FAILED,
                JUMPS_PARTIAL,
                SIZING_ABORTS,
            ),
            0,
        )
        self._jump_stats = JumpStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "tick").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """
        Increment a counter.

        Args:
            name: Counter name.
            value: Amount to increment.
        """
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_jump(self, profit: float, timestamp_ms: int) -> None:
        """
        Record a completed jump.

        Args:
            profit: Profit fraction the jump was taken at.
            timestamp_ms: Completion time.
        """
        self._counters[JUMPS_EXECUTED] = self._counters.get(JUMPS_EXECUTED, 0) + 1
        self._jump_stats.jumps_successful += 1
        self._jump_stats.total_profit += profit
        self._jump_stats.best_profit = max(self._jump_stats.best_profit, profit)
        self._jump_stats.last_jump_ms = timestamp_ms

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

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

    @property
    def jump_stats(self) -> JumpStats:
        """Get jump statistics."""
        return self._jump_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            Dict representation of all metrics.
        """
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": stats.min_us,
                    "max": stats.max_us,
                    "avg": stats.avg_us,
                    "p50": stats.p50_us,
                    "p95": stats.p95_us,
                    "p99": stats.p99_us,
                    "count": stats.count,
                }
                for name, stats in (
                    (name, self.get_latency_stats(name)) for name in self._latencies
                )
            },
            "jumps": {
                "successful": self._jump_stats.jumps_successful,
                "total_profit": self._jump_stats.total_profit,
                "best_profit": self._jump_stats.best_profit,
                "last_jump_ms": self._jump_stats.last_jump_ms,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters = dict.fromkeys(self._counters, 0)
        self._jump_stats = JumpStats()
        self._start_time = time.time()
