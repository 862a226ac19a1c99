"""
Per-Service Statistics

Running counters and latency summary for one external dependency.
Every update is O(1); nothing is recomputed from history.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from vitals.metrics.record import PerformanceMetric


@dataclass
class ServiceStats:
    """
    Aggregate view of every metric recorded for a service.

    Created lazily by the monitor on the first metric for a service and
    only discarded by a full reset.

    Example:
        stats = ServiceStats("vector_search")
        stats.add_metric(metric)
        print(f"{stats.success_rate:.0%} over {stats.total_operations} calls")
    """

    service_name: str
    total_operations: int = 0
    successful_operations: int = 0
    failed_operations: int = 0
    total_duration_ms: float = 0.0
    average_duration_ms: float = 0.0
    min_duration_ms: float = math.inf
    max_duration_ms: float = 0.0
    operation_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def add_metric(self, metric: PerformanceMetric) -> None:
        """
        Fold one metric into the running aggregates.

        Args:
            metric: Completed operation belonging to this service
        """
        self.total_operations += 1

        if metric.success:
            self.successful_operations += 1
        else:
            self.failed_operations += 1

        duration_ms = metric.duration_ms
        self.total_duration_ms += duration_ms
        self.average_duration_ms = self.total_duration_ms / self.total_operations
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)

        self.operation_counts[metric.operation] += 1

    @property
    def success_rate(self) -> float:
        """Fraction of successful operations, 0.0 before any are seen."""
        if self.total_operations == 0:
            return 0.0
        return self.successful_operations / self.total_operations

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "service_name": self.service_name,
            "total_operations": self.total_operations,
            "successful_operations": self.successful_operations,
            "failed_operations": self.failed_operations,
            "success_rate": self.success_rate,
            "average_duration_ms": self.average_duration_ms,
            "min_duration_ms": 0.0 if math.isinf(self.min_duration_ms) else self.min_duration_ms,
            "max_duration_ms": self.max_duration_ms,
            "operation_counts": dict(self.operation_counts),
        }
