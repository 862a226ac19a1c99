"""
Metric Record

One immutable fact per completed operation against an external
dependency: what ran, where, when, for how long, and whether it worked.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PerformanceMetric:
    """
    Timing and outcome of a single external call.

    Created once when a timer completes or fails, then folded into the
    service statistics, circuit breaker, and cost tracker before being
    parked in the recent-metrics window.

    Attributes:
        operation: Action performed (e.g., 'embedding', 'vision_analysis')
        service: Owning dependency (e.g., 'openai', 'vector_search')
        start_time: When the call started (UTC)
        end_time: When the call finished (UTC)
        success: Whether the call succeeded
        error_message: Failure description, only set when success is False
        metadata: Caller-supplied context merged from timer start and finish
                  (read-only)
    """

    operation: str
    service: str
    start_time: datetime
    end_time: datetime
    success: bool
    error_message: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Drop stray error messages on successes and freeze metadata."""
        if self.success and self.error_message is not None:
            object.__setattr__(self, "error_message", None)
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def duration(self) -> timedelta:
        """Elapsed time, clamped to zero for a misordered clock."""
        return max(self.end_time - self.start_time, timedelta(0))

    @property
    def duration_ms(self) -> float:
        """Elapsed time in milliseconds."""
        return self.duration.total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "operation": self.operation,
            "service": self.service,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": round(self.duration_ms, 2),
            "success": self.success,
            "error_message": self.error_message,
            "metadata": dict(self.metadata),
        }
