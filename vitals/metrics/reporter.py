"""
Monitor Reporter

Transforms a point-in-time MonitorSnapshot into the dashboard and
health responses served to operators.

The monitor captures the snapshot under its lock; everything here runs
on copies, so formatting never holds up metric recording.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from vitals.metrics.record import PerformanceMetric
from vitals.schemas.monitoring import (
    CircuitBreakerStatus,
    DashboardResponse,
    MonitorHealthResponse,
    ServiceStatsModel,
)


@dataclass(frozen=True)
class MonitorSnapshot:
    """
    Copy of the monitor's state at one instant.

    Attributes:
        taken_at: When the snapshot was captured (UTC)
        enabled: Whether monitoring was switched on
        recent_metrics: Contents of the recent-metrics window, oldest first
        service_stats: ServiceStats.to_dict() per service
        breaker_statuses: CircuitBreaker.get_status() per service
        cost_breakdown: Accumulated cost per cost key
        usage_breakdown: Usage count per cost key
        total_cost: Sum of accumulated cost
    """

    taken_at: datetime
    enabled: bool
    recent_metrics: tuple[PerformanceMetric, ...] = ()
    service_stats: dict[str, dict[str, Any]] = field(default_factory=dict)
    breaker_statuses: dict[str, dict[str, Any]] = field(default_factory=dict)
    cost_breakdown: dict[str, float] = field(default_factory=dict)
    usage_breakdown: dict[str, int] = field(default_factory=dict)
    total_cost: float = 0.0

    @property
    def open_breakers(self) -> list[str]:
        """Services whose breaker is open, in registration order."""
        return [
            service
            for service, status in self.breaker_statuses.items()
            if status["is_open"]
        ]


def metrics_in_window(
    metrics: tuple[PerformanceMetric, ...], now: datetime, window: timedelta
) -> list[PerformanceMetric]:
    """
    Select metrics that started inside the trailing time window.

    Args:
        metrics: Candidate metrics (already capacity-bounded)
        now: End of the window
        window: Window length

    Returns:
        Metrics whose start_time is after now - window
    """
    cutoff = now - window
    return [m for m in metrics if m.start_time > cutoff]


def build_dashboard(snapshot: MonitorSnapshot, window: timedelta) -> DashboardResponse:
    """
    Generate the dashboard response.

    Totals come from the recent-metrics window filtered to the time
    window, so under heavy load they are bounded by whichever limit
    (count or time) is reached first.

    Args:
        snapshot: Monitor state to report on
        window: Trailing time window for the totals

    Returns:
        DashboardResponse ready for API serialization
    """
    if not snapshot.enabled:
        return DashboardResponse(monitoring_enabled=False)

    recent = metrics_in_window(snapshot.recent_metrics, snapshot.taken_at, window)
    successful = sum(1 for m in recent if m.success)
    average_ms = sum(m.duration_ms for m in recent) / len(recent) if recent else 0.0

    return DashboardResponse(
        monitoring_enabled=True,
        generated_at=snapshot.taken_at,
        total_operations=len(recent),
        successful_operations=successful,
        failed_operations=len(recent) - successful,
        average_response_time_ms=average_ms,
        service_stats={
            service: ServiceStatsModel(**stats)
            for service, stats in snapshot.service_stats.items()
        },
        cost_breakdown=dict(snapshot.cost_breakdown),
        usage_breakdown=dict(snapshot.usage_breakdown),
        total_cost_usd=snapshot.total_cost,
        circuit_breakers={
            service: CircuitBreakerStatus(**status)
            for service, status in snapshot.breaker_statuses.items()
        },
    )


def build_health_check(
    snapshot: MonitorSnapshot, cost_alert_threshold_usd: float
) -> MonitorHealthResponse:
    """
    Generate the monitor health response.

    Args:
        snapshot: Monitor state to report on
        cost_alert_threshold_usd: Cost above which cost_alert is raised

    Returns:
        MonitorHealthResponse with degraded status if any breaker is open
    """
    open_breakers = snapshot.open_breakers

    return MonitorHealthResponse(
        status="degraded" if open_breakers else "healthy",
        monitoring_enabled=snapshot.enabled,
        open_circuit_breakers=open_breakers,
        total_cost_24h_usd=snapshot.total_cost,
        cost_alert=snapshot.total_cost > cost_alert_threshold_usd,
        timestamp=snapshot.taken_at,
    )
