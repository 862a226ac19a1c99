"""
Performance Monitor

Central coordinator for every external call the application makes.
A finished timer's metric fans out to:
1. the bounded recent-metrics window (FIFO, used by the dashboard)
2. the service's running statistics
3. the service's circuit breaker (success closes, failure counts)
4. the cost tracker, when the call maps to a priced cost key

One monitor is built per process by the composition root and handed to
callers; nothing here is a module-level global.

The monitor is thread-safe: each metric submission is applied
atomically under a single lock. No operation blocks on I/O.
"""

import logging
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Any

from vitals.config import Settings
from vitals.metrics.breaker import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_RECOVERY_TIMEOUT,
    CircuitBreaker,
)
from vitals.metrics.cost import CostKeyResolver, CostTracker, resolve_cost_key
from vitals.metrics.record import Clock, PerformanceMetric, utc_now
from vitals.metrics.reporter import MonitorSnapshot, build_dashboard, build_health_check
from vitals.metrics.stats import ServiceStats
from vitals.metrics.timer import OperationTimer
from vitals.schemas.monitoring import DashboardResponse, MonitorHealthResponse

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Process-wide registry of service statistics, breakers and costs.

    Example:
        monitor = PerformanceMonitor()

        if monitor.is_service_available("openai"):
            timer = monitor.start_timer("text_embedding", "openai")
            try:
                vectors = await client.embeddings.create(...)
                timer.complete({"count": len(vectors.data)})
            except Exception as e:
                timer.fail(str(e))

        dashboard = monitor.get_dashboard_data()
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        recovery_timeout: timedelta = DEFAULT_RECOVERY_TIMEOUT,
        max_recent_metrics: int = 1000,
        slow_operation_threshold_ms: float = 5000.0,
        dashboard_window: timedelta = timedelta(hours=24),
        cost_alert_threshold_usd: float = 10.0,
        cost_tracker: CostTracker | None = None,
        cost_key_resolver: CostKeyResolver = resolve_cost_key,
        clock: Clock = utc_now,
    ):
        """
        Initialize the monitor.

        Args:
            enabled: Initial monitoring state
            failure_threshold: Failures that open a service's breaker
            recovery_timeout: Open-breaker cool-down after the last failure
            max_recent_metrics: Capacity of the recent-metrics window
            slow_operation_threshold_ms: Durations above this are logged
            dashboard_window: Time window for dashboard totals
            cost_alert_threshold_usd: Cost above which health raises cost_alert
            cost_tracker: Tracker to charge; a default-priced one if None
            cost_key_resolver: Maps (service, operation) to a cost key
            clock: Source of the current UTC time
        """
        if max_recent_metrics < 1:
            raise ValueError("max_recent_metrics must be at least 1")
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        self._lock = threading.RLock()
        self._enabled = enabled
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._max_recent_metrics = max_recent_metrics
        self._slow_operation_threshold_ms = slow_operation_threshold_ms
        self._dashboard_window = dashboard_window
        self._cost_alert_threshold_usd = cost_alert_threshold_usd
        self._cost_key_resolver = cost_key_resolver
        self._clock = clock

        self._recent_metrics: deque[PerformanceMetric] = deque(
            maxlen=max_recent_metrics
        )
        self._service_stats: dict[str, ServiceStats] = {}
        self._circuit_breakers: dict[str, CircuitBreaker] = {}
        self._cost_tracker = cost_tracker or CostTracker()

    @classmethod
    def from_settings(
        cls, settings: Settings, clock: Clock = utc_now
    ) -> "PerformanceMonitor":
        """
        Build a monitor from application settings.

        Args:
            settings: Loaded configuration
            clock: Source of the current UTC time

        Returns:
            Configured PerformanceMonitor
        """
        return cls(
            enabled=settings.monitoring_enabled,
            failure_threshold=settings.failure_threshold,
            recovery_timeout=timedelta(seconds=settings.recovery_timeout_seconds),
            max_recent_metrics=settings.max_recent_metrics,
            slow_operation_threshold_ms=settings.slow_operation_threshold_ms,
            dashboard_window=timedelta(hours=settings.dashboard_window_hours),
            cost_alert_threshold_usd=settings.cost_alert_threshold_usd,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """
        Switch monitoring on or off.

        Existing statistics, breakers and costs are kept, so switching
        back on resumes where it left off.
        """
        with self._lock:
            self._enabled = enabled
        logger.info(f"Monitoring {'enabled' if enabled else 'disabled'}")

    @property
    def cost_tracker(self) -> CostTracker:
        return self._cost_tracker

    @property
    def max_recent_metrics(self) -> int:
        return self._max_recent_metrics

    def now(self) -> datetime:
        """Current time according to the monitor's clock."""
        return self._clock()

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def start_timer(
        self,
        operation: str,
        service: str,
        metadata: dict[str, Any] | None = None,
    ) -> OperationTimer:
        """
        Start timing an external call.

        Args:
            operation: Action about to be performed
            service: Dependency it is performed against
            metadata: Context attached to the resulting metric

        Returns:
            Live timer, or a disabled one when monitoring is off
        """
        if not self._enabled:
            return OperationTimer.disabled(self._clock)

        return OperationTimer(
            operation=operation,
            service=service,
            start_time=self._clock(),
            metadata=metadata,
            monitor=self,
            clock=self._clock,
        )

    def record_metric(self, metric: PerformanceMetric) -> None:
        """
        Fold a finished operation into every registry.

        Never raises: the monitor is observational and must not break
        the caller's business logic.

        Args:
            metric: Completed operation
        """
        try:
            with self._lock:
                if not self._enabled:
                    return

                self._recent_metrics.append(metric)

                stats = self._service_stats.get(metric.service)
                if stats is None:
                    stats = self._service_stats[metric.service] = ServiceStats(
                        metric.service
                    )
                stats.add_metric(metric)

                breaker = self._get_circuit_breaker(metric.service)
                if metric.success:
                    breaker.record_success()
                else:
                    breaker.record_failure()

                self._track_cost_for_metric(metric)
        except Exception:
            logger.exception(
                f"Failed to record metric for {metric.service}.{metric.operation}"
            )
            return

        if not metric.success:
            logger.warning(
                f"{metric.service}.{metric.operation} failed after "
                f"{metric.duration_ms:.0f}ms: {metric.error_message}"
            )
        elif metric.duration_ms > self._slow_operation_threshold_ms:
            logger.warning(
                f"{metric.service}.{metric.operation} slow: {metric.duration_ms:.0f}ms"
            )

    def _get_circuit_breaker(self, service: str) -> CircuitBreaker:
        breaker = self._circuit_breakers.get(service)
        if breaker is None:
            breaker = self._circuit_breakers[service] = CircuitBreaker(
                service_name=service,
                failure_threshold=self._failure_threshold,
                recovery_timeout=self._recovery_timeout,
                clock=self._clock,
            )
        return breaker

    def _track_cost_for_metric(self, metric: PerformanceMetric) -> None:
        cost_key = self._cost_key_resolver(metric.service, metric.operation)
        if cost_key is not None:
            self._cost_tracker.track_usage(cost_key)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def is_service_available(self, service: str) -> bool:
        """
        Check whether callers may issue a call to a service.

        Args:
            service: Dependency about to be called

        Returns:
            True when monitoring is off or the service's breaker permits it
        """
        with self._lock:
            if not self._enabled:
                return True
            return self._get_circuit_breaker(service).can_execute()

    def get_dashboard_data(self) -> DashboardResponse:
        """
        Build the operator dashboard.

        Returns:
            DashboardResponse (monitoring_enabled=False when switched off)
        """
        return build_dashboard(self.snapshot(), self._dashboard_window)

    def get_health_check(self) -> MonitorHealthResponse:
        """
        Build the monitor health signal.

        Returns:
            MonitorHealthResponse, degraded iff any breaker is open
        """
        return build_health_check(self.snapshot(), self._cost_alert_threshold_usd)

    def snapshot(self) -> MonitorSnapshot:
        """
        Capture a consistent copy of the monitor state.

        Returns:
            MonitorSnapshot safe to use outside the lock
        """
        with self._lock:
            return MonitorSnapshot(
                taken_at=self._clock(),
                enabled=self._enabled,
                recent_metrics=tuple(self._recent_metrics),
                service_stats={
                    service: stats.to_dict()
                    for service, stats in self._service_stats.items()
                },
                breaker_statuses={
                    service: breaker.get_status()
                    for service, breaker in self._circuit_breakers.items()
                },
                cost_breakdown=self._cost_tracker.get_cost_breakdown(),
                usage_breakdown=self._cost_tracker.get_usage_breakdown(),
                total_cost=self._cost_tracker.get_total_cost(),
            )

    def get_service_stats(self, service: str) -> dict[str, Any] | None:
        """Copy of a service's statistics, or None if never seen."""
        with self._lock:
            stats = self._service_stats.get(service)
            return stats.to_dict() if stats is not None else None

    def get_circuit_breaker_status(self, service: str) -> dict[str, Any] | None:
        """Status of a service's breaker, or None if never created."""
        with self._lock:
            breaker = self._circuit_breakers.get(service)
            return breaker.get_status() if breaker is not None else None

    def get_recent_metrics(self, count: int | None = None) -> list[PerformanceMetric]:
        """
        Most recent metrics, oldest first.

        Args:
            count: Limit to the last `count` metrics (all if None)
        """
        with self._lock:
            metrics = list(self._recent_metrics)
        if count is None:
            return metrics
        return metrics[-count:] if count > 0 else []

    # -------------------------------------------------------------------------
    # Operator controls
    # -------------------------------------------------------------------------

    def clear_data(self) -> None:
        """Wipe metrics, statistics, costs and breakers."""
        with self._lock:
            self._recent_metrics.clear()
            self._service_stats.clear()
            self._cost_tracker.reset()
            self._circuit_breakers.clear()
        logger.info("Monitoring data cleared")

    def reset_circuit_breaker(self, service: str) -> bool:
        """
        Force one service's breaker closed.

        Args:
            service: Service whose breaker to reset

        Returns:
            True if the service had a breaker to reset
        """
        with self._lock:
            breaker = self._circuit_breakers.get(service)
            if breaker is None:
                return False
            breaker.reset()
        logger.info(f"Circuit breaker reset for {service}")
        return True

    def reset_all_circuit_breakers(self) -> list[str]:
        """
        Force every breaker closed.

        Returns:
            Services whose breaker was reset
        """
        with self._lock:
            for breaker in self._circuit_breakers.values():
                breaker.reset()
            services = list(self._circuit_breakers)
        logger.info("All circuit breakers reset")
        return services
