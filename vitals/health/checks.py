"""
System Health Checks

Evaluates component health from what the monitor has observed:
- per-provider success rate against a minimum threshold
- overall performance: accumulated cost and open circuit breakers

Checks never raise. A check that cannot be evaluated reports a
CRITICAL component carrying the error text instead.
"""

import logging
import time
from collections.abc import Callable, Mapping

from vitals.metrics.monitor import PerformanceMonitor
from vitals.schemas.monitoring import ComponentCheck, HealthStatus, SystemStatusResponse

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_RATE_THRESHOLDS: Mapping[str, float] = {
    "openai": 0.8,
    "tensorflow": 0.9,
}


class SystemHealthChecker:
    """
    Derive component-level health from a PerformanceMonitor.

    Example:
        checker = SystemHealthChecker(monitor)
        for name, result in checker.perform_health_check().items():
            print(name, result.status.value, result.message)
    """

    def __init__(
        self,
        monitor: PerformanceMonitor,
        success_rate_thresholds: Mapping[str, float] | None = None,
        cost_degraded_threshold_usd: float = 50.0,
    ):
        """
        Initialize the checker.

        Args:
            monitor: Monitor whose observations are evaluated
            success_rate_thresholds: Minimum healthy success rate per service
            cost_degraded_threshold_usd: Cost above which performance is degraded
        """
        self._monitor = monitor
        self._thresholds = dict(
            DEFAULT_SUCCESS_RATE_THRESHOLDS
            if success_rate_thresholds is None
            else success_rate_thresholds
        )
        self._cost_degraded_threshold_usd = cost_degraded_threshold_usd

    @property
    def services(self) -> list[str]:
        return list(self._thresholds)

    def perform_health_check(self) -> dict[str, ComponentCheck]:
        """
        Evaluate every configured service plus overall performance.

        Returns:
            Mapping of component name to its check result
        """
        results = {
            service: self.check_service(service, threshold)
            for service, threshold in self._thresholds.items()
        }
        results["performance"] = self.check_performance()
        return results

    def check_service(self, service: str, threshold: float) -> ComponentCheck:
        """
        Compare a service's success rate with its threshold.

        A service that has not been called yet counts as fully successful.

        Args:
            service: Service to evaluate
            threshold: Minimum healthy success rate

        Returns:
            HEALTHY or UNHEALTHY component check
        """

        def evaluate() -> tuple[HealthStatus, str, dict]:
            stats = self._monitor.get_service_stats(service)
            success_rate = stats["success_rate"] if stats else 1.0

            if success_rate < threshold:
                return (
                    HealthStatus.UNHEALTHY,
                    f"{service} success rate below threshold ({success_rate * 100:.1f}%)",
                    {"success_rate": success_rate},
                )
            return (
                HealthStatus.HEALTHY,
                f"{service} operational",
                {"success_rate": success_rate},
            )

        return self._run_check(service, evaluate)

    def check_performance(self) -> ComponentCheck:
        """
        Evaluate accumulated cost and circuit breaker state.

        Returns:
            HEALTHY, DEGRADED (high cost) or UNHEALTHY (open breakers)
        """

        def evaluate() -> tuple[HealthStatus, str, dict]:
            health = self._monitor.get_health_check()
            total_cost = health.total_cost_24h_usd
            open_breakers = health.open_circuit_breakers

            status = HealthStatus.HEALTHY
            message = "Performance metrics normal"

            if total_cost > self._cost_degraded_threshold_usd:
                status = HealthStatus.DEGRADED
                message = f"High API costs detected (${total_cost:.2f})"

            if open_breakers:
                status = HealthStatus.UNHEALTHY
                message = f"Circuit breakers triggered: {', '.join(open_breakers)}"

            return (
                status,
                message,
                {
                    "total_cost_usd": total_cost,
                    "circuit_breakers_open": len(open_breakers),
                },
            )

        return self._run_check("performance", evaluate)

    def _run_check(
        self,
        name: str,
        evaluate: Callable[[], tuple[HealthStatus, str, dict]],
    ) -> ComponentCheck:
        start = time.perf_counter()
        try:
            status, message, metrics = evaluate()
        except Exception as e:
            logger.exception(f"Health check for {name} failed")
            status = HealthStatus.CRITICAL
            message = f"{name} health check failed: {e}"
            metrics = {"error": str(e)}

        return ComponentCheck(
            service=name,
            status=status,
            message=message,
            metrics=metrics,
            timestamp=self._monitor.now(),
            response_time_ms=(time.perf_counter() - start) * 1000,
        )

    def get_system_status(self) -> SystemStatusResponse:
        """
        Summarize the system for status pages and feedback reports.

        Returns:
            SystemStatusResponse built from the dashboard and health check
        """
        dashboard = self._monitor.get_dashboard_data()
        health = self._monitor.get_health_check()

        return SystemStatusResponse(
            overall_status=health.status,
            total_operations=dashboard.total_operations,
            success_rate=dashboard.success_rate,
            average_response_time_ms=dashboard.average_response_time_ms,
            total_cost_usd=dashboard.total_cost_usd,
            circuit_breakers_open=len(health.open_circuit_breakers),
            last_health_check=health.timestamp,
        )
