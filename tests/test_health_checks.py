"""
System Health Check Tests

Validates component-level evaluation: per-provider success-rate checks,
the performance check, failure containment and the system summary.
"""

from unittest.mock import patch

import pytest

from vitals.health.checks import SystemHealthChecker
from vitals.schemas.monitoring import HealthStatus


@pytest.fixture
def checker(monitor):
    return SystemHealthChecker(monitor)


class TestServiceChecks:
    """Tests for success-rate checks."""

    def test_default_services(self, checker):
        assert checker.services == ["openai", "tensorflow"]

    def test_unseen_service_is_healthy(self, checker):
        result = checker.check_service("openai", 0.8)

        assert result.status == HealthStatus.HEALTHY
        assert result.message == "openai operational"
        assert result.metrics == {"success_rate": 1.0}

    def test_below_threshold_is_unhealthy(self, checker, record_call):
        for _ in range(3):
            record_call("openai", "chat_completion")
        record_call("openai", "chat_completion", success=False)

        result = checker.check_service("openai", 0.8)

        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "openai success rate below threshold (75.0%)"

    def test_at_threshold_is_healthy(self, checker, record_call):
        for _ in range(4):
            record_call("openai", "chat_completion")
        record_call("openai", "chat_completion", success=False)

        assert checker.check_service("openai", 0.8).status == HealthStatus.HEALTHY

    def test_check_error_is_critical(self, checker, monitor):
        with patch.object(
            monitor, "get_service_stats", side_effect=RuntimeError("stats unavailable")
        ):
            result = checker.check_service("openai", 0.8)

        assert result.status == HealthStatus.CRITICAL
        assert result.message == "openai health check failed: stats unavailable"
        assert result.metrics == {"error": "stats unavailable"}

    def test_custom_thresholds(self, monitor, record_call):
        checker = SystemHealthChecker(monitor, success_rate_thresholds={"search": 0.99})
        record_call("search", "lookup", success=False)

        results = checker.perform_health_check()

        assert set(results) == {"search", "performance"}
        assert results["search"].status == HealthStatus.UNHEALTHY


class TestPerformanceCheck:
    """Tests for the cost and breaker check."""

    def test_normal(self, checker, clock):
        result = checker.check_performance()

        assert result.status == HealthStatus.HEALTHY
        assert result.message == "Performance metrics normal"
        assert result.timestamp == clock()
        assert result.response_time_ms >= 0.0

    def test_high_cost_is_degraded(self, monitor, record_call):
        checker = SystemHealthChecker(monitor, cost_degraded_threshold_usd=0.001)
        record_call("openai", "chat_completion")

        result = checker.check_performance()

        assert result.status == HealthStatus.DEGRADED
        assert result.message.startswith("High API costs detected ($")

    def test_open_breakers_are_unhealthy(self, checker, record_call):
        for _ in range(5):
            record_call("infer", "predict", success=False)

        result = checker.check_performance()

        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "Circuit breakers triggered: infer"
        assert result.metrics["circuit_breakers_open"] == 1

    def test_open_breakers_outrank_cost(self, monitor, record_call):
        checker = SystemHealthChecker(monitor, cost_degraded_threshold_usd=0.0)
        for _ in range(5):
            record_call("openai", "chat_completion", success=False)

        assert checker.check_performance().status == HealthStatus.UNHEALTHY


class TestPerformHealthCheck:
    """Tests for the full component sweep."""

    def test_all_components_reported(self, checker):
        results = checker.perform_health_check()

        assert set(results) == {"openai", "tensorflow", "performance"}
        assert all(r.status == HealthStatus.HEALTHY for r in results.values())

    def test_one_failing_check_does_not_stop_others(self, checker, monitor):
        with patch.object(monitor, "get_health_check", side_effect=RuntimeError("down")):
            results = checker.perform_health_check()

        assert results["performance"].status == HealthStatus.CRITICAL
        assert results["openai"].status == HealthStatus.HEALTHY


class TestSystemStatus:
    """Tests for get_system_status()."""

    def test_empty_system(self, checker, clock):
        status = checker.get_system_status()

        assert status.overall_status == "healthy"
        assert status.total_operations == 0
        assert status.success_rate == 0.0
        assert status.last_health_check == clock()

    def test_summary(self, checker, record_call):
        record_call("openai", "chat_completion", duration_ms=100)
        for _ in range(5):
            record_call("infer", "predict", duration_ms=100, success=False)

        status = checker.get_system_status()

        assert status.overall_status == "degraded"
        assert status.total_operations == 6
        assert status.success_rate == pytest.approx(1 / 6)
        assert status.average_response_time_ms == pytest.approx(100.0)
        assert status.total_cost_usd == pytest.approx(0.002)
        assert status.circuit_breakers_open == 1
