"""
Metrics Module: Timing, Aggregation, Circuit Breaking and Cost Tracking

This module is the resilience and observability core. Every call to an
external, metered dependency is timed, aggregated per service, gated by
a per-service circuit breaker, and charged against a price table.

Components:
    PerformanceMetric: Immutable record of one finished operation
    ServiceStats: Running per-service counters and latency summary
    CostTracker: Usage and USD cost per cost key
    CircuitBreaker: Two-state failure-threshold gate per service
    OperationTimer: Single-shot handle that produces a metric
    PerformanceMonitor: Coordinator owning all of the above
    MonitorSnapshot: Point-in-time copy used to build reports

Usage:
    from vitals.metrics import PerformanceMonitor

    monitor = PerformanceMonitor()

    if not monitor.is_service_available("openai"):
        return fallback_advice()

    timer = monitor.start_timer("chat_completion", "openai", {"feature": "advice"})
    try:
        reply = await client.chat.completions.create(...)
        timer.complete({"tokens": reply.usage.total_tokens})
    except Exception as e:
        timer.fail(str(e))
        raise

    health = monitor.get_health_check()  # MonitorHealthResponse
"""

# Records and aggregation
from vitals.metrics.record import (
    Clock,
    PerformanceMetric,
    utc_now,
)
from vitals.metrics.stats import ServiceStats

# Cost tracking
from vitals.metrics.cost import (
    DEFAULT_UNIT_COSTS,
    CostKeyResolver,
    CostTracker,
    resolve_cost_key,
)

# Circuit breaking
from vitals.metrics.breaker import (
    BreakerState,
    CircuitBreaker,
)

# Coordination
from vitals.metrics.timer import OperationTimer
from vitals.metrics.monitor import PerformanceMonitor

# Reporting
from vitals.metrics.reporter import (
    MonitorSnapshot,
    build_dashboard,
    build_health_check,
)


__all__ = [
    # Records and aggregation
    "Clock",
    "PerformanceMetric",
    "utc_now",
    "ServiceStats",
    # Cost tracking
    "DEFAULT_UNIT_COSTS",
    "CostKeyResolver",
    "CostTracker",
    "resolve_cost_key",
    # Circuit breaking
    "BreakerState",
    "CircuitBreaker",
    # Coordination
    "OperationTimer",
    "PerformanceMonitor",
    # Reporting
    "MonitorSnapshot",
    "build_dashboard",
    "build_health_check",
]
