"""
Pydantic Schemas for the Monitoring API

This module defines the response models produced by the monitor and
served by the operator API:
- DashboardResponse: windowed totals plus per-service, cost and breaker views
- MonitorHealthResponse: healthy/degraded signal with cost alert
- ComponentCheck / SystemStatusResponse: component-level health evaluation
- Error responses and small request/acknowledgement bodies

All schemas follow Pydantic v2 patterns with field descriptions for
OpenAPI documentation.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


# =============================================================================
# ENUMERATIONS
# =============================================================================


class HealthStatus(str, Enum):
    """
    Component health classification, from best to worst.

    HEALTHY: Operating normally
    DEGRADED: Working but slow, expensive, or partially failing
    UNHEALTHY: Failing often enough that callers should back off
    CRITICAL: The check itself could not be evaluated
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    CRITICAL = "critical"


# =============================================================================
# DASHBOARD MODELS
# =============================================================================


class ServiceStatsModel(BaseModel):
    """
    Cumulative statistics for one external service.

    Mirrors ServiceStats.to_dict() for API serialization.
    """

    service_name: str = Field(..., description="Service identifier")

    total_operations: int = Field(default=0, ge=0)

    successful_operations: int = Field(default=0, ge=0)

    failed_operations: int = Field(default=0, ge=0)

    success_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Successful / total operations (0.0 when none recorded)",
    )

    average_duration_ms: float = Field(default=0.0, ge=0.0)

    min_duration_ms: float = Field(default=0.0, ge=0.0)

    max_duration_ms: float = Field(default=0.0, ge=0.0)

    operation_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Occurrences of each operation name",
    )


class CircuitBreakerStatus(BaseModel):
    """Externally visible state of one service's circuit breaker."""

    service_name: str = Field(..., description="Service guarded by the breaker")

    is_open: bool = Field(..., description="True while calls are being refused")

    failure_count: int = Field(
        default=0,
        ge=0,
        description="Consecutive failures since the last success or reset",
    )

    last_failure_time: datetime | None = Field(
        default=None,
        description="Time of the most recent failure",
    )


class DashboardResponse(BaseModel):
    """
    Monitoring dashboard snapshot.

    Totals and the average response time cover only metrics still held
    in the bounded recent-metrics window and started inside the
    dashboard time window. Service statistics, costs and breakers are
    cumulative since the last clear.

    Example:
        {
            "monitoring_enabled": true,
            "generated_at": "2026-10-19T12:00:00Z",
            "total_operations": 3,
            "successful_operations": 3,
            "failed_operations": 0,
            "average_response_time_ms": 200.0,
            "service_stats": {...},
            "cost_breakdown": {"openai_embedding": 0.0003},
            "usage_breakdown": {"openai_embedding": 3},
            "total_cost_usd": 0.0003,
            "circuit_breakers": {...}
        }
    """

    monitoring_enabled: bool = Field(default=True)

    generated_at: datetime | None = Field(
        default=None,
        description="When the snapshot was taken (None while monitoring is disabled)",
    )

    total_operations: int = Field(default=0, ge=0)

    successful_operations: int = Field(default=0, ge=0)

    failed_operations: int = Field(default=0, ge=0)

    average_response_time_ms: float = Field(default=0.0, ge=0.0)

    service_stats: dict[str, ServiceStatsModel] = Field(default_factory=dict)

    cost_breakdown: dict[str, float] = Field(
        default_factory=dict,
        description="Accumulated USD cost per cost key",
    )

    usage_breakdown: dict[str, int] = Field(
        default_factory=dict,
        description="Billable call count per cost key",
    )

    total_cost_usd: float = Field(default=0.0, ge=0.0)

    circuit_breakers: dict[str, CircuitBreakerStatus] = Field(default_factory=dict)

    @computed_field
    @property
    def success_rate(self) -> float:
        """Windowed success rate (0.0 when no operations)."""
        if self.total_operations == 0:
            return 0.0
        return self.successful_operations / self.total_operations


class MonitorHealthResponse(BaseModel):
    """
    Monitor-level health signal.

    The monitor is degraded whenever at least one circuit breaker is
    open. The cost alert is a separate boolean; delivering it anywhere
    is up to the caller.
    """

    status: Literal["healthy", "degraded"] = Field(...)

    monitoring_enabled: bool = Field(default=True)

    open_circuit_breakers: list[str] = Field(
        default_factory=list,
        description="Services whose breaker is currently open",
    )

    total_cost_24h_usd: float = Field(default=0.0, ge=0.0)

    cost_alert: bool = Field(
        default=False,
        description="True when accumulated cost exceeds the alert threshold",
    )

    timestamp: datetime = Field(...)


# =============================================================================
# COMPONENT HEALTH MODELS
# =============================================================================


class ComponentCheck(BaseModel):
    """
    Result of evaluating a single component's health.

    Produced by SystemHealthChecker for each monitored provider and for
    the overall performance/cost picture.
    """

    service: str = Field(..., description="Component evaluated")

    status: HealthStatus = Field(...)

    message: str = Field(..., description="Human-readable explanation")

    metrics: dict[str, Any] = Field(
        default_factory=dict,
        description="Figures the verdict was based on",
    )

    timestamp: datetime = Field(...)

    response_time_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Time taken to evaluate the check",
    )


class SystemStatusResponse(BaseModel):
    """Condensed system status for status pages and feedback reports."""

    overall_status: Literal["healthy", "degraded"] = Field(...)

    total_operations: int = Field(default=0, ge=0)

    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)

    average_response_time_ms: float = Field(default=0.0, ge=0.0)

    total_cost_usd: float = Field(default=0.0, ge=0.0)

    circuit_breakers_open: int = Field(default=0, ge=0)

    last_health_check: datetime = Field(...)


class ComponentHealth(BaseModel):
    """Health of a part of this service, as reported by /health."""

    name: str = Field(..., description="Component name (e.g., 'monitor', 'openai')")

    status: HealthStatus = Field(...)

    message: str | None = Field(default=None)


class HealthResponse(BaseModel):
    """
    Response from the /health endpoint.

    Example:
        {
            "status": "healthy",
            "service": "vitals",
            "version": "0.1.0",
            "components": [{"name": "monitor", "status": "healthy"}],
            "uptime_seconds": 3600.5
        }
    """

    status: HealthStatus = Field(...)

    service: str = Field(default="vitals")

    version: str = Field(...)

    components: list[ComponentHealth] = Field(default_factory=list)

    uptime_seconds: float | None = Field(default=None, ge=0.0)


# =============================================================================
# CONTROL MODELS
# =============================================================================


class EnabledRequest(BaseModel):
    """Body for switching monitoring on or off."""

    enabled: bool = Field(..., description="New monitoring state")

    model_config = ConfigDict(json_schema_extra={"examples": [{"enabled": False}]})


class MonitoringStateResponse(BaseModel):
    monitoring_enabled: bool


class AvailabilityResponse(BaseModel):
    service: str
    available: bool


class BreakerResetResponse(BaseModel):
    """Acknowledges a manual circuit breaker reset."""

    reset: list[str] = Field(
        default_factory=list,
        description="Services whose breaker was reset",
    )


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for API responses.

    These codes enable programmatic error handling by clients
    without parsing human-readable messages.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")

    message: str = Field(..., description="Human-readable error message")

    field: str | None = Field(
        default=None,
        description="Field that caused the error (for validation errors)",
    )


class ErrorResponse(BaseModel):
    """
    Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "NOT_FOUND",
                "message": "No circuit breaker for service 'search'"
            }
        }
    """

    error: ErrorDetail = Field(...)
