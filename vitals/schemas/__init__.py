"""
Schemas module: Pydantic response and request models.

This module provides validated data models for the monitor snapshots
and the operator API:
- Dashboard and monitor health snapshots
- Component health checks and system status
- Control request/acknowledgement bodies
- Error response models for consistent error handling
"""

from vitals.schemas.monitoring import (
    # Enums
    HealthStatus,
    # Dashboard models
    CircuitBreakerStatus,
    DashboardResponse,
    MonitorHealthResponse,
    ServiceStatsModel,
    # Component health models
    ComponentCheck,
    ComponentHealth,
    HealthResponse,
    SystemStatusResponse,
    # Control models
    AvailabilityResponse,
    BreakerResetResponse,
    EnabledRequest,
    MonitoringStateResponse,
    # Error models
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    # Enums
    "HealthStatus",
    # Dashboard models
    "ServiceStatsModel",
    "CircuitBreakerStatus",
    "DashboardResponse",
    "MonitorHealthResponse",
    # Component health models
    "ComponentCheck",
    "ComponentHealth",
    "HealthResponse",
    "SystemStatusResponse",
    # Control models
    "EnabledRequest",
    "MonitoringStateResponse",
    "AvailabilityResponse",
    "BreakerResetResponse",
    # Error models
    "ErrorCodes",
    "ErrorDetail",
    "ErrorResponse",
]
