"""
Vitals: FastAPI Operator API

This module exposes the monitor to operators:
- /health: Liveness of this service with component status
- /config: Non-sensitive configuration values
- /monitoring/dashboard: Windowed totals, per-service stats, costs, breakers
- /monitoring/health: Healthy/degraded signal with cost alert
- /monitoring/system, /monitoring/components: Component health evaluation
- /monitoring/circuit-breakers/...: Manual breaker resets
- /monitoring/data, /monitoring/enabled: Clearing and switching monitoring

The monitor is built once per process in the lifespan handler (or
injected through create_app) and stored on app.state; endpoints reach
it through the get_monitor dependency.
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitals import __version__
from vitals.config import Settings, configure_logging, get_settings
from vitals.health.checks import SystemHealthChecker
from vitals.metrics.monitor import PerformanceMonitor
from vitals.schemas.monitoring import (
    AvailabilityResponse,
    BreakerResetResponse,
    ComponentCheck,
    ComponentHealth,
    DashboardResponse,
    EnabledRequest,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    MonitorHealthResponse,
    MonitoringStateResponse,
    SystemStatusResponse,
)

logger = logging.getLogger(__name__)


def get_monitor(request: Request) -> PerformanceMonitor:
    """Dependency: the process-wide monitor held on app.state."""
    return request.app.state.monitor


def get_health_checker(request: Request) -> SystemHealthChecker:
    """Dependency: the component health checker held on app.state."""
    return request.app.state.health_checker


def create_app(monitor: PerformanceMonitor | None = None) -> FastAPI:
    """
    Build the operator API.

    Args:
        monitor: Monitor to expose. If None, one is built from settings
                 at startup.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler for startup/shutdown events.

        On startup:
        - Loads configuration from environment
        - Configures logging
        - Builds the monitor and health checker unless injected
        """
        settings = get_settings()
        configure_logging(settings)

        logger.info("=" * 60)
        logger.info("Vitals starting up...")
        logger.info("=" * 60)

        if monitor is None:
            app.state.monitor = PerformanceMonitor.from_settings(settings)
        else:
            app.state.monitor = monitor

        app.state.health_checker = SystemHealthChecker(
            app.state.monitor,
            cost_degraded_threshold_usd=settings.cost_degraded_threshold_usd,
        )
        app.state.start_time = time.time()

        logger.info(f"Monitoring: {'enabled' if app.state.monitor.enabled else 'disabled'}")
        logger.info(f"Failure threshold: {settings.failure_threshold}")
        logger.info(f"Recovery timeout: {settings.recovery_timeout_seconds}s")
        logger.info(f"Recent metrics window: {app.state.monitor.max_recent_metrics}")
        logger.info(f"Cost alert threshold: ${settings.cost_alert_threshold_usd:.2f}")
        logger.info("Vitals ready to accept requests")

        yield  # Application runs here

        logger.info("Vitals shutting down...")

    app = FastAPI(
        title="Vitals",
        description="Resilience and observability core for external service calls",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    _register_exception_handlers(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.get("/")
    async def root():
        """
        Root endpoint with API information.
        """
        return {
            "name": "Vitals",
            "description": "Resilience and observability core",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "dashboard": "/monitoring/dashboard",
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
        description="Check service health and component status.",
    )
    async def health_check(request: Request):
        """
        Health check endpoint for monitoring and orchestration.

        The service itself is up whenever it answers; the monitor
        component turns degraded while any circuit breaker is open.
        """
        monitor: PerformanceMonitor = request.app.state.monitor
        components = []
        overall_status = HealthStatus.HEALTHY

        try:
            monitor_health = monitor.get_health_check()
            if monitor_health.open_circuit_breakers:
                components.append(
                    ComponentHealth(
                        name="monitor",
                        status=HealthStatus.DEGRADED,
                        message=(
                            "Open circuit breakers: "
                            + ", ".join(monitor_health.open_circuit_breakers)
                        ),
                    )
                )
                overall_status = HealthStatus.DEGRADED
            else:
                components.append(
                    ComponentHealth(
                        name="monitor",
                        status=HealthStatus.HEALTHY,
                        message=(
                            "Monitoring enabled"
                            if monitor_health.monitoring_enabled
                            else "Monitoring disabled"
                        ),
                    )
                )
        except Exception as e:
            components.append(
                ComponentHealth(name="monitor", status=HealthStatus.UNHEALTHY, message=str(e))
            )
            overall_status = HealthStatus.UNHEALTHY

        uptime = time.time() - request.app.state.start_time

        return HealthResponse(
            status=overall_status,
            service="vitals",
            version=__version__,
            components=components,
            uptime_seconds=max(uptime, 0.0),
        )

    @app.get("/config")
    async def show_config(settings: Settings = Depends(get_settings)):
        """
        Returns non-sensitive configuration values.

        The OpenAI key is a SecretStr and is NOT exposed here.
        """
        return {
            "monitoring": {
                "enabled": settings.monitoring_enabled,
                "max_recent_metrics": settings.max_recent_metrics,
                "slow_operation_threshold_ms": settings.slow_operation_threshold_ms,
                "dashboard_window_hours": settings.dashboard_window_hours,
            },
            "circuit_breaker": {
                "failure_threshold": settings.failure_threshold,
                "recovery_timeout_seconds": settings.recovery_timeout_seconds,
            },
            "cost": {
                "alert_threshold_usd": settings.cost_alert_threshold_usd,
                "degraded_threshold_usd": settings.cost_degraded_threshold_usd,
            },
            "server": {
                "host": settings.host,
                "port": settings.port,
                "debug": settings.debug,
            },
            "logging": {"level": settings.log_level},
            "api_keys_configured": {
                "openai": bool(
                    settings.openai_api_key.get_secret_value()
                    if settings.openai_api_key
                    else False
                )
            },
        }

    @app.get(
        "/monitoring/dashboard",
        response_model=DashboardResponse,
        summary="Monitoring dashboard",
    )
    async def dashboard(monitor: PerformanceMonitor = Depends(get_monitor)):
        """
        Windowed operation totals plus cumulative service statistics,
        cost breakdown and circuit breaker states.
        """
        return monitor.get_dashboard_data()

    @app.get(
        "/monitoring/health",
        response_model=MonitorHealthResponse,
        summary="Monitor health signal",
    )
    async def monitor_health(monitor: PerformanceMonitor = Depends(get_monitor)):
        """Healthy/degraded status, open breakers and cost alert."""
        return monitor.get_health_check()

    @app.get(
        "/monitoring/system",
        response_model=SystemStatusResponse,
        summary="System status summary",
    )
    async def system_status(checker: SystemHealthChecker = Depends(get_health_checker)):
        return checker.get_system_status()

    @app.get(
        "/monitoring/components",
        response_model=dict[str, ComponentCheck],
        summary="Component health checks",
    )
    async def component_checks(
        checker: SystemHealthChecker = Depends(get_health_checker),
    ):
        """Per-provider success-rate checks and the performance check."""
        return checker.perform_health_check()

    @app.get(
        "/monitoring/services/{service}/availability",
        response_model=AvailabilityResponse,
        summary="Service availability",
    )
    async def service_availability(
        service: str, monitor: PerformanceMonitor = Depends(get_monitor)
    ):
        """Whether callers may currently issue calls to a service."""
        return AvailabilityResponse(
            service=service, available=monitor.is_service_available(service)
        )

    @app.post(
        "/monitoring/circuit-breakers/reset",
        response_model=BreakerResetResponse,
        summary="Reset all circuit breakers",
    )
    async def reset_all_breakers(monitor: PerformanceMonitor = Depends(get_monitor)):
        return BreakerResetResponse(reset=monitor.reset_all_circuit_breakers())

    @app.post(
        "/monitoring/circuit-breakers/{service}/reset",
        response_model=BreakerResetResponse,
        responses={404: {"model": ErrorResponse}},
        summary="Reset one circuit breaker",
    )
    async def reset_breaker(service: str, monitor: PerformanceMonitor = Depends(get_monitor)):
        if not monitor.reset_circuit_breaker(service):
            raise HTTPException(
                status_code=404,
                detail={
                    "code": ErrorCodes.NOT_FOUND,
                    "message": f"No circuit breaker for service '{service}'",
                },
            )
        return BreakerResetResponse(reset=[service])

    @app.delete(
        "/monitoring/data",
        response_model=MonitoringStateResponse,
        summary="Clear all monitoring data",
    )
    async def clear_data(monitor: PerformanceMonitor = Depends(get_monitor)):
        monitor.clear_data()
        return MonitoringStateResponse(monitoring_enabled=monitor.enabled)

    @app.put(
        "/monitoring/enabled",
        response_model=MonitoringStateResponse,
        summary="Switch monitoring on or off",
    )
    async def set_enabled(
        body: EnabledRequest, monitor: PerformanceMonitor = Depends(get_monitor)
    ):
        monitor.set_enabled(body.enabled)
        return MonitoringStateResponse(monitoring_enabled=monitor.enabled)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Handle Pydantic validation errors.

        Returns a consistent error response format with the first validation
        error's details for client-side error handling.
        """
        errors = exc.errors()
        first_error = errors[0] if errors else {}

        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": ErrorCodes.VALIDATION_ERROR,
                    "message": first_error.get("msg", "Validation failed"),
                    "field": ".".join(str(loc) for loc in first_error.get("loc", [])),
                }
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """
        Handle HTTP exceptions with consistent format.
        """
        detail = exc.detail
        if isinstance(detail, dict):
            return JSONResponse(status_code=exc.status_code, content={"error": detail})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": "HTTP_ERROR", "message": str(detail)}},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Logs the full exception for debugging and returns a generic error
        response to avoid leaking implementation details.
        """
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCodes.INTERNAL_ERROR,
                    "message": "An unexpected error occurred",
                }
            },
        )


app = create_app()
