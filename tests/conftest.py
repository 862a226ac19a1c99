"""
Pytest configuration and shared fixtures.

Provides a controllable clock, fresh monitors, mock OpenAI clients and
an API test client for the Vitals test suite.

IMPORTANT: Environment variables must be set BEFORE importing vitals
modules that use pydantic-settings.
"""

import os

# Set test environment variables before importing vitals modules
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"
os.environ.pop("OPENAI_API_KEY", None)

# Now safe to import everything else
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line("markers", "slow: mark test as slow-running")


class FakeClock:
    """
    Manually advanced UTC clock.

    Usage:
        clock = FakeClock()
        clock.advance(milliseconds=250)
    """

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """
    Clear cached settings between tests.

    This ensures environment changes made by a test do not leak.
    """
    yield

    from vitals.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def clock():
    """A fresh FakeClock."""
    return FakeClock()


@pytest.fixture
def monitor(clock):
    """A PerformanceMonitor driven by the fake clock."""
    from vitals.metrics.monitor import PerformanceMonitor

    return PerformanceMonitor(clock=clock)


@pytest.fixture
def record_call(monitor, clock):
    """
    Factory fixture that records one timed call on the monitor.

    Usage:
        record_call("search", "lookup", duration_ms=100)
        record_call("infer", "predict", success=False, error="timeout")
    """

    def _record(
        service: str,
        operation: str,
        duration_ms: float = 50.0,
        success: bool = True,
        error: str = "upstream error",
        metadata: dict | None = None,
    ):
        timer = monitor.start_timer(operation, service, metadata)
        clock.advance(milliseconds=duration_ms)
        if success:
            timer.complete()
        else:
            timer.fail(error)
        return timer

    return _record


@pytest.fixture
def make_metric(clock):
    """
    Factory fixture for PerformanceMetric objects.

    Usage:
        metric = make_metric("search", "lookup", duration_ms=120)
    """

    def _create(
        service: str = "search",
        operation: str = "lookup",
        duration_ms: float = 100.0,
        success: bool = True,
        error_message: str | None = None,
        metadata: dict | None = None,
    ):
        from vitals.metrics.record import PerformanceMetric

        start = clock()
        return PerformanceMetric(
            operation=operation,
            service=service,
            start_time=start,
            end_time=start + timedelta(milliseconds=duration_ms),
            success=success,
            error_message=error_message if not success else None,
            metadata=metadata or {},
        )

    return _create


@pytest.fixture
def mock_openai_client():
    """Create a fully mocked AsyncOpenAI client."""
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content="Try grilled chicken."))]
    completion.usage = MagicMock(prompt_tokens=120, completion_tokens=30)

    embeddings = MagicMock()
    embeddings.data = [MagicMock(embedding=[0.1, 0.2]), MagicMock(embedding=[0.3, 0.4])]

    mock = AsyncMock()
    mock.chat = MagicMock()
    mock.chat.completions = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=completion)
    mock.embeddings = MagicMock()
    mock.embeddings.create = AsyncMock(return_value=embeddings)
    return mock


@pytest.fixture
def test_client(monitor):
    """
    Create a FastAPI TestClient around an injected monitor.

    The monitor fixture is shared, so tests can seed it directly and
    observe the effect through the API.
    """
    from vitals.main import create_app

    with TestClient(create_app(monitor)) as client:
        yield client
