"""
Circuit Breaker for External Services

Two-state (CLOSED/OPEN) failure-count breaker. A service that fails
`failure_threshold` times in a row is refused further calls until
`recovery_timeout` has passed since its last failure.

Recovery is optimistic: once the timeout elapses the breaker re-closes
on the next availability check, without a half-open trial call, and the
failure count restarts from zero.
"""

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from vitals.metrics.record import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RECOVERY_TIMEOUT = timedelta(minutes=5)


class BreakerState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "closed"  # Calls permitted
    OPEN = "open"  # Calls refused until recovery


class CircuitBreaker:
    """
    Failure-threshold gate for one service.

    Example:
        breaker = CircuitBreaker("openai")
        if breaker.can_execute():
            try:
                call_openai()
                breaker.record_success()
            except Exception:
                breaker.record_failure()
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        recovery_timeout: timedelta = DEFAULT_RECOVERY_TIMEOUT,
        clock: Clock = utc_now,
    ):
        """
        Initialize a closed breaker.

        Args:
            service_name: Service this breaker guards
            failure_threshold: Consecutive failures that open the breaker
            recovery_timeout: Minimum time after the last failure before
                              calls are permitted again
            clock: Source of the current UTC time
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._lock = threading.Lock()

        self._failure_count = 0
        self._last_failure_time: datetime | None = None
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def state(self) -> BreakerState:
        return BreakerState.OPEN if self._is_open else BreakerState.CLOSED

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_time(self) -> datetime | None:
        return self._last_failure_time

    def can_execute(self) -> bool:
        """
        Check whether a call may be issued now.

        An open breaker whose recovery timeout has elapsed is reset to
        CLOSED as a side effect.

        Returns:
            True if the call is permitted
        """
        with self._lock:
            if not self._is_open:
                return True

            if (
                self._last_failure_time is not None
                and self._clock() - self._last_failure_time >= self.recovery_timeout
            ):
                self._reset()
                logger.info(f"Circuit breaker recovered for {self.service_name}")
                return True

            return False

    def record_success(self) -> None:
        """Close the breaker and forget past failures."""
        with self._lock:
            self._reset()

    def record_failure(self) -> None:
        """Count a failure, opening the breaker at the threshold."""
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()

            if self._failure_count >= self.failure_threshold and not self._is_open:
                self._is_open = True
                logger.warning(
                    f"Circuit breaker opened for {self.service_name} "
                    f"after {self._failure_count} consecutive failures"
                )

    def reset(self) -> None:
        """Manually force the breaker closed."""
        with self._lock:
            self._reset()

    def _reset(self) -> None:
        self._failure_count = 0
        self._last_failure_time = None
        self._is_open = False

    def get_status(self) -> dict[str, Any]:
        """
        Report breaker state for health reporting.

        Returns:
            Dictionary with service_name, is_open, failure_count and
            last_failure_time (ISO string or None)
        """
        with self._lock:
            return {
                "service_name": self.service_name,
                "is_open": self._is_open,
                "failure_count": self._failure_count,
                "last_failure_time": (
                    self._last_failure_time.isoformat()
                    if self._last_failure_time is not None
                    else None
                ),
            }
