"""
Operation Timer

Handle returned by PerformanceMonitor.start_timer(). The caller performs
its external call, then finishes the timer exactly once with complete()
or fail(). Any later call is ignored.

A timer that is never finished records nothing. Callers wanting a
guaranteed outcome can use the timer as a context manager instead:

    with monitor.start_timer("embedding", "openai") as timer:
        vectors = client.embed(texts)
        timer.complete({"count": len(vectors)})

Leaving the block normally completes the timer if the body did not;
an Exception fails it with the exception text and propagates.
Cancellation (asyncio.CancelledError, KeyboardInterrupt) records
nothing, like any other abandoned timer.
"""

import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from vitals.metrics.record import Clock, PerformanceMetric, utc_now

if TYPE_CHECKING:
    from vitals.metrics.monitor import PerformanceMonitor


class OperationTimer:
    """Single-shot timing handle for one external call."""

    def __init__(
        self,
        operation: str,
        service: str,
        start_time: datetime,
        metadata: dict[str, Any] | None = None,
        monitor: "PerformanceMonitor | None" = None,
        clock: Clock = utc_now,
    ):
        self.operation = operation
        self.service = service
        self.start_time = start_time
        self.metadata = dict(metadata or {})
        self._monitor = monitor
        self._clock = clock
        self._lock = threading.Lock()
        self._finished = False

    @classmethod
    def disabled(cls, clock: Clock = utc_now) -> "OperationTimer":
        """Timer whose complete/fail are no-ops (monitoring switched off)."""
        return cls(operation="", service="", start_time=clock(), clock=clock)

    @property
    def is_enabled(self) -> bool:
        return self._monitor is not None

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def elapsed(self) -> timedelta:
        """Wall-clock time since the timer started, clamped to zero."""
        return max(self._clock() - self.start_time, timedelta(0))

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed.total_seconds() * 1000

    def complete(self, extra_metadata: dict[str, Any] | None = None) -> None:
        """
        Record a successful outcome.

        Args:
            extra_metadata: Context merged over the start-time metadata
        """
        self._finish(success=True, error_message=None, extra_metadata=extra_metadata)

    def fail(
        self, error_message: str, extra_metadata: dict[str, Any] | None = None
    ) -> None:
        """
        Record a failed outcome.

        Args:
            error_message: Description of what went wrong
            extra_metadata: Context merged over the start-time metadata
        """
        self._finish(
            success=False, error_message=error_message, extra_metadata=extra_metadata
        )

    def _finish(
        self,
        success: bool,
        error_message: str | None,
        extra_metadata: dict[str, Any] | None,
    ) -> None:
        if self._monitor is None:
            return

        with self._lock:
            if self._finished:
                return
            self._finished = True

        metric = PerformanceMetric(
            operation=self.operation,
            service=self.service,
            start_time=self.start_time,
            end_time=self._clock(),
            success=success,
            error_message=error_message,
            metadata={**self.metadata, **(extra_metadata or {})},
        )
        self._monitor.record_metric(metric)

    def __enter__(self) -> "OperationTimer":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self.complete()
        elif isinstance(exc, Exception):
            self.fail(str(exc) or exc_type.__name__)
        # Cancellation and other BaseExceptions leave the timer unfinished
        return False

    async def __aenter__(self) -> "OperationTimer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return self.__exit__(exc_type, exc, tb)
