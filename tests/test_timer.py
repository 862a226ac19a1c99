"""
Operation Timer Tests

Validates single-shot completion, metadata merging, disabled timers and
the context-manager form.
"""

import asyncio
from datetime import timedelta

import pytest

from vitals.metrics.timer import OperationTimer


class TestTimerCompletion:
    """Tests for complete()/fail()."""

    def test_complete_records_success(self, monitor, clock):
        timer = monitor.start_timer("lookup", "search", {"query": "apple"})
        clock.advance(milliseconds=120)

        timer.complete({"hits": 3})

        [metric] = monitor.get_recent_metrics()
        assert metric.success is True
        assert metric.duration_ms == pytest.approx(120.0)
        assert metric.metadata == {"query": "apple", "hits": 3}
        assert timer.is_finished is True

    def test_fail_records_error(self, monitor, clock):
        timer = monitor.start_timer("predict", "infer")
        clock.advance(milliseconds=40)

        timer.fail("model not loaded")

        [metric] = monitor.get_recent_metrics()
        assert metric.success is False
        assert metric.error_message == "model not loaded"

    def test_extra_metadata_overrides_start_metadata(self, monitor):
        timer = monitor.start_timer("lookup", "search", {"source": "cache"})

        timer.complete({"source": "network"})

        assert monitor.get_recent_metrics()[0].metadata == {"source": "network"}

    def test_second_finish_is_ignored(self, monitor):
        timer = monitor.start_timer("lookup", "search")

        timer.complete()
        timer.fail("late failure")
        timer.complete()

        assert len(monitor.get_recent_metrics()) == 1
        assert monitor.get_service_stats("search")["failed_operations"] == 0

    def test_unfinished_timer_records_nothing(self, monitor):
        monitor.start_timer("lookup", "search")

        assert monitor.get_recent_metrics() == []
        assert monitor.get_service_stats("search") is None

    def test_elapsed(self, monitor, clock):
        timer = monitor.start_timer("lookup", "search")
        clock.advance(milliseconds=75)

        assert timer.elapsed_ms == pytest.approx(75.0)

    def test_elapsed_clamped_for_misordered_clock(self, monitor, clock):
        timer = monitor.start_timer("lookup", "search")
        clock.advance(seconds=-5)

        assert timer.elapsed == timedelta(0)
        assert timer.elapsed_ms == 0.0


class TestDisabledTimer:
    """Tests for timers handed out while monitoring is off."""

    def test_disabled_timer_is_noop(self, clock):
        timer = OperationTimer.disabled(clock)

        timer.complete()
        timer.fail("ignored")

        assert timer.is_enabled is False
        assert timer.is_finished is False

    def test_monitor_off_returns_disabled_timer(self, monitor):
        monitor.set_enabled(False)

        timer = monitor.start_timer("lookup", "search")
        timer.complete()

        assert timer.is_enabled is False
        monitor.set_enabled(True)
        assert monitor.get_recent_metrics() == []


class TestTimerContextManager:
    """Tests for the with-statement form."""

    def test_normal_exit_completes(self, monitor, clock):
        with monitor.start_timer("lookup", "search"):
            clock.advance(milliseconds=10)

        [metric] = monitor.get_recent_metrics()
        assert metric.success is True

    def test_explicit_complete_inside_block_wins(self, monitor):
        with monitor.start_timer("lookup", "search") as timer:
            timer.complete({"hits": 1})

        [metric] = monitor.get_recent_metrics()
        assert metric.metadata == {"hits": 1}

    def test_exception_fails_and_propagates(self, monitor):
        with pytest.raises(ConnectionError):
            with monitor.start_timer("lookup", "search"):
                raise ConnectionError("connection reset")

        [metric] = monitor.get_recent_metrics()
        assert metric.success is False
        assert metric.error_message == "connection reset"

    def test_exception_without_message_uses_type_name(self, monitor):
        with pytest.raises(TimeoutError):
            with monitor.start_timer("lookup", "search"):
                raise TimeoutError()

        assert monitor.get_recent_metrics()[0].error_message == "TimeoutError"

    @pytest.mark.asyncio
    async def test_async_context_manager(self, monitor):
        with pytest.raises(ValueError):
            async with monitor.start_timer("predict", "infer"):
                raise ValueError("bad input")

        assert monitor.get_service_stats("infer")["failed_operations"] == 1

    @pytest.mark.asyncio
    async def test_cancellation_records_nothing(self, monitor):
        """A caller abandoning the call is not an upstream failure."""
        with pytest.raises(asyncio.CancelledError):
            async with monitor.start_timer("predict", "infer") as timer:
                raise asyncio.CancelledError()

        assert timer.is_finished is False
        assert monitor.get_recent_metrics() == []
        assert monitor.get_service_stats("infer") is None

    def test_keyboard_interrupt_records_nothing(self, monitor):
        with pytest.raises(KeyboardInterrupt):
            with monitor.start_timer("lookup", "search"):
                raise KeyboardInterrupt()

        assert monitor.get_recent_metrics() == []
