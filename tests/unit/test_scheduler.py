"""
Unit Tests for Timer Schedulers

Tests the virtual clock and the asyncio-backed scheduler.
"""

import asyncio

import pytest

from calmcompanion.services.timing.scheduler import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    """Tests for the deterministic virtual clock."""

    def test_call_later_fires_at_due_time(self, scheduler):
        """One-shot timers fire once, not before they are due."""
        fired = []
        scheduler.call_later(1.5, lambda: fired.append(scheduler.now()))

        scheduler.advance(1.4)
        assert fired == []

        scheduler.advance(0.1)
        assert fired == [1.5]

        scheduler.advance(5)
        assert len(fired) == 1

    def test_repeating_ticks_do_not_drift(self, scheduler):
        """140 ticks of 0.1 s land exactly on 14 s."""
        ticks = []
        scheduler.call_repeating(0.1, lambda: ticks.append(scheduler.now()))

        scheduler.advance(14)

        assert len(ticks) == 140
        assert ticks[-1] == 14.0

    def test_cancel_stops_timer(self, scheduler):
        """A cancelled timer never fires again."""
        ticks = []
        handle = scheduler.call_repeating(1, lambda: ticks.append(1))

        scheduler.advance(2)
        handle.cancel()
        scheduler.advance(5)

        assert len(ticks) == 2
        assert handle.cancelled
        assert scheduler.pending == 0

    def test_same_instant_fires_in_arm_order(self, scheduler):
        """Timers due together fire in the order they were armed."""
        order = []
        scheduler.call_later(1, lambda: order.append("first"))
        scheduler.call_later(1, lambda: order.append("second"))

        scheduler.advance(1)

        assert order == ["first", "second"]

    def test_callbacks_can_cancel_other_timers(self, scheduler):
        """Cancelling a later timer from a callback prevents it firing."""
        fired = []
        later = scheduler.call_later(2, lambda: fired.append("later"))
        scheduler.call_later(1, later.cancel)

        scheduler.advance(3)

        assert fired == []

    def test_advance_backwards_rejected(self, scheduler):
        """The clock never moves backwards."""
        with pytest.raises(ValueError):
            scheduler.advance(-1)

    def test_non_positive_interval_rejected(self, scheduler):
        """Repeating timers need a positive interval."""
        with pytest.raises(ValueError):
            scheduler.call_repeating(0, lambda: None)


class TestAsyncioScheduler:
    """Tests for the event-loop scheduler."""

    @pytest.mark.asyncio
    async def test_call_later_runs_on_loop(self):
        """One-shot timers fire on the running loop."""
        scheduler = AsyncioScheduler()
        done = asyncio.Event()

        scheduler.call_later(0.01, done.set)

        await asyncio.wait_for(done.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_repeating_and_cancel(self):
        """Repeating timers keep firing until cancelled."""
        scheduler = AsyncioScheduler()
        ticks = []

        handle = scheduler.call_repeating(0.01, lambda: ticks.append(1))
        await asyncio.sleep(0.1)
        handle.cancel()
        count = len(ticks)
        await asyncio.sleep(0.05)

        assert count >= 2
        assert len(ticks) == count

    @pytest.mark.asyncio
    async def test_cancel_from_worker_thread(self):
        """Cancellation from another thread is marshalled onto the loop."""
        scheduler = AsyncioScheduler()
        fired = []

        handle = scheduler.call_later(0.05, lambda: fired.append(1))
        await asyncio.get_running_loop().run_in_executor(None, handle.cancel)
        await asyncio.sleep(0.1)

        assert fired == []
