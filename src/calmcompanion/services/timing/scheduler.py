"""
Timer Scheduling

Owned, cancellable timer handles for the timed phase engine and
the paced narrator.

ARCHITECTURE: Components never touch the event loop or the wall
clock directly. They receive a Scheduler, which keeps timing
injectable:
- AsyncioScheduler drives real sessions on the server event loop
- ManualScheduler is a virtual clock for simulations and tests
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, Optional

TimerCallback = Callable[[], None]


class TimerHandle(ABC):
    """Handle to a scheduled one-shot or repeating timer."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the timer. Idempotent; safe from any thread."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """Whether the timer was cancelled."""
        pass


class Scheduler(ABC):
    """
    Abstract timer source.

    Callbacks scheduled on one scheduler run one at a time, in due
    order, and are never reentrant.
    """

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """Run callback once after delay seconds."""
        pass

    @abstractmethod
    def call_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle:
        """Run callback every interval seconds until cancelled."""
        pass


class _AsyncioTimer(TimerHandle):
    """
    Timer armed on an asyncio loop.

    Repeating timers are re-armed at absolute due times
    (start + n * interval) so that they do not drift.
    """

    def __init__(
        self,
        scheduler: "AsyncioScheduler",
        interval: float,
        callback: TimerCallback,
        repeating: bool,
    ) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._repeating = repeating
        self._cancelled = False
        self._due: Optional[float] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        self._scheduler._submit(self._disarm)

    def _arm(self) -> None:
        if self._cancelled:
            return
        loop = self._scheduler.loop
        self._due = loop.time() + self._interval
        self._timer = loop.call_at(self._due, self._fire)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        if self._cancelled:
            return
        if self._repeating:
            self._due += self._interval
            self._timer = self._scheduler.loop.call_at(self._due, self._fire)
        else:
            self._timer = None
            self._cancelled = True
        self._callback()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Timers may be created or cancelled from worker threads; the
    work is marshalled onto the loop with call_soon_threadsafe.
    Callbacks always run on the loop thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Initialize scheduler.

        Args:
            loop: Event loop to use; defaults to the running loop
        """
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        timer = _AsyncioTimer(self, max(0.0, delay), callback, repeating=False)
        self._submit(timer._arm)
        return timer

    def call_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Repeating interval must be positive")
        timer = _AsyncioTimer(self, interval, callback, repeating=True)
        self._submit(timer._arm)
        return timer

    def _submit(self, fn: Callable[[], None]) -> None:
        if self._on_loop_thread():
            fn()
        else:
            self._loop.call_soon_threadsafe(fn)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False


class _ManualTimer(TimerHandle):
    def __init__(self, callback: TimerCallback, interval_us: int, repeating: bool) -> None:
        self.callback = callback
        self.interval_us = interval_us
        self.repeating = repeating
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualScheduler(Scheduler):
    """
    Deterministic virtual clock.

    Time only moves when advance() is called. Due times are kept in
    integer microseconds so that, for example, 140 ticks of 0.1 s
    land exactly on 14 s. Timers due at the same instant fire in
    the order they were (re)armed.

    Usage:
        scheduler = ManualScheduler()
        engine = TimedPhaseEngine(scheduler)
        ...
        scheduler.advance(14)
    """

    RESOLUTION = 1_000_000

    def __init__(self) -> None:
        self._now_us = 0
        self._queue: list[tuple[int, int, _ManualTimer]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now_us / self.RESOLUTION

    @property
    def pending(self) -> int:
        """Number of live timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        delay_us = max(0, round(delay * self.RESOLUTION))
        timer = _ManualTimer(callback, delay_us, repeating=False)
        self._push(timer, self._now_us + delay_us)
        return timer

    def call_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle:
        interval_us = round(interval * self.RESOLUTION)
        if interval_us <= 0:
            raise ValueError("Repeating interval must be positive")
        timer = _ManualTimer(callback, interval_us, repeating=True)
        self._push(timer, self._now_us + interval_us)
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        target = self._now_us + round(seconds * self.RESOLUTION)

        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue

            self._now_us = due
            if timer.repeating:
                self._push(timer, due + timer.interval_us)
            else:
                timer.cancel()
            timer.callback()

        self._now_us = target

    def _push(self, timer: _ManualTimer, due_us: int) -> None:
        heapq.heappush(self._queue, (due_us, next(self._sequence), timer))
