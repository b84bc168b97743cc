"""
Timed Phase Engine

Generic cyclic countdown driver for guided exercises such as
inhale/hold/exhale breathing.

Two independent periodic ticks run while the engine is active:
- a 1 Hz countdown, the only authority for "exercise complete"
- a sub-second phase tick that advances phases and cycles

After the last phase of a cycle the cycle number increments up to
cycle_count and then wraps back to 1. Completion is decided by the
countdown alone, so cycles may repeat past cycle_count while time
remains.

CONCURRENCY: State is guarded by one lock. Every arm/disarm bumps a
generation counter, so a tick scheduled by an earlier start() is
ignored even if its timer fires after pause() or reset().

Pause keeps the part of the current second already counted down, so
rapid pause/resume cycles still drain the countdown.
"""

import threading
from typing import Callable, Mapping, Optional, Sequence, Union

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import InvalidConfigError, InvalidStateError
from calmcompanion.domain.models.exercise import (
    EngineStatus,
    Phase,
    PhaseConfig,
    PhaseSnapshot,
    PhaseState,
)
from calmcompanion.services.timing.scheduler import Scheduler, TimerHandle

logger = get_logger(__name__)

SnapshotListener = Callable[[PhaseSnapshot], None]
CompletionListener = Callable[[], None]
PhaseDurations = Union[Mapping[str, float], Sequence[tuple[str, float]]]


def build_phase_config(
    phase_durations: PhaseDurations,
    cycle_count: int,
    total_duration_seconds: int,
) -> PhaseConfig:
    """
    Validate and build an immutable phase configuration.

    Args:
        phase_durations: Ordered (name, seconds) pairs or an ordered mapping
        cycle_count: Number of cycles before the counter wraps
        total_duration_seconds: Countdown length

    Returns:
        PhaseConfig

    Raises:
        InvalidConfigError: On empty phases or non-positive values
    """
    items = list(phase_durations.items()) if isinstance(phase_durations, Mapping) else list(phase_durations)

    if not items:
        raise InvalidConfigError("At least one phase is required")

    phases = []
    for name, duration in items:
        if not name:
            raise InvalidConfigError("Phase names must be non-empty")
        if duration <= 0:
            raise InvalidConfigError(f"Phase '{name}' must have a positive duration, got {duration}")
        phases.append(Phase(name=name, duration_seconds=float(duration)))

    if cycle_count < 1:
        raise InvalidConfigError(f"cycle_count must be at least 1, got {cycle_count}")
    if total_duration_seconds <= 0:
        raise InvalidConfigError(
            f"total_duration_seconds must be positive, got {total_duration_seconds}"
        )

    return PhaseConfig(
        phases=tuple(phases),
        cycle_count=cycle_count,
        total_duration_seconds=int(total_duration_seconds),
    )


class TimedPhaseEngine:
    """
    Drives a repeating sequence of named phases.

    Usage:
        engine = TimedPhaseEngine(scheduler)
        engine.configure([("inhale", 4), ("hold", 4), ("exhale", 6)], 5, 120)
        engine.subscribe(render)
        engine.on_complete(show_done)
        engine.start()
    """

    COUNTDOWN_INTERVAL_SECONDS = 1.0

    def __init__(
        self,
        scheduler: Scheduler,
        phase_tick_seconds: float = 0.1,
        name: str = "exercise",
    ) -> None:
        """
        Initialize engine.

        Args:
            scheduler: Timer source owning the periodic ticks
            phase_tick_seconds: Resolution of phase progress
            name: Label used in logs
        """
        if phase_tick_seconds <= 0 or phase_tick_seconds > self.COUNTDOWN_INTERVAL_SECONDS:
            raise InvalidConfigError("phase_tick_seconds must be in (0, 1]")

        self._scheduler = scheduler
        self._phase_tick = phase_tick_seconds
        self._name = name
        self._lock = threading.RLock()

        self._config: Optional[PhaseConfig] = None
        self._phase_ticks: tuple[int, ...] = ()
        self._state = PhaseState()
        self._status = EngineStatus.UNCONFIGURED

        self._generation = 0
        self._countdown_timer: Optional[TimerHandle] = None
        self._phase_timer: Optional[TimerHandle] = None
        self._countdown_anchor = 0.0
        self._countdown_carry = 0.0

        self._listeners: list[SnapshotListener] = []
        self._completion_listeners: list[CompletionListener] = []

    # ------------------------------------------------------------------
    # Configuration and lifecycle
    # ------------------------------------------------------------------

    @property
    def config(self) -> Optional[PhaseConfig]:
        return self._config

    def configure(
        self,
        phase_durations: PhaseDurations,
        cycle_count: int,
        total_duration_seconds: int,
    ) -> PhaseConfig:
        """
        Set the phases, cycle count and total duration.

        Leaves the engine stopped at the first phase of cycle 1.

        Raises:
            InvalidConfigError: On a malformed configuration
            InvalidStateError: If the engine is running or paused
        """
        config = build_phase_config(phase_durations, cycle_count, total_duration_seconds)

        with self._lock:
            if self._status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
                raise InvalidStateError(
                    "Cannot reconfigure an active exercise; reset it first",
                    state=self._status.value,
                )
            self._config = config
            self._phase_ticks = tuple(
                max(1, round(phase.duration_seconds / self._phase_tick))
                for phase in config.phases
            )
            self._state = PhaseState()
            self._countdown_carry = 0.0
            self._status = EngineStatus.READY
            snapshot = self._snapshot()

        logger.debug(
            "Phase engine configured",
            engine=self._name,
            phases=list(config.phase_names),
            cycle_count=config.cycle_count,
            total_duration_seconds=config.total_duration_seconds,
        )
        self._emit(snapshot)
        return config

    def start(self) -> PhaseSnapshot:
        """
        Start ticking. Idempotent while running; resumes when paused.

        Raises:
            InvalidStateError: If unconfigured or already completed
        """
        with self._lock:
            if self._status == EngineStatus.RUNNING:
                return self._snapshot()
            if self._status == EngineStatus.UNCONFIGURED:
                raise InvalidStateError("Engine has not been configured", state=self._status.value)
            if self._status == EngineStatus.COMPLETED:
                raise InvalidStateError("Exercise already completed; reset it first", state=self._status.value)

            self._arm()
            self._status = EngineStatus.RUNNING
            snapshot = self._snapshot()

        logger.info("Phase engine started", engine=self._name, remaining_seconds=snapshot.remaining_seconds)
        self._emit(snapshot)
        return snapshot

    def pause(self) -> PhaseSnapshot:
        """
        Stop ticking while keeping the phase position. No-op when paused.

        Raises:
            InvalidStateError: If the engine is not running
        """
        with self._lock:
            if self._status == EngineStatus.PAUSED:
                return self._snapshot()
            if self._status != EngineStatus.RUNNING:
                raise InvalidStateError("Only a running exercise can be paused", state=self._status.value)

            self._countdown_carry = self._countdown_elapsed()
            self._disarm()
            self._status = EngineStatus.PAUSED
            snapshot = self._snapshot()

        logger.info("Phase engine paused", engine=self._name, phase=snapshot.phase)
        self._emit(snapshot)
        return snapshot

    def resume(self) -> PhaseSnapshot:
        """
        Continue from the paused position. No-op while running.

        Raises:
            InvalidStateError: If the engine is not paused
        """
        with self._lock:
            if self._status == EngineStatus.RUNNING:
                return self._snapshot()
            if self._status != EngineStatus.PAUSED:
                raise InvalidStateError("Only a paused exercise can be resumed", state=self._status.value)

            self._arm()
            self._status = EngineStatus.RUNNING
            snapshot = self._snapshot()

        logger.info("Phase engine resumed", engine=self._name, phase=snapshot.phase)
        self._emit(snapshot)
        return snapshot

    def reset(self) -> PhaseSnapshot:
        """Stop and return to the first phase of cycle 1 with full duration."""
        with self._lock:
            self._disarm()
            self._state = PhaseState()
            self._countdown_carry = 0.0
            self._status = EngineStatus.READY if self._config else EngineStatus.UNCONFIGURED
            snapshot = self._snapshot()

        logger.debug("Phase engine reset", engine=self._name)
        self._emit(snapshot)
        return snapshot

    def dispose(self) -> None:
        """Cancel timers and drop all listeners."""
        with self._lock:
            self._disarm()
            if self._status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
                self._status = EngineStatus.READY
            self._listeners.clear()
            self._completion_listeners.clear()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status == EngineStatus.RUNNING

    @property
    def current_phase(self) -> Optional[str]:
        return self.snapshot().phase

    @property
    def phase_progress(self) -> float:
        return self.snapshot().phase_progress

    @property
    def current_cycle(self) -> int:
        return self._state.current_cycle

    @property
    def remaining_seconds(self) -> int:
        return self.snapshot().remaining_seconds

    def snapshot(self) -> PhaseSnapshot:
        with self._lock:
            return self._snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Receive a snapshot after every state change and tick.

        Returns:
            Callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def on_complete(self, listener: CompletionListener) -> Callable[[], None]:
        """Register a callback fired when the countdown reaches zero."""
        with self._lock:
            self._completion_listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._completion_listeners:
                    self._completion_listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        self._disarm()
        generation = self._generation
        carry = self._countdown_carry
        self._countdown_carry = 0.0
        self._countdown_anchor = self._scheduler.now() - carry
        self._countdown_timer = self._scheduler.call_later(
            self.COUNTDOWN_INTERVAL_SECONDS - carry,
            lambda: self._start_countdown(generation),
        )
        self._phase_timer = self._scheduler.call_repeating(
            self._phase_tick,
            lambda: self._on_phase_tick(generation),
        )

    def _disarm(self) -> None:
        self._generation += 1
        for timer in (self._countdown_timer, self._phase_timer):
            if timer is not None:
                timer.cancel()
        self._countdown_timer = None
        self._phase_timer = None

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self._status != EngineStatus.RUNNING

    def _countdown_elapsed(self) -> float:
        elapsed = self._scheduler.now() - self._countdown_anchor
        return min(max(0.0, elapsed), self.COUNTDOWN_INTERVAL_SECONDS)

    def _start_countdown(self, generation: int) -> None:
        # First, possibly shortened, second is done; continue at 1 Hz
        with self._lock:
            if self._is_stale(generation):
                return
            self._countdown_timer = self._scheduler.call_repeating(
                self.COUNTDOWN_INTERVAL_SECONDS,
                lambda: self._on_countdown_tick(generation),
            )
        self._on_countdown_tick(generation)

    def _on_countdown_tick(self, generation: int) -> None:
        with self._lock:
            if self._is_stale(generation):
                return

            self._countdown_anchor = self._scheduler.now()
            self._state.total_elapsed_seconds += 1
            completed = self._state.total_elapsed_seconds >= self._config.total_duration_seconds
            if completed:
                self._disarm()
                self._status = EngineStatus.COMPLETED
            snapshot = self._snapshot()
            completion_listeners = list(self._completion_listeners) if completed else []

        self._emit(snapshot)

        if completed:
            logger.info(
                "Phase engine completed",
                engine=self._name,
                cycle=snapshot.current_cycle,
                phase=snapshot.phase,
            )
            for listener in completion_listeners:
                self._notify(listener)

    def _on_phase_tick(self, generation: int) -> None:
        with self._lock:
            if self._is_stale(generation):
                return

            state = self._state
            state.phase_ticks += 1

            if state.phase_ticks >= self._phase_ticks[state.phase_index]:
                state.phase_ticks = 0
                state.phase_index += 1
                if state.phase_index >= len(self._config.phases):
                    state.phase_index = 0
                    if state.current_cycle >= self._config.cycle_count:
                        state.current_cycle = 1
                    else:
                        state.current_cycle += 1

            snapshot = self._snapshot()

        self._emit(snapshot)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot(self) -> PhaseSnapshot:
        config = self._config
        state = self._state

        if config is None:
            return PhaseSnapshot(
                status=self._status,
                phase=None,
                phase_progress=0.0,
                elapsed_in_phase=0.0,
                current_cycle=state.current_cycle,
                cycle_count=0,
                remaining_seconds=0,
                total_elapsed_seconds=0,
            )

        phase_ticks = self._phase_ticks[state.phase_index]
        return PhaseSnapshot(
            status=self._status,
            phase=config.phases[state.phase_index].name,
            phase_progress=min(1.0, max(0.0, state.phase_ticks / phase_ticks)),
            elapsed_in_phase=state.phase_ticks * self._phase_tick,
            current_cycle=state.current_cycle,
            cycle_count=config.cycle_count,
            remaining_seconds=max(0, config.total_duration_seconds - state.total_elapsed_seconds),
            total_elapsed_seconds=state.total_elapsed_seconds,
        )

    def _emit(self, snapshot: PhaseSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self._notify(listener, snapshot)

    def _notify(self, listener: Callable, *args) -> None:
        try:
            listener(*args)
        except Exception:
            logger.exception("Phase engine listener failed", engine=self._name)
