"""
Guided Exercises

Breathing (timed, cyclic) and grounding (step-based) exercises used
by the intervention tracks.
"""

import threading
from typing import Callable, Optional, Sequence

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import InvalidInputError, InvalidStateError
from calmcompanion.domain.models.exercise import (
    BreathingPattern,
    EngineStatus,
    GroundingTechnique,
    PhaseSnapshot,
)
from calmcompanion.infrastructure.metrics.prometheus_metrics import track_exercise_completed
from calmcompanion.services.intervention.catalog import (
    BREATHING_COMPLETE_SCRIPT,
    BREATHING_PATTERNS,
    GROUNDING_TECHNIQUES,
    PHASE_INSTRUCTIONS,
    format_clock,
)
from calmcompanion.services.narration.coordinator import NarrationCoordinator
from calmcompanion.services.timing.phase_engine import TimedPhaseEngine
from calmcompanion.services.timing.scheduler import Scheduler

logger = get_logger(__name__)


class BreathingExercise:
    """
    Paced breathing over a TimedPhaseEngine.

    Every preset runs for the same total duration; the pattern only
    changes the phase lengths and the cycle counter. With voice
    guidance on, each new phase is announced on the narration channel.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        narration: NarrationCoordinator,
        patterns: Sequence[BreathingPattern] = BREATHING_PATTERNS,
        duration_seconds: int = 120,
        phase_tick_seconds: float = 0.1,
        voice_guidance: bool = True,
    ) -> None:
        if not patterns:
            raise ValueError("At least one breathing pattern is required")

        self._patterns = tuple(patterns)
        self._duration = duration_seconds
        self._narration = narration
        self._voice_guidance = voice_guidance
        self._lock = threading.RLock()
        self._selected = 0
        self._announced: Optional[tuple[str, int]] = None
        self._completion_listeners: list[Callable[[], None]] = []

        self._engine = TimedPhaseEngine(scheduler, phase_tick_seconds, name="breathing")
        self._engine.subscribe(self._on_snapshot)
        self._engine.on_complete(self._on_engine_complete)
        self._configure()

    @property
    def engine(self) -> TimedPhaseEngine:
        return self._engine

    @property
    def patterns(self) -> tuple[BreathingPattern, ...]:
        return self._patterns

    @property
    def selected_index(self) -> int:
        return self._selected

    @property
    def pattern(self) -> BreathingPattern:
        return self._patterns[self._selected]

    @property
    def voice_guidance(self) -> bool:
        return self._voice_guidance

    @voice_guidance.setter
    def voice_guidance(self, enabled: bool) -> None:
        self._voice_guidance = enabled

    def select_pattern(self, index: int) -> BreathingPattern:
        """
        Switch preset. Indexes wrap around the preset list.

        Raises:
            InvalidStateError: While the exercise is running or paused
        """
        with self._lock:
            if self._engine.status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
                raise InvalidStateError(
                    "Cannot change pattern during an active exercise",
                    state=self._engine.status.value,
                )
            self._selected = index % len(self._patterns)
            self._configure()
            logger.debug("Breathing pattern selected", pattern=self.pattern.title)
            return self.pattern

    def start(self) -> PhaseSnapshot:
        """Start, or resume when paused. A completed run starts over."""
        with self._lock:
            if self._engine.status == EngineStatus.COMPLETED:
                self._announced = None
                self._engine.reset()
        return self._engine.start()

    def pause(self) -> PhaseSnapshot:
        return self._engine.pause()

    def resume(self) -> PhaseSnapshot:
        return self._engine.resume()

    def reset(self) -> PhaseSnapshot:
        with self._lock:
            self._announced = None
        snapshot = self._engine.reset()
        self._narration.stop()
        return snapshot

    def dispose(self) -> None:
        self._engine.dispose()
        with self._lock:
            self._completion_listeners.clear()

    def on_complete(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a callback fired when the countdown finishes."""
        with self._lock:
            self._completion_listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._completion_listeners:
                    self._completion_listeners.remove(listener)

        return unsubscribe

    def instruction(self, phase: Optional[str] = None) -> str:
        phase = phase or self._engine.current_phase
        return PHASE_INSTRUCTIONS.get(phase or "", "")

    def status(self) -> dict:
        snapshot = self._engine.snapshot()
        return {
            **snapshot.to_dict(),
            "pattern": self.pattern.to_dict(),
            "selected_index": self._selected,
            "patterns": [p.title for p in self._patterns],
            "instruction": self.instruction(snapshot.phase),
            "time_display": format_clock(snapshot.remaining_seconds),
            "voice_guidance": self._voice_guidance,
        }

    def _configure(self) -> None:
        pattern = self.pattern
        self._engine.configure(pattern.phase_durations(), pattern.cycles, self._duration)
        self._announced = None

    def _on_snapshot(self, snapshot: PhaseSnapshot) -> None:
        if snapshot.status != EngineStatus.RUNNING:
            return

        key = (snapshot.phase, snapshot.current_cycle)
        with self._lock:
            if key == self._announced:
                return
            self._announced = key
            speak = self._voice_guidance

        if speak:
            self._narration.speak(self.instruction(snapshot.phase))

    def _on_engine_complete(self) -> None:
        track_exercise_completed("breathing")
        logger.info("Breathing exercise completed", pattern=self.pattern.title)

        with self._lock:
            speak = self._voice_guidance
            listeners = list(self._completion_listeners)

        if speak:
            self._narration.speak(BREATHING_COMPLETE_SCRIPT)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Breathing completion listener failed")


class GroundingExercise:
    """
    Step-through grounding techniques.

    Advancing past the last step completes the technique, records it
    as completed and returns to the technique list.
    """

    def __init__(
        self,
        techniques: Sequence[GroundingTechnique] = GROUNDING_TECHNIQUES,
        narration: Optional[NarrationCoordinator] = None,
        voice_guidance: bool = False,
    ) -> None:
        self._techniques = {technique.id: technique for technique in techniques}
        self._narration = narration
        self._voice_guidance = voice_guidance
        self._lock = threading.RLock()
        self._active: Optional[GroundingTechnique] = None
        self._step = 0
        self._completed: list[str] = []
        self._completion_listeners: list[Callable[[str], None]] = []

    @property
    def techniques(self) -> list[GroundingTechnique]:
        return list(self._techniques.values())

    @property
    def active(self) -> Optional[GroundingTechnique]:
        return self._active

    @property
    def current_step(self) -> int:
        return self._step

    @property
    def completed(self) -> list[str]:
        """Ids of techniques completed in this session."""
        return list(self._completed)

    @property
    def progress(self) -> float:
        if self._active is None:
            return 0.0
        return (self._step + 1) / len(self._active.steps)

    def begin(self, technique_id: str) -> GroundingTechnique:
        """
        Start a technique at its first step.

        Raises:
            InvalidInputError: If the technique id is unknown
        """
        technique = self._techniques.get(technique_id)
        if technique is None:
            raise InvalidInputError(f"Unknown grounding technique '{technique_id}'", value=technique_id)

        with self._lock:
            self._active = technique
            self._step = 0

        self._announce()
        return technique

    def next_step(self) -> Optional[str]:
        """
        Advance one step, completing the technique after the last step.

        Returns:
            The new step text, or None when the technique completed

        Raises:
            InvalidStateError: If no technique is active
        """
        with self._lock:
            technique = self._require_active()
            if self._step < len(technique.steps) - 1:
                self._step += 1
                step_text = technique.steps[self._step]
                completed = False
            else:
                if technique.id not in self._completed:
                    self._completed.append(technique.id)
                self._active = None
                self._step = 0
                step_text = None
                completed = True
                listeners = list(self._completion_listeners)

        if not completed:
            self._announce()
            return step_text

        track_exercise_completed("grounding")
        logger.info("Grounding technique completed", technique=technique.id)
        for listener in listeners:
            try:
                listener(technique.name)
            except Exception:
                logger.exception("Grounding completion listener failed")
        return None

    def previous_step(self) -> str:
        """Go back one step; stays on the first step."""
        with self._lock:
            technique = self._require_active()
            if self._step > 0:
                self._step -= 1
            step_text = technique.steps[self._step]

        self._announce()
        return step_text

    def reset(self) -> None:
        """Leave the active technique without completing it."""
        with self._lock:
            self._active = None
            self._step = 0

    def on_complete(self, listener: Callable[[str], None]) -> None:
        with self._lock:
            self._completion_listeners.append(listener)

    def status(self) -> dict:
        with self._lock:
            active = self._active
            return {
                "techniques": [t.to_dict() for t in self._techniques.values()],
                "active": active.to_dict() if active else None,
                "current_step": self._step if active else None,
                "step_text": active.steps[self._step] if active else None,
                "progress": round(self.progress, 3),
                "completed": list(self._completed),
            }

    def _require_active(self) -> GroundingTechnique:
        if self._active is None:
            raise InvalidStateError("No grounding technique in progress")
        return self._active

    def _announce(self) -> None:
        if not self._voice_guidance or self._narration is None:
            return
        with self._lock:
            if self._active is None:
                return
            text = self._active.steps[self._step]
        self._narration.speak(text)
