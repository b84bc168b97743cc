"""
Guided Exercise Domain Models

Configuration and state of cyclic timed exercises (breathing) and
the static definitions of step-based exercises (grounding, tips).
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class EngineStatus(StrEnum):
    """Timed phase engine lifecycle states."""

    UNCONFIGURED = "unconfigured"
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Phase:
    """A named sub-interval of a cycle."""

    name: str
    duration_seconds: float


@dataclass(frozen=True)
class PhaseConfig:
    """
    Immutable configuration of a cyclic exercise.

    Attributes:
        phases: Ordered phases of one cycle
        cycle_count: Cycles shown to the user before wrapping to 1
        total_duration_seconds: Countdown that alone decides completion
    """

    phases: tuple[Phase, ...]
    cycle_count: int
    total_duration_seconds: int

    @property
    def phase_names(self) -> tuple[str, ...]:
        return tuple(phase.name for phase in self.phases)

    @property
    def cycle_seconds(self) -> float:
        return sum(phase.duration_seconds for phase in self.phases)


@dataclass
class PhaseState:
    """
    Mutable position of one running engine.

    Owned exclusively by a TimedPhaseEngine. Elapsed values are kept
    as integer tick counts so that phase boundaries never drift.
    """

    phase_index: int = 0
    phase_ticks: int = 0
    current_cycle: int = 1
    total_elapsed_seconds: int = 0


@dataclass(frozen=True)
class PhaseSnapshot:
    """
    Observable engine state emitted on every tick.

    Attributes:
        status: Engine lifecycle state
        phase: Current phase name (None when unconfigured)
        phase_progress: Elapsed-in-phase / phase duration, clamped to [0, 1]
        elapsed_in_phase: Seconds spent in the current phase
        current_cycle: 1-based cycle number
        cycle_count: Configured cycles
        remaining_seconds: Total countdown remaining
        total_elapsed_seconds: Countdown seconds consumed
    """

    status: EngineStatus
    phase: Optional[str]
    phase_progress: float
    elapsed_in_phase: float
    current_cycle: int
    cycle_count: int
    remaining_seconds: int
    total_elapsed_seconds: int

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "phase": self.phase,
            "phase_progress": round(self.phase_progress, 3),
            "elapsed_in_phase": round(self.elapsed_in_phase, 2),
            "current_cycle": self.current_cycle,
            "cycle_count": self.cycle_count,
            "remaining_seconds": self.remaining_seconds,
            "total_elapsed_seconds": self.total_elapsed_seconds,
        }


@dataclass(frozen=True)
class BreathingPattern:
    """
    A breathing exercise preset.

    Durations are in seconds; the pattern always runs
    inhale → hold → exhale.
    """

    title: str
    description: str
    inhale_seconds: float
    hold_seconds: float
    exhale_seconds: float
    cycles: int

    def phase_durations(self) -> list[tuple[str, float]]:
        return [
            ("inhale", self.inhale_seconds),
            ("hold", self.hold_seconds),
            ("exhale", self.exhale_seconds),
        ]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "inhale_seconds": self.inhale_seconds,
            "hold_seconds": self.hold_seconds,
            "exhale_seconds": self.exhale_seconds,
            "cycles": self.cycles,
        }


@dataclass(frozen=True)
class GroundingTechnique:
    """A step-by-step grounding technique."""

    id: str
    name: str
    description: str
    steps: tuple[str, ...]
    duration: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": list(self.steps),
            "duration": self.duration,
        }


@dataclass(frozen=True)
class SelfCareTip:
    """A short self-care tip with a narration script."""

    title: str
    description: str
    voice_script: str

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description}
