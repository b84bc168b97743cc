"""Timer scheduling and the timed phase engine."""

from calmcompanion.services.timing.phase_engine import TimedPhaseEngine, build_phase_config
from calmcompanion.services.timing.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    Scheduler,
    TimerHandle,
)

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "TimedPhaseEngine",
    "TimerHandle",
    "build_phase_config",
]
