"""
Intervention Tracks

One track per distress level. A track owns the exercises and
sub-workflows of its flow and shares the session's single narration
channel.

Track content:
- Mild: self-care tips and a short breathing exercise
- Moderate: breathing, grounding and professional hotlines
- Severe: emergency-contact escalation and crisis resources
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.config.settings import Settings
from calmcompanion.domain.enums.distress_level import InterventionTrack
from calmcompanion.domain.exceptions import InvalidInputError
from calmcompanion.domain.models.escalation import EscalationPhase, EscalationState
from calmcompanion.domain.models.exercise import SelfCareTip
from calmcompanion.infrastructure.metrics.prometheus_metrics import (
    track_track_activated,
    track_track_deactivated,
)
from calmcompanion.services.escalation.contact_store import ContactStore
from calmcompanion.services.escalation.escalation_workflow import EscalationWorkflow
from calmcompanion.services.escalation.notifier import Notifier
from calmcompanion.services.intervention.catalog import (
    BREATHING_PATTERNS,
    ESCALATION_SCRIPTS,
    MILD_WELCOME_SCRIPT,
    MODERATE_WELCOME_SCRIPT,
    SELF_CARE_TIPS,
    hotline_script,
)
from calmcompanion.services.intervention.crisis_resources import (
    CrisisResource,
    JurisdictionResources,
)
from calmcompanion.services.intervention.exercises import BreathingExercise, GroundingExercise
from calmcompanion.services.narration.coordinator import NarrationCoordinator
from calmcompanion.services.timing.scheduler import Scheduler

logger = get_logger(__name__)


class InterventionTrackBase(ABC):
    """
    Common track lifecycle.

    activate() announces the track; teardown() silences narration and
    releases every timer the track owns. A torn-down track is not
    reused; the router builds a fresh one per activation.
    """

    track_id: InterventionTrack

    def __init__(self, narration: NarrationCoordinator, voice_guidance: bool = True) -> None:
        self._narration = narration
        self._voice_guidance = voice_guidance
        self._active = False

    @property
    @abstractmethod
    def welcome_text(self) -> str:
        """Text announced on activation."""
        pass

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def voice_guidance(self) -> bool:
        return self._voice_guidance

    def current_script(self) -> str:
        """Text replayed by toggle_speech()."""
        return self.welcome_text

    def activate(self) -> None:
        self._active = True
        track_track_activated(self.track_id.value)
        logger.info("Intervention track activated", track=self.track_id.value)
        if self._voice_guidance:
            self._narration.speak(self.welcome_text)

    def teardown(self) -> None:
        if not self._active:
            return
        self._active = False
        self._narration.stop()
        self._release()
        track_track_deactivated(self.track_id.value)
        logger.info("Intervention track torn down", track=self.track_id.value)

    def toggle_speech(self) -> bool:
        """
        Stop narration if speaking, otherwise replay the current script.

        Returns:
            Whether narration is now speaking
        """
        if self._narration.is_speaking:
            self._narration.stop()
            return False
        return self._narration.speak(self.current_script())

    def status(self) -> dict:
        return {
            "track": self.track_id.value,
            "active": self._active,
            "welcome_text": self.welcome_text,
            "speaking": self._narration.is_speaking,
            "narration_available": self._narration.is_available,
        }

    def _release(self) -> None:
        """Release owned resources."""


class MildTrack(InterventionTrackBase):
    """Self-care tips with an optional breathing exercise."""

    track_id = InterventionTrack.MILD

    def __init__(
        self,
        narration: NarrationCoordinator,
        breathing: BreathingExercise,
        tips: tuple[SelfCareTip, ...] = SELF_CARE_TIPS,
        voice_guidance: bool = True,
    ) -> None:
        super().__init__(narration, voice_guidance)
        self.breathing = breathing
        self._tips = tips
        self._tip_index = 0

    @property
    def welcome_text(self) -> str:
        return MILD_WELCOME_SCRIPT

    @property
    def tip(self) -> SelfCareTip:
        return self._tips[self._tip_index]

    @property
    def tip_index(self) -> int:
        return self._tip_index

    def current_script(self) -> str:
        return self.tip.voice_script

    def next_tip(self) -> SelfCareTip:
        """Advance to the next tip, wrapping to the first."""
        self._tip_index = (self._tip_index + 1) % len(self._tips)
        self._on_tip_changed()
        return self.tip

    def previous_tip(self) -> SelfCareTip:
        self._tip_index = (self._tip_index - 1) % len(self._tips)
        self._on_tip_changed()
        return self.tip

    def speak_tip(self) -> bool:
        return self._narration.speak(self.tip.voice_script)

    def status(self) -> dict:
        return {
            **super().status(),
            "tip_index": self._tip_index,
            "tip_count": len(self._tips),
            "tip": self.tip.to_dict(),
            "breathing": self.breathing.status(),
        }

    def _on_tip_changed(self) -> None:
        if self._voice_guidance:
            self.speak_tip()
        else:
            self._narration.stop()

    def _release(self) -> None:
        self.breathing.dispose()


class ModerateTrack(InterventionTrackBase):
    """Breathing, grounding and professional hotlines."""

    track_id = InterventionTrack.MODERATE

    def __init__(
        self,
        narration: NarrationCoordinator,
        breathing: BreathingExercise,
        grounding: GroundingExercise,
        resources: JurisdictionResources,
        voice_guidance: bool = True,
    ) -> None:
        super().__init__(narration, voice_guidance)
        self.breathing = breathing
        self.grounding = grounding
        self.resources = resources
        self._selected_hotline: Optional[int] = None

    @property
    def welcome_text(self) -> str:
        return MODERATE_WELCOME_SCRIPT

    @property
    def hotlines(self) -> list[CrisisResource]:
        return self.resources.hotlines()

    @property
    def selected_hotline(self) -> Optional[CrisisResource]:
        if self._selected_hotline is None:
            return None
        return self.hotlines[self._selected_hotline]

    def select_hotline(self, index: int) -> CrisisResource:
        """
        Select a hotline and read it out, number digit by digit.

        Raises:
            InvalidInputError: If index is out of range
        """
        hotlines = self.hotlines
        if not 0 <= index < len(hotlines):
            raise InvalidInputError(f"No hotline at index {index}", value=index)

        self._selected_hotline = index
        hotline = hotlines[index]
        if self._voice_guidance:
            self._narration.speak(hotline_script(hotline.name, hotline.description, hotline.contact))
        return hotline

    def status(self) -> dict:
        selected = self.selected_hotline
        return {
            **super().status(),
            "hotlines": [h.to_dict() for h in self.hotlines],
            "selected_hotline": selected.to_dict() if selected else None,
            "breathing": self.breathing.status(),
            "grounding": self.grounding.status(),
        }

    def _release(self) -> None:
        self.breathing.dispose()
        self.grounding.reset()


class SevereTrack(InterventionTrackBase):
    """
    Emergency-contact escalation with crisis resources.

    Every escalation phase change is narrated when voice guidance is on.
    """

    track_id = InterventionTrack.SEVERE

    def __init__(
        self,
        narration: NarrationCoordinator,
        escalation: EscalationWorkflow,
        resources: JurisdictionResources,
        voice_guidance: bool = True,
    ) -> None:
        super().__init__(narration, voice_guidance)
        self.escalation = escalation
        self.resources = resources
        self._lock = threading.Lock()
        self._last_phase = escalation.phase
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def welcome_text(self) -> str:
        return ESCALATION_SCRIPTS[EscalationPhase.SELECTING]

    def current_script(self) -> str:
        return ESCALATION_SCRIPTS[self.escalation.phase]

    def activate(self) -> None:
        self.escalation.reset()
        with self._lock:
            self._last_phase = EscalationPhase.SELECTING
        self._unsubscribe = self.escalation.subscribe(self._on_escalation_changed)
        super().activate()

    def status(self) -> dict:
        return {
            **super().status(),
            "escalation": self.escalation.state.to_dict(),
            "contacts": [c.to_dict() for c in self.escalation.contacts()],
            "last_failure": self.escalation.last_failure.to_dict() if self.escalation.last_failure else None,
            "resources": self.resources.to_dict(),
        }

    def _on_escalation_changed(self, state: EscalationState) -> None:
        with self._lock:
            if state.phase == self._last_phase:
                return
            self._last_phase = state.phase

        logger.info("Escalation phase changed", phase=state.phase.value)
        if self._voice_guidance:
            self._narration.speak(ESCALATION_SCRIPTS[state.phase])

    def _release(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.escalation.reset()


class TrackFactory:
    """
    Builds a fresh track for a track id.

    Holds the session-scoped collaborators every track needs.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        narration: NarrationCoordinator,
        contact_store: ContactStore,
        notifier: Notifier,
        resources: JurisdictionResources,
        exercise_duration_seconds: int = 120,
        phase_tick_seconds: float = 0.1,
        voice_guidance: bool = True,
        default_location_hint: Optional[str] = None,
    ) -> None:
        self._scheduler = scheduler
        self._narration = narration
        self._contact_store = contact_store
        self._notifier = notifier
        self._resources = resources
        self._duration = exercise_duration_seconds
        self._phase_tick = phase_tick_seconds
        self._voice_guidance = voice_guidance
        self._default_location_hint = default_location_hint

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        scheduler: Scheduler,
        narration: NarrationCoordinator,
        contact_store: ContactStore,
        notifier: Notifier,
        resources: JurisdictionResources,
    ) -> "TrackFactory":
        return cls(
            scheduler=scheduler,
            narration=narration,
            contact_store=contact_store,
            notifier=notifier,
            resources=resources,
            exercise_duration_seconds=settings.timing.exercise_duration_seconds,
            phase_tick_seconds=settings.timing.phase_tick_seconds,
            voice_guidance=settings.narration.voice_guidance,
            default_location_hint=settings.escalation.default_location_hint,
        )

    def __call__(self, track_id: InterventionTrack) -> InterventionTrackBase:
        if track_id == InterventionTrack.MILD:
            return MildTrack(
                self._narration,
                breathing=self._breathing(BREATHING_PATTERNS[:1]),
                voice_guidance=self._voice_guidance,
            )
        if track_id == InterventionTrack.MODERATE:
            return ModerateTrack(
                self._narration,
                breathing=self._breathing(BREATHING_PATTERNS),
                grounding=GroundingExercise(narration=self._narration),
                resources=self._resources,
                voice_guidance=self._voice_guidance,
            )
        return SevereTrack(
            self._narration,
            escalation=EscalationWorkflow(
                self._contact_store,
                self._notifier,
                default_location_hint=self._default_location_hint,
            ),
            resources=self._resources,
            voice_guidance=self._voice_guidance,
        )

    def _breathing(self, patterns) -> BreathingExercise:
        return BreathingExercise(
            self._scheduler,
            self._narration,
            patterns=patterns,
            duration_seconds=self._duration,
            phase_tick_seconds=self._phase_tick,
            voice_guidance=self._voice_guidance,
        )
