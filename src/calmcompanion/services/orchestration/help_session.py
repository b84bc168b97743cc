"""
Help Session Orchestration

Ties one user's request for help to its assessment, intervention
track, narration channel and companion conversation.

Lifecycle:
    IDLE --request_help()--> ASSESSING --last answer--> INTERVENING
      ^                          |                          |
      +----cancel_assessment()---+------exit_intervention()-+

HelpSessionManager keeps the open sessions by id and builds their
collaborators from settings.
"""

import threading
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional, Sequence, TypeVar
from uuid import uuid4

from calmcompanion.config.logging_config import get_logger
from calmcompanion.config.settings import Settings
from calmcompanion.domain.enums.distress_level import DistressLevel
from calmcompanion.domain.exceptions import InvalidStateError
from calmcompanion.domain.models.assessment import AssessmentStatus, CurrentQuestion, Question
from calmcompanion.infrastructure.metrics.prometheus_metrics import (
    track_assessment_completed,
    track_help_session_closed,
    track_help_session_started,
)
from calmcompanion.services.assessment.severity_assessment import (
    DEFAULT_QUESTIONS,
    SeverityAssessment,
)
from calmcompanion.services.conversation.companion import CompanionConversation
from calmcompanion.services.conversation.responder import KeywordResponder, ResponderService
from calmcompanion.services.escalation.contact_store import (
    ContactStore,
    InMemoryContactStore,
    JsonContactStore,
)
from calmcompanion.services.escalation.notifier import LoggingNotifier, Notifier, WebhookNotifier
from calmcompanion.services.intervention.catalog import INTRO_SCRIPT
from calmcompanion.services.intervention.crisis_resources import CrisisResourceDirectory
from calmcompanion.services.intervention.router import InterventionRouter
from calmcompanion.services.intervention.tracks import InterventionTrackBase, TrackFactory
from calmcompanion.services.narration.coordinator import NarrationCoordinator
from calmcompanion.services.narration.narrator import Narrator, PacedNarrator
from calmcompanion.services.timing.scheduler import Scheduler

logger = get_logger(__name__)

TrackT = TypeVar("TrackT", bound=InterventionTrackBase)


class SessionStage(StrEnum):
    """Where a help session currently is."""

    IDLE = "idle"
    ASSESSING = "assessing"
    INTERVENING = "intervening"


class HelpSession:
    """
    One user's request-help flow.

    Usage:
        session = manager.create()
        session.request_help()
        session.answer("medium")
        ...
        track = session.require_track(ModerateTrack)
    """

    def __init__(
        self,
        session_id: str,
        narration: NarrationCoordinator,
        track_factory: TrackFactory,
        responder: Optional[ResponderService] = None,
        questions: Sequence[Question] = DEFAULT_QUESTIONS,
        voice_guidance: bool = True,
    ) -> None:
        self.session_id = session_id
        self.created_at = datetime.now(timezone.utc)
        self.last_active = 0.0
        self.narration = narration
        self.assessment = SeverityAssessment(questions)
        self.router = InterventionRouter(track_factory)
        self._responder = responder or KeywordResponder()
        self._voice_guidance = voice_guidance
        self._lock = threading.RLock()
        self._level: Optional[DistressLevel] = None
        self._conversation: Optional[CompanionConversation] = None
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def stage(self) -> SessionStage:
        if self.assessment.status == AssessmentStatus.IN_PROGRESS:
            return SessionStage.ASSESSING
        if self.router.active_track is not None:
            return SessionStage.INTERVENING
        return SessionStage.IDLE

    @property
    def level(self) -> Optional[DistressLevel]:
        return self._level

    @property
    def track(self) -> Optional[InterventionTrackBase]:
        return self.router.active_track

    @property
    def conversation(self) -> CompanionConversation:
        """Companion chat, created on first use for the current level."""
        with self._lock:
            if self._conversation is None:
                self._conversation = CompanionConversation(
                    self.narration,
                    responder=self._responder,
                    level=self._level,
                    speak_replies=self._voice_guidance,
                )
            return self._conversation

    def require_track(self, track_type: type[TrackT]) -> TrackT:
        """
        Get the active track if it is of track_type.

        Raises:
            InvalidStateError: If no such track is active
        """
        track = self.router.active_track
        if not isinstance(track, track_type):
            active = track.track_id.value if track else "none"
            raise InvalidStateError(
                f"Operation needs the {track_type.track_id.value} track; active track is {active}",
                state=self.stage.value,
            )
        return track

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    def request_help(self) -> CurrentQuestion:
        """Start (or restart) the assessment, leaving any active track."""
        with self._lock:
            self._require_open()
            self.router.exit()
            self._level = None
            self._conversation = None
            question = self.assessment.start()

        logger.info("Help requested", session_id=self.session_id)
        if self._voice_guidance:
            self.narration.speak(INTRO_SCRIPT)
        return question

    def answer(self, value: str) -> Optional[DistressLevel]:
        """
        Answer the current question; routes automatically on the last one.

        Returns:
            The distress level once the assessment completes, else None
        """
        with self._lock:
            self._require_open()
            level = self.assessment.answer(value)
            if level is None:
                return None

            self._level = level
            self._conversation = None

        track_assessment_completed(level.value)
        self.router.route(level)
        return level

    def back(self) -> CurrentQuestion:
        with self._lock:
            self._require_open()
            return self.assessment.back()

    def cancel_assessment(self) -> None:
        with self._lock:
            self.assessment.cancel()
        self.narration.stop()

    def exit_intervention(self) -> None:
        """Leave the active track and return to idle."""
        with self._lock:
            self.router.exit()
            self._conversation = None
        logger.info("Intervention exited", session_id=self.session_id)

    def close(self) -> None:
        """Release every timer and utterance. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.router.exit()
            self.assessment.cancel()
            self.narration.stop()
        logger.info("Help session closed", session_id=self.session_id)

    def status(self) -> dict:
        """Polling snapshot of the whole session."""
        with self._lock:
            progress = self.assessment.progress()
            current = None
            if progress.status == AssessmentStatus.IN_PROGRESS:
                current = self.assessment.current_question().to_dict()

            track = self.router.active_track
            return {
                "session_id": self.session_id,
                "stage": self.stage.value,
                "created_at": self.created_at.isoformat(),
                "assessment": {
                    **progress.to_dict(),
                    "current_question": current,
                },
                "level": self._level.value if self._level else None,
                "track": track.status() if track else None,
                "narration": {
                    "speaking": self.narration.is_speaking,
                    "available": self.narration.is_available,
                    "last_text": self.narration.last_text,
                },
            }

    def _require_open(self) -> None:
        if self._closed:
            raise InvalidStateError("Session is closed", state="closed")


class HelpSessionManager:
    """
    Registry of open help sessions.

    Contact store, notifier and crisis resources are shared by all
    sessions; each session gets its own narration channel and timers.
    Sessions left untouched past the idle timeout are closed on the
    next create() or get().
    """

    def __init__(
        self,
        settings: Settings,
        scheduler: Scheduler,
        contact_store: Optional[ContactStore] = None,
        notifier: Optional[Notifier] = None,
        responder: Optional[ResponderService] = None,
        resources: Optional[CrisisResourceDirectory] = None,
    ) -> None:
        self._settings = settings
        self._scheduler = scheduler
        self._contact_store = contact_store or self._build_contact_store(settings)
        self._notifier = notifier or self._build_notifier(settings)
        self._responder = responder or KeywordResponder()
        self._resources = resources or CrisisResourceDirectory(settings.escalation.crisis_resources_file)
        self._lock = threading.Lock()
        self._sessions: dict[str, HelpSession] = {}

        logger.info(
            "Help session manager initialized",
            notifier=self._notifier.name,
            contact_count=len(self._contact_store.list_contacts()),
            narration_enabled=settings.narration.enabled,
        )

    @property
    def contact_store(self) -> ContactStore:
        return self._contact_store

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def create(self) -> HelpSession:
        session_id = uuid4().hex
        narration = NarrationCoordinator(self._build_narrator())
        factory = TrackFactory.from_settings(
            self._settings,
            scheduler=self._scheduler,
            narration=narration,
            contact_store=self._contact_store,
            notifier=self._notifier,
            resources=self._resources.get_resources(self._settings.escalation.country_code),
        )
        session = HelpSession(
            session_id,
            narration=narration,
            track_factory=factory,
            responder=self._responder,
            voice_guidance=self._settings.narration.voice_guidance,
        )

        self.sweep_idle()
        session.last_active = self._scheduler.now()
        with self._lock:
            self._sessions[session_id] = session

        track_help_session_started()
        logger.info("Help session created", session_id=session_id)
        return session

    def get(self, session_id: str) -> Optional[HelpSession]:
        """Look up an open session and mark it active."""
        self.sweep_idle()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_active = self._scheduler.now()
        return session

    def remove(self, session_id: str) -> bool:
        """Close and forget a session. Returns False if unknown."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.close()
        track_help_session_closed()
        return True

    def sweep_idle(self) -> int:
        """Close sessions idle longer than the timeout. Returns how many."""
        timeout = self._settings.session_idle_timeout_seconds
        if timeout <= 0:
            return 0

        cutoff = self._scheduler.now() - timeout
        with self._lock:
            expired = [s for s in self._sessions.values() if s.last_active < cutoff]
            for session in expired:
                del self._sessions[session.session_id]

        for session in expired:
            session.close()
            track_help_session_closed()
        if expired:
            logger.info("Idle help sessions closed", count=len(expired), idle_timeout=timeout)
        return len(expired)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
            track_help_session_closed()

    def __len__(self) -> int:
        return len(self._sessions)

    def _build_narrator(self) -> Optional[Narrator]:
        if not self._settings.narration.enabled:
            return None
        return PacedNarrator(self._scheduler, self._settings.narration.words_per_minute)

    @staticmethod
    def _build_contact_store(settings: Settings) -> ContactStore:
        if settings.escalation.contacts_file is not None:
            return JsonContactStore(settings.escalation.contacts_file)
        return InMemoryContactStore()

    @staticmethod
    def _build_notifier(settings: Settings) -> Notifier:
        escalation = settings.escalation
        if escalation.notifier == "webhook":
            return WebhookNotifier(
                url=escalation.webhook_url,
                token=escalation.webhook_token.get_secret_value() or None,
                timeout_seconds=escalation.timeout_seconds,
                max_attempts=escalation.max_attempts,
            )
        return LoggingNotifier()
