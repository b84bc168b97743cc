"""
Integration Tests for Help Session Flows

Exercises complete request-help journeys through the session manager
on a virtual clock, with paced narration attached.
"""

import pytest

from calmcompanion.config import Settings
from calmcompanion.domain.enums.distress_level import DistressLevel, InterventionTrack
from calmcompanion.domain.exceptions import InvalidStateError
from calmcompanion.domain.models.escalation import EscalationPhase
from calmcompanion.domain.models.exercise import EngineStatus
from calmcompanion.services.intervention.tracks import MildTrack, ModerateTrack, SevereTrack
from calmcompanion.services.orchestration.help_session import HelpSessionManager, SessionStage
from calmcompanion.services.timing.scheduler import ManualScheduler


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def manager(test_settings, clock):
    manager = HelpSessionManager(test_settings, clock)
    yield manager
    manager.close_all()


def answer_all(session, answers):
    level = None
    for value in answers:
        level = session.answer(value)
    return level


class TestModerateFlow:
    """Request help, score moderate, breathe to completion."""

    def test_full_breathing_session(self, manager, clock):
        """The moderate track runs a two-minute exercise and cleans up on close."""
        session = manager.create()
        question = session.request_help()
        assert question.index == 0
        assert session.stage == SessionStage.ASSESSING

        level = answer_all(session, ["medium", "passive", "maybe"])

        assert level == DistressLevel.MODERATE
        assert session.stage == SessionStage.INTERVENING
        track = session.require_track(ModerateTrack)

        track.breathing.start()
        clock.advance(60)
        track.breathing.pause()
        clock.advance(30)
        assert track.breathing.engine.remaining_seconds == 60

        track.breathing.resume()
        clock.advance(60)
        assert track.breathing.engine.status == EngineStatus.COMPLETED

        manager.remove(session.session_id)
        assert clock.pending == 0
        assert manager.get(session.session_id) is None

    def test_wrong_track_operations_rejected(self, manager):
        """Moderate-only features are not available on the mild track."""
        session = manager.create()
        session.request_help()
        answer_all(session, ["low", "no", "yes"])

        assert isinstance(session.track, MildTrack)
        with pytest.raises(InvalidStateError):
            session.require_track(ModerateTrack)


class TestSevereFlow:
    """Request help, score severe, alert contacts."""

    def test_escalation_end_to_end(self, manager):
        """Selected contacts are alerted through the shared notifier."""
        session = manager.create()
        session.request_help()

        level = answer_all(session, ["high", "active", "no"])
        assert level == DistressLevel.SEVERE

        escalation = session.require_track(SevereTrack).escalation
        escalation.toggle_contact("1")
        escalation.toggle_contact("3")
        escalation.confirm()
        result = escalation.send(location_hint="dorm room")

        assert result.success
        assert escalation.phase == EscalationPhase.SENT
        assert manager.notifier.outbox[-1]["contact_ids"] == ["1", "3"]

    def test_back_changes_routing(self, manager):
        """Re-answering a question routes on the latest answers."""
        session = manager.create()
        session.request_help()
        session.answer("high")
        session.answer("active")
        session.back()
        session.answer("no")

        assert session.answer("yes") == DistressLevel.MODERATE
        assert session.router.active_track_id == InterventionTrack.MODERATE


class TestSessionLifecycle:
    """Tests for exit, restart and close."""

    def test_exit_returns_to_idle(self, manager, clock):
        """Leaving a track releases its timers."""
        session = manager.create()
        session.request_help()
        answer_all(session, ["low", "no", "yes"])
        session.require_track(MildTrack).breathing.start()

        session.exit_intervention()
        session.narration.stop()

        assert session.stage == SessionStage.IDLE
        assert clock.pending == 0

    def test_request_help_again_restarts_assessment(self, manager):
        """A new request leaves the active track and starts over."""
        session = manager.create()
        session.request_help()
        answer_all(session, ["low", "no", "yes"])

        session.request_help()

        assert session.stage == SessionStage.ASSESSING
        assert session.track is None
        assert session.level is None

    def test_closed_session_rejects_operations(self, manager):
        """A closed session cannot be reused."""
        session = manager.create()
        session.request_help()
        session.close()
        session.close()

        with pytest.raises(InvalidStateError):
            session.answer("low")
        with pytest.raises(InvalidStateError):
            session.request_help()

    def test_status_snapshot(self, manager):
        """status() reports the current question while assessing."""
        session = manager.create()
        session.request_help()
        session.answer("medium")

        status = session.status()

        assert status["stage"] == "assessing"
        assert status["assessment"]["answered"] == 1
        assert status["assessment"]["current_question"]["question"]["id"] == "self_harm"
        assert status["narration"]["available"] is True

    def test_conversation_tracks_level(self, manager):
        """The companion greets with the assessed level."""
        session = manager.create()
        session.request_help()
        answer_all(session, ["low", "no", "yes"])

        reply = session.conversation.handle_user_input("I'm anxious")

        assert reply.suggested_action == "breathing"
        assert "mild distress" in session.conversation.transcript[0].text

    def test_close_all(self, manager, clock):
        """Shutdown closes every open session."""
        for _ in range(3):
            manager.create().request_help()

        manager.close_all()

        assert len(manager) == 0
        assert clock.pending == 0


class TestIdleSessions:
    """Abandoned sessions are closed after the idle timeout."""

    @pytest.fixture
    def short_lived(self, clock):
        manager = HelpSessionManager(Settings(session_idle_timeout_seconds=60), clock)
        yield manager
        manager.close_all()

    def test_untouched_session_is_closed(self, short_lived, clock):
        """Lookups keep a session alive; the other one expires."""
        kept = short_lived.create()
        abandoned = short_lived.create()
        abandoned.request_help()

        clock.advance(45)
        assert short_lived.get(kept.session_id) is kept
        clock.advance(30)

        assert short_lived.sweep_idle() == 1
        assert short_lived.get(abandoned.session_id) is None
        assert short_lived.get(kept.session_id) is kept
        assert len(short_lived) == 1
        with pytest.raises(InvalidStateError):
            abandoned.answer("low")

    def test_lookup_sweeps_expired_sessions(self, short_lived, clock):
        session = short_lived.create()

        clock.advance(61)

        assert short_lived.get(session.session_id) is None
        assert len(short_lived) == 0

    def test_zero_timeout_keeps_sessions(self, clock):
        """A timeout of 0 disables the sweep."""
        manager = HelpSessionManager(Settings(session_idle_timeout_seconds=0), clock)
        session = manager.create()

        clock.advance(86400)

        assert manager.sweep_idle() == 0
        assert manager.get(session.session_id) is session
        manager.close_all()
