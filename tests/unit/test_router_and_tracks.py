"""
Unit Tests for Intervention Routing and Tracks

Tests track selection, teardown and per-track behaviour.
"""

import pytest

from calmcompanion.domain.enums.distress_level import DistressLevel, InterventionTrack
from calmcompanion.domain.exceptions import InvalidInputError
from calmcompanion.domain.models.escalation import EscalationPhase
from calmcompanion.services.intervention.catalog import (
    ESCALATION_SCRIPTS,
    MILD_WELCOME_SCRIPT,
    MODERATE_WELCOME_SCRIPT,
    SELF_CARE_TIPS,
)
from calmcompanion.services.intervention.router import InterventionRouter
from calmcompanion.services.intervention.tracks import (
    MildTrack,
    ModerateTrack,
    SevereTrack,
    TrackFactory,
)


@pytest.fixture
def router(track_factory):
    return InterventionRouter(track_factory)


class TestInterventionRouter:
    """Tests for level-to-track routing."""

    @pytest.mark.parametrize("level,track_type", [
        (DistressLevel.MILD, MildTrack),
        (DistressLevel.MODERATE, ModerateTrack),
        (DistressLevel.SEVERE, SevereTrack),
    ])
    def test_routes_each_level(self, router, level, track_type):
        """Every level has exactly one track."""
        track_id = router.route(level)

        assert track_id == InterventionTrack.from_level(level)
        assert isinstance(router.active_track, track_type)
        assert router.active_track.is_active

    def test_rerouting_tears_down_previous_track(self, router, scheduler, narrator):
        """Switching tracks cancels the old track's timers and narration."""
        router.route(DistressLevel.MILD)
        mild = router.active_track
        mild.breathing.start()
        scheduler.advance(3)

        router.route(DistressLevel.MODERATE)

        assert not mild.is_active
        assert scheduler.pending == 0
        assert router.active_track_id == InterventionTrack.MODERATE
        assert narrator.last_spoken == MODERATE_WELCOME_SCRIPT

    def test_exit_releases_everything(self, router, scheduler, narration):
        """exit() leaves no active track, timers or speech."""
        router.route(DistressLevel.MODERATE)
        router.active_track.breathing.start()

        router.exit()

        assert router.active_track is None
        assert scheduler.pending == 0
        assert not narration.is_speaking

    def test_exit_when_idle_is_noop(self, router):
        """exit() without a track does nothing."""
        router.exit()

        assert router.active_track_id is None


class TestMildTrack:
    """Tests for tips and the short breathing exercise."""

    def test_welcome_and_single_pattern(self, track_factory, narrator):
        """The mild track offers one breathing preset."""
        track = track_factory(InterventionTrack.MILD)
        track.activate()

        assert narrator.last_spoken == MILD_WELCOME_SCRIPT
        assert len(track.breathing.patterns) == 1

    def test_tips_wrap_and_are_spoken(self, track_factory, narrator):
        """Tip navigation wraps in both directions."""
        track = track_factory(InterventionTrack.MILD)

        assert track.previous_tip() == SELF_CARE_TIPS[-1]
        assert narrator.last_spoken == SELF_CARE_TIPS[-1].voice_script
        assert track.next_tip() == SELF_CARE_TIPS[0]

    def test_toggle_speech(self, track_factory, narration):
        """toggle_speech() stops when speaking and replays the tip otherwise."""
        track = track_factory(InterventionTrack.MILD)
        track.activate()

        assert track.toggle_speech() is False
        assert not narration.is_speaking
        assert track.toggle_speech() is True
        assert narration.last_text == SELF_CARE_TIPS[0].voice_script


class TestModerateTrack:
    """Tests for hotlines and exercises."""

    def test_all_patterns_and_grounding(self, track_factory):
        """The moderate track offers every preset plus grounding."""
        track = track_factory(InterventionTrack.MODERATE)

        assert len(track.breathing.patterns) == 3
        assert track.grounding.techniques

    def test_select_hotline_reads_number(self, track_factory, narrator):
        """Selecting a hotline reads it out digit by digit."""
        track = track_factory(InterventionTrack.MODERATE)

        hotline = track.select_hotline(0)

        assert hotline.contact == "988"
        assert track.selected_hotline == hotline
        assert narrator.last_spoken.endswith("The number is 9 8 8.")

    def test_select_hotline_out_of_range(self, track_factory):
        """Invalid hotline indexes are rejected."""
        track = track_factory(InterventionTrack.MODERATE)

        with pytest.raises(InvalidInputError):
            track.select_hotline(10)


class TestSevereTrack:
    """Tests for narrated escalation."""

    def test_escalation_phases_are_narrated(self, track_factory, narrator):
        """Activation and every phase change speak the matching script."""
        track = track_factory(InterventionTrack.SEVERE)
        track.activate()
        assert narrator.last_spoken == ESCALATION_SCRIPTS[EscalationPhase.SELECTING]

        track.escalation.toggle_contact("1")
        assert narrator.spoken.count(ESCALATION_SCRIPTS[EscalationPhase.SELECTING]) == 1

        track.escalation.confirm()
        assert narrator.last_spoken == ESCALATION_SCRIPTS[EscalationPhase.CONFIRMING]

        track.escalation.send()
        assert narrator.last_spoken == ESCALATION_SCRIPTS[EscalationPhase.SENT]

    def test_teardown_resets_workflow(self, track_factory, narrator):
        """A torn-down track stops listening and clears the selection."""
        track = track_factory(InterventionTrack.SEVERE)
        track.activate()
        track.escalation.toggle_contact("2")

        track.teardown()
        spoken = len(narrator.spoken)
        track.escalation.toggle_contact("1")
        track.escalation.confirm()

        assert len(narrator.spoken) == spoken

    def test_silent_when_voice_guidance_off(self, scheduler, narration, contact_store, notifier, us_resources, narrator):
        """Tracks built without voice guidance never speak on their own."""
        factory = TrackFactory(
            scheduler=scheduler,
            narration=narration,
            contact_store=contact_store,
            notifier=notifier,
            resources=us_resources,
            voice_guidance=False,
        )
        track = factory(InterventionTrack.SEVERE)
        track.activate()
        track.escalation.toggle_contact("1")
        track.escalation.confirm()

        assert narrator.spoken == []
