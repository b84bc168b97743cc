"""
Unit Tests for Guided Exercises

Tests breathing narration over the phase engine and grounding steps.
"""

import pytest

from calmcompanion.domain.exceptions import InvalidInputError, InvalidStateError
from calmcompanion.domain.models.exercise import EngineStatus
from calmcompanion.services.intervention.catalog import (
    BREATHING_COMPLETE_SCRIPT,
    PHASE_INSTRUCTIONS,
    format_clock,
    hotline_script,
)
from calmcompanion.services.intervention.exercises import BreathingExercise, GroundingExercise


@pytest.fixture
def breathing(scheduler, narration):
    return BreathingExercise(scheduler, narration)


class TestBreathingExercise:
    """Tests for the paced breathing exercise."""

    def test_announces_each_new_phase(self, breathing, scheduler, narrator):
        """Each phase change is spoken once, including a new cycle's inhale."""
        breathing.start()
        scheduler.advance(14)

        assert narrator.spoken == [
            PHASE_INSTRUCTIONS["inhale"],
            PHASE_INSTRUCTIONS["hold"],
            PHASE_INSTRUCTIONS["exhale"],
            PHASE_INSTRUCTIONS["inhale"],
        ]

    def test_completion_speaks_closing_script(self, breathing, scheduler, narrator):
        """The closing script plays and listeners fire exactly once."""
        done = []
        breathing.on_complete(lambda: done.append(True))
        breathing.start()

        scheduler.advance(120)
        scheduler.advance(10)

        assert narrator.last_spoken == BREATHING_COMPLETE_SCRIPT
        assert done == [True]
        assert breathing.engine.status == EngineStatus.COMPLETED

    def test_start_after_completion_restarts(self, breathing, scheduler):
        """A finished exercise starts over with the full duration."""
        breathing.start()
        scheduler.advance(120)

        snapshot = breathing.start()

        assert snapshot.status == EngineStatus.RUNNING
        assert snapshot.remaining_seconds == 120

    def test_select_pattern_wraps_and_reconfigures(self, breathing):
        """Indexes wrap around the preset list."""
        pattern = breathing.select_pattern(4)

        assert pattern.title == "Box Breathing"
        assert breathing.selected_index == 1
        assert breathing.engine.config.cycle_count == 4
        assert breathing.engine.remaining_seconds == 120

    def test_select_pattern_while_running_rejected(self, breathing):
        """The pattern is fixed during an active exercise."""
        breathing.start()

        with pytest.raises(InvalidStateError):
            breathing.select_pattern(2)

    def test_silent_without_voice_guidance(self, scheduler, narration, narrator):
        """With voice guidance off nothing is spoken."""
        breathing = BreathingExercise(scheduler, narration, voice_guidance=False)
        breathing.start()
        scheduler.advance(120)

        assert narrator.spoken == []

    def test_reset_stops_narration(self, breathing, scheduler, narration):
        """reset() silences the channel and returns to the start."""
        breathing.start()
        scheduler.advance(2)

        snapshot = breathing.reset()

        assert not narration.is_speaking
        assert snapshot.status == EngineStatus.READY
        assert scheduler.pending == 0

    def test_status_payload(self, breathing, scheduler):
        """status() carries the clock display and instruction."""
        breathing.start()
        scheduler.advance(5)

        status = breathing.status()

        assert status["phase"] == "hold"
        assert status["time_display"] == "1:55"
        assert status["instruction"] == PHASE_INSTRUCTIONS["hold"]
        assert status["pattern"]["title"] == "Deep Breathing"


class TestGroundingExercise:
    """Tests for step-based grounding."""

    def test_walks_through_steps_to_completion(self):
        """Advancing past the last step completes and clears the technique."""
        grounding = GroundingExercise()
        finished = []
        grounding.on_complete(finished.append)

        technique = grounding.begin("5-4-3-2-1")
        assert grounding.progress == pytest.approx(0.2)

        for expected in technique.steps[1:]:
            assert grounding.next_step() == expected

        assert grounding.next_step() is None
        assert grounding.active is None
        assert grounding.completed == ["5-4-3-2-1"]
        assert finished == ["5-4-3-2-1 Technique"]

    def test_previous_step_stays_on_first(self):
        """previous_step() never goes below step 0."""
        grounding = GroundingExercise()
        technique = grounding.begin("body-scan")
        grounding.next_step()

        assert grounding.previous_step() == technique.steps[0]
        assert grounding.previous_step() == technique.steps[0]
        assert grounding.current_step == 0

    def test_unknown_technique_rejected(self):
        """begin() with an unknown id is an input error."""
        with pytest.raises(InvalidInputError):
            GroundingExercise().begin("juggling")

    def test_step_without_active_technique_rejected(self):
        """Stepping requires an active technique."""
        with pytest.raises(InvalidStateError):
            GroundingExercise().next_step()

    def test_voice_guidance_reads_steps(self, narration, narrator):
        """With narration each shown step is spoken."""
        grounding = GroundingExercise(narration=narration, voice_guidance=True)
        technique = grounding.begin("deep-breathing")
        grounding.next_step()

        assert narrator.spoken == list(technique.steps[:2])


class TestCatalogHelpers:
    """Tests for script formatting helpers."""

    def test_hotline_script_spells_number(self):
        """Digits are read one by one and whitespace is dropped."""
        script = hotline_script("Samaritans", "Free support.", "116 123")

        assert script == "You've selected Samaritans. Free support. The number is 1 1 6 1 2 3."

    @pytest.mark.parametrize("seconds,expected", [(120, "2:00"), (65, "1:05"), (0, "0:00"), (-3, "0:00")])
    def test_format_clock(self, seconds, expected):
        """Remaining time renders as m:ss."""
        assert format_clock(seconds) == expected
