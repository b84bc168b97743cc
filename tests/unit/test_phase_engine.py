"""
Unit Tests for Timed Phase Engine

All timing runs on the virtual clock.
"""

import pytest

from calmcompanion.domain.exceptions import InvalidConfigError, InvalidStateError
from calmcompanion.domain.models.exercise import EngineStatus
from calmcompanion.services.timing.phase_engine import TimedPhaseEngine

BREATHING = [("inhale", 4), ("hold", 4), ("exhale", 6)]


@pytest.fixture
def engine(scheduler):
    engine = TimedPhaseEngine(scheduler)
    engine.configure(BREATHING, cycle_count=5, total_duration_seconds=120)
    return engine


class TestConfiguration:
    """Tests for configure() validation."""

    def test_empty_phase_list_rejected(self, scheduler):
        """A configuration needs at least one phase."""
        with pytest.raises(InvalidConfigError):
            TimedPhaseEngine(scheduler).configure([], 1, 10)

    @pytest.mark.parametrize("duration", [0, -1])
    def test_non_positive_duration_rejected(self, scheduler, duration):
        """Every phase needs a positive duration."""
        with pytest.raises(InvalidConfigError):
            TimedPhaseEngine(scheduler).configure([("inhale", duration)], 1, 10)

    def test_invalid_cycle_count_and_total_rejected(self, scheduler):
        """cycle_count below 1 or a non-positive total is rejected."""
        engine = TimedPhaseEngine(scheduler)
        with pytest.raises(InvalidConfigError):
            engine.configure(BREATHING, 0, 120)
        with pytest.raises(InvalidConfigError):
            engine.configure(BREATHING, 5, 0)

    def test_mapping_accepted(self, scheduler):
        """An ordered mapping works like a list of pairs."""
        engine = TimedPhaseEngine(scheduler)
        config = engine.configure({"inhale": 4, "exhale": 4}, 2, 30)

        assert config.phase_names == ("inhale", "exhale")
        assert engine.status == EngineStatus.READY

    def test_initial_observables(self, engine):
        """A configured engine rests at the first phase of cycle 1."""
        assert engine.current_phase == "inhale"
        assert engine.current_cycle == 1
        assert engine.phase_progress == 0.0
        assert engine.remaining_seconds == 120

    def test_configure_while_running_rejected(self, engine):
        """Reconfiguring an active engine is a state error."""
        engine.start()
        with pytest.raises(InvalidStateError):
            engine.configure(BREATHING, 3, 60)


class TestTicking:
    """Tests for phase advance, cycle wrap and completion."""

    def test_after_one_full_cycle(self, engine, scheduler):
        """After 14 s the engine is back at inhale in cycle 2."""
        engine.start()
        scheduler.advance(14)

        assert engine.current_phase == "inhale"
        assert engine.current_cycle == 2
        assert engine.remaining_seconds == 106

    def test_phase_progress_mid_phase(self, engine, scheduler):
        """Progress is elapsed-in-phase over phase duration."""
        engine.start()
        scheduler.advance(5)

        assert engine.current_phase == "hold"
        assert engine.phase_progress == pytest.approx(0.25)

    def test_completion_exactly_at_total(self, engine, scheduler):
        """The countdown alone decides completion, regardless of cycle."""
        completed = []
        engine.on_complete(lambda: completed.append(scheduler.now()))
        engine.start()

        scheduler.advance(119)
        assert engine.status == EngineStatus.RUNNING
        assert engine.remaining_seconds == 1

        scheduler.advance(1)
        assert completed == [120.0]
        assert engine.status == EngineStatus.COMPLETED
        assert engine.remaining_seconds == 0
        assert scheduler.pending == 0

        scheduler.advance(30)
        assert len(completed) == 1

    def test_cycle_wraps_back_to_one(self, scheduler):
        """After the last cycle the counter wraps to 1."""
        engine = TimedPhaseEngine(scheduler)
        engine.configure([("breathe", 1)], cycle_count=2, total_duration_seconds=10)
        engine.start()

        scheduler.advance(1)
        assert engine.current_cycle == 2

        scheduler.advance(1)
        assert engine.current_cycle == 1

    def test_progress_stays_within_bounds(self, engine, scheduler):
        """Every emitted snapshot has progress in [0, 1] and a valid cycle."""
        snapshots = []
        engine.subscribe(snapshots.append)
        engine.start()

        scheduler.advance(120)

        assert snapshots
        for snapshot in snapshots:
            assert 0.0 <= snapshot.phase_progress <= 1.0
            assert 1 <= snapshot.current_cycle <= 5

    def test_listener_errors_do_not_stop_engine(self, engine, scheduler):
        """A failing listener is logged and ticking continues."""
        def broken(snapshot):
            raise RuntimeError("render failed")

        engine.subscribe(broken)
        engine.start()
        scheduler.advance(2)

        assert engine.remaining_seconds == 118

    def test_unsubscribe(self, engine, scheduler):
        """Unsubscribed listeners receive nothing further."""
        snapshots = []
        unsubscribe = engine.subscribe(snapshots.append)
        engine.start()
        unsubscribe()
        count = len(snapshots)

        scheduler.advance(2)

        assert len(snapshots) == count


class TestLifecycle:
    """Tests for start, pause, resume and reset."""

    def test_double_start_does_not_double_tick(self, engine, scheduler):
        """A second start() is a no-op."""
        engine.start()
        engine.start()
        scheduler.advance(1)

        assert engine.remaining_seconds == 119
        assert scheduler.pending == 2

    def test_pause_preserves_position(self, engine, scheduler):
        """Paused time does not count; resume continues the same phase."""
        engine.start()
        scheduler.advance(5)
        engine.pause()

        scheduler.advance(10)
        assert engine.remaining_seconds == 115
        assert engine.current_phase == "hold"
        assert scheduler.pending == 0

        engine.resume()
        scheduler.advance(3)
        assert engine.current_phase == "exhale"
        assert engine.remaining_seconds == 112

    def test_reset_returns_to_start(self, engine, scheduler):
        """reset() stops at the first phase of cycle 1 with full duration."""
        engine.start()
        scheduler.advance(20)

        engine.reset()

        assert engine.status == EngineStatus.READY
        assert engine.current_phase == "inhale"
        assert engine.current_cycle == 1
        assert engine.remaining_seconds == 120
        assert scheduler.pending == 0

    def test_start_while_paused_resumes(self, engine, scheduler):
        """start() on a paused engine behaves like resume()."""
        engine.start()
        scheduler.advance(3)
        engine.pause()

        engine.start()
        scheduler.advance(1)

        assert engine.status == EngineStatus.RUNNING
        assert engine.remaining_seconds == 116

    def test_rapid_pause_resume_still_counts_down(self, engine, scheduler):
        """Sub-second running spans between pauses add up."""
        engine.start()
        for _ in range(4):
            scheduler.advance(0.5)
            engine.pause()
            engine.resume()

        assert engine.remaining_seconds == 118

    def test_reset_discards_partial_second(self, engine, scheduler):
        engine.start()
        scheduler.advance(0.6)
        engine.pause()
        engine.reset()

        engine.start()
        scheduler.advance(0.6)

        assert engine.remaining_seconds == 120

    def test_pause_twice_is_noop(self, engine):
        """Pausing a paused engine changes nothing."""
        engine.start()
        engine.pause()

        assert engine.pause().status == EngineStatus.PAUSED

    def test_invalid_transitions(self, scheduler, engine):
        """Unconfigured start, idle pause and idle resume are state errors."""
        with pytest.raises(InvalidStateError):
            TimedPhaseEngine(scheduler).start()
        with pytest.raises(InvalidStateError):
            engine.pause()
        with pytest.raises(InvalidStateError):
            engine.resume()

    def test_start_after_completion_requires_reset(self, engine, scheduler):
        """A completed engine must be reset before starting again."""
        engine.start()
        scheduler.advance(120)

        with pytest.raises(InvalidStateError):
            engine.start()

        engine.reset()
        engine.start()
        assert engine.status == EngineStatus.RUNNING

    def test_dispose_cancels_timers(self, engine, scheduler):
        """dispose() leaves no live timers."""
        engine.start()
        engine.dispose()

        assert scheduler.pending == 0
