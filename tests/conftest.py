"""Tests configuration and fixtures."""

import itertools

import pytest

from calmcompanion.config import Settings
from calmcompanion.services.escalation.contact_store import InMemoryContactStore
from calmcompanion.services.escalation.notifier import LoggingNotifier
from calmcompanion.services.intervention.crisis_resources import CrisisResourceDirectory
from calmcompanion.services.intervention.tracks import TrackFactory
from calmcompanion.services.narration.coordinator import NarrationCoordinator
from calmcompanion.services.narration.narrator import Narrator, UtteranceHandle
from calmcompanion.services.timing.scheduler import ManualScheduler


class RecordingNarrator(Narrator):
    """
    Narrator double that records utterances.

    Utterances only finish when the test calls finish(). With
    honor_cancel=False, cancelled utterances can still be finished,
    which simulates a backend that reports late completions.
    """

    def __init__(self, honor_cancel: bool = True) -> None:
        self.spoken: list[str] = []
        self.cancelled: list[str] = []
        self.fail = False
        self._honor_cancel = honor_cancel
        self._ids = itertools.count(1)
        self._live: dict[int, tuple[UtteranceHandle, list]] = {}

    def speak(self, text: str) -> UtteranceHandle:
        if self.fail:
            raise RuntimeError("speech engine unavailable")
        handle = UtteranceHandle(id=next(self._ids), text=text)
        self.spoken.append(text)
        self._live[handle.id] = (handle, [])
        return handle

    def cancel(self, handle: UtteranceHandle) -> None:
        self.cancelled.append(handle.text)
        if self._honor_cancel:
            self._live.pop(handle.id, None)

    def on_complete(self, handle: UtteranceHandle, callback) -> None:
        if handle.id in self._live:
            self._live[handle.id][1].append(callback)

    def finish(self, text: str) -> None:
        """Complete the live utterance with the given text."""
        for utterance_id, (handle, callbacks) in list(self._live.items()):
            if handle.text == text:
                del self._live[utterance_id]
                for callback in callbacks:
                    callback()
                return
        raise AssertionError(f"No live utterance {text!r}")

    @property
    def last_spoken(self) -> str:
        return self.spoken[-1]


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with development values."""
    return Settings(
        env="development",
        debug=True,
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def narrator() -> RecordingNarrator:
    return RecordingNarrator()


@pytest.fixture
def leaky_narrator() -> RecordingNarrator:
    return RecordingNarrator(honor_cancel=False)


@pytest.fixture
def narration(narrator) -> NarrationCoordinator:
    return NarrationCoordinator(narrator)


@pytest.fixture
def contact_store() -> InMemoryContactStore:
    return InMemoryContactStore()


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def us_resources():
    return CrisisResourceDirectory().get_resources("US")


@pytest.fixture
def track_factory(scheduler, narration, contact_store, notifier, us_resources) -> TrackFactory:
    return TrackFactory(
        scheduler=scheduler,
        narration=narration,
        contact_store=contact_store,
        notifier=notifier,
        resources=us_resources,
    )
