"""
Narrator Interface

Defines the contract for speech output backends.
The narration coordinator only ever talks to this interface, so a
real text-to-speech engine can replace the paced simulation without
changing service code.

ARCHITECTURE: A narrator renders one utterance per handle. Cancelling
a handle stops speech mid-utterance and suppresses its completion
callback.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.services.timing.scheduler import Scheduler, TimerHandle

logger = get_logger(__name__)

CompletionCallback = Callable[[], None]


@dataclass(frozen=True)
class UtteranceHandle:
    """
    Opaque reference to one utterance.

    Attributes:
        id: Narrator-assigned sequence number
        text: Text being spoken
    """

    id: int
    text: str


class Narrator(ABC):
    """
    Abstract speech backend.

    Implementations must:
    - Return immediately from speak() and speak asynchronously
    - Fire each completion callback at most once, on natural end only
    - Raise from speak() if speech is unavailable
    """

    @abstractmethod
    def speak(self, text: str) -> UtteranceHandle:
        """Begin speaking text."""
        pass

    @abstractmethod
    def cancel(self, handle: UtteranceHandle) -> None:
        """Stop an utterance. Its completion callback will not fire."""
        pass

    @abstractmethod
    def on_complete(self, handle: UtteranceHandle, callback: CompletionCallback) -> None:
        """Register a callback for the natural end of an utterance."""
        pass


class PacedNarrator(Narrator):
    """
    Simulated speech paced by a words-per-minute estimate.

    Each utterance "finishes" after words / wpm minutes on the
    injected scheduler. Used when no speech engine is attached and
    as the default backend of the HTTP service, where the client
    renders audio itself.
    """

    MIN_DURATION_SECONDS = 0.5

    def __init__(self, scheduler: Scheduler, words_per_minute: int = 150) -> None:
        if words_per_minute <= 0:
            raise ValueError("words_per_minute must be positive")
        self._scheduler = scheduler
        self._wpm = words_per_minute
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._timers: dict[int, TimerHandle] = {}
        self._callbacks: dict[int, list[CompletionCallback]] = {}

    def estimate_duration(self, text: str) -> float:
        """Estimated speaking time of text in seconds."""
        words = len(text.split())
        return max(self.MIN_DURATION_SECONDS, words / self._wpm * 60)

    def speak(self, text: str) -> UtteranceHandle:
        handle = UtteranceHandle(id=next(self._ids), text=text)
        duration = self.estimate_duration(text)

        with self._lock:
            self._callbacks[handle.id] = []
            self._timers[handle.id] = self._scheduler.call_later(
                duration,
                lambda: self._finish(handle.id),
            )

        logger.debug("Utterance started", utterance_id=handle.id, duration_seconds=round(duration, 2))
        return handle

    def cancel(self, handle: UtteranceHandle) -> None:
        with self._lock:
            timer = self._timers.pop(handle.id, None)
            self._callbacks.pop(handle.id, None)
        if timer is not None:
            timer.cancel()
            logger.debug("Utterance cancelled", utterance_id=handle.id)

    def on_complete(self, handle: UtteranceHandle, callback: CompletionCallback) -> None:
        with self._lock:
            callbacks = self._callbacks.get(handle.id)
            if callbacks is not None:
                callbacks.append(callback)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def _finish(self, utterance_id: int) -> None:
        with self._lock:
            self._timers.pop(utterance_id, None)
            callbacks: Optional[list[CompletionCallback]] = self._callbacks.pop(utterance_id, None)

        for callback in callbacks or []:
            callback()
