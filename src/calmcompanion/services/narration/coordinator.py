"""
Narration Coordinator

Single spoken-guidance channel shared by every exercise and track of
a session.

RULE: Cancel-then-start, never a queue. A new speak() supersedes the
utterance in flight, and a superseded utterance never observes its
completion callback.

DEGRADATION: If the narrator fails, the coordinator marks itself
unavailable and callers continue text-only. Narration failure is
never raised to callers.
"""

import threading
from typing import Callable, Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.infrastructure.metrics.prometheus_metrics import track_narration
from calmcompanion.services.narration.narrator import Narrator, UtteranceHandle

logger = get_logger(__name__)

SpeakingListener = Callable[[bool], None]


class NarrationCoordinator:
    """
    Serializes utterances over one Narrator.

    Usage:
        coordinator = NarrationCoordinator(narrator)
        coordinator.speak("Breathe in slowly", on_complete=next_step)
        coordinator.stop()
    """

    def __init__(self, narrator: Optional[Narrator] = None) -> None:
        """
        Initialize coordinator.

        Args:
            narrator: Speech backend; None runs text-only
        """
        self._narrator = narrator
        self._lock = threading.RLock()
        self._generation = 0
        self._handle: Optional[UtteranceHandle] = None
        self._callback: Optional[Callable[[], None]] = None
        self._available = narrator is not None
        self._last_text: Optional[str] = None
        self._listeners: list[SpeakingListener] = []

    @property
    def is_speaking(self) -> bool:
        return self._handle is not None

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def last_text(self) -> Optional[str]:
        """Most recent text submitted, spoken or not."""
        return self._last_text

    def speak(self, text: str, on_complete: Optional[Callable[[], None]] = None) -> bool:
        """
        Cancel any utterance in flight and start a new one.

        Args:
            text: Text to speak
            on_complete: Fired once if this utterance finishes naturally

        Returns:
            True if speech started, False when running text-only
        """
        with self._lock:
            self._last_text = text
            was_speaking = self._cancel_current()
            self._generation += 1
            generation = self._generation

            if not self._available:
                changed = was_speaking
                started = False
            else:
                handle: Optional[UtteranceHandle] = None
                try:
                    handle = self._narrator.speak(text)
                    self._narrator.on_complete(handle, lambda: self._on_finished(generation))
                except Exception as e:
                    if handle is not None:
                        self._silence(handle)
                    self._available = False
                    self._handle = None
                    self._callback = None
                    logger.warning(
                        "Narrator failed; continuing text-only",
                        error_type=type(e).__name__,
                    )
                    track_narration("failed")
                    changed = was_speaking
                    started = False
                else:
                    self._handle = handle
                    self._callback = on_complete
                    changed = not was_speaking
                    started = True
                    track_narration("started")

        if changed:
            self._emit(started)
        return started

    def stop(self) -> None:
        """Cancel the utterance in flight without firing its callback."""
        with self._lock:
            was_speaking = self._cancel_current()
            self._generation += 1

        if was_speaking:
            self._emit(False)

    def subscribe(self, listener: SpeakingListener) -> Callable[[], None]:
        """Receive speaking/idle transitions."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _cancel_current(self) -> bool:
        handle = self._handle
        self._handle = None
        self._callback = None
        if handle is None:
            return False

        track_narration("cancelled")
        self._silence(handle)
        return True

    def _silence(self, handle: UtteranceHandle) -> None:
        try:
            self._narrator.cancel(handle)
        except Exception as e:
            logger.warning("Narrator cancel failed", error_type=type(e).__name__)

    def _on_finished(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._handle is None:
                return
            callback = self._callback
            self._handle = None
            self._callback = None

        track_narration("completed")
        self._emit(False)

        if callback is not None:
            try:
                callback()
            except Exception:
                logger.exception("Narration completion callback failed")

    def _emit(self, speaking: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(speaking)
            except Exception:
                logger.exception("Narration listener failed")
