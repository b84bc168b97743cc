"""Spoken guidance: narrator backends and the single-channel coordinator."""

from calmcompanion.services.narration.coordinator import NarrationCoordinator
from calmcompanion.services.narration.narrator import Narrator, PacedNarrator, UtteranceHandle

__all__ = ["NarrationCoordinator", "Narrator", "PacedNarrator", "UtteranceHandle"]
