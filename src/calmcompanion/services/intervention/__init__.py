"""Intervention tracks, guided exercises and the track router."""

from calmcompanion.services.intervention.crisis_resources import (
    CrisisResource,
    CrisisResourceDirectory,
    JurisdictionResources,
)
from calmcompanion.services.intervention.exercises import BreathingExercise, GroundingExercise
from calmcompanion.services.intervention.router import InterventionRouter
from calmcompanion.services.intervention.tracks import (
    InterventionTrackBase,
    MildTrack,
    ModerateTrack,
    SevereTrack,
    TrackFactory,
)

__all__ = [
    "BreathingExercise",
    "CrisisResource",
    "CrisisResourceDirectory",
    "GroundingExercise",
    "InterventionRouter",
    "InterventionTrackBase",
    "JurisdictionResources",
    "MildTrack",
    "ModerateTrack",
    "SevereTrack",
    "TrackFactory",
]
