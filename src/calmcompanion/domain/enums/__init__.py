"""Domain enumerations package."""

from calmcompanion.domain.enums.distress_level import DistressLevel, InterventionTrack, RiskClass

__all__ = ["DistressLevel", "InterventionTrack", "RiskClass"]
