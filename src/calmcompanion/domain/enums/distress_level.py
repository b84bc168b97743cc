"""
Distress Level and Intervention Track Enumerations

Defines the triage outcome of the severity assessment and the
intervention track each outcome is routed to.

NOTE: The levels are a self-triage heuristic, not a clinical
classification.
"""

from enum import StrEnum


class DistressLevel(StrEnum):
    """
    Self-reported distress classification.

    Ordered from least to most severe. Produced once per
    completed assessment and never mutated afterwards.
    """

    MILD = "mild"
    """
    Anxious but coping.
    - Self-care tips and a short breathing exercise
    """

    MODERATE = "moderate"
    """
    Struggling to cope.
    - Guided breathing and grounding
    - Professional resources offered
    """

    SEVERE = "severe"
    """
    Overwhelmed, unsafe or actively considering self-harm.
    - Emergency contact escalation
    - Crisis resources presented immediately
    """

    @property
    def rank(self) -> int:
        """Ordinal position (0 = mild)."""
        return list(DistressLevel).index(self)


class RiskClass(StrEnum):
    """Risk classification of a single assessment answer."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InterventionTrack(StrEnum):
    """
    Intervention flow selected for a session.

    There is exactly one track per distress level.
    """

    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @classmethod
    def from_level(cls, level: DistressLevel) -> "InterventionTrack":
        """
        Map distress level to intervention track.

        Args:
            level: Distress level from the assessment

        Returns:
            Corresponding intervention track
        """
        mapping = {
            DistressLevel.MILD: cls.MILD,
            DistressLevel.MODERATE: cls.MODERATE,
            DistressLevel.SEVERE: cls.SEVERE,
        }
        return mapping[level]
