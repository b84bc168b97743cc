"""
CalmCompanion Domain Layer

Core entities, value objects and the error taxonomy.
These models are independent of timers, speech and transport.
"""

from calmcompanion.domain.enums.distress_level import DistressLevel, InterventionTrack, RiskClass
from calmcompanion.domain.exceptions import (
    CalmCompanionError,
    ExternalFailureError,
    InvalidConfigError,
    InvalidInputError,
    InvalidStateError,
)

__all__ = [
    # Enums
    "DistressLevel",
    "InterventionTrack",
    "RiskClass",
    # Errors
    "CalmCompanionError",
    "ExternalFailureError",
    "InvalidConfigError",
    "InvalidInputError",
    "InvalidStateError",
]
