"""Domain models package."""

from calmcompanion.domain.models.assessment import (
    AnswerOption,
    AssessmentProgress,
    AssessmentStatus,
    CurrentQuestion,
    Question,
)
from calmcompanion.domain.models.exercise import (
    BreathingPattern,
    EngineStatus,
    GroundingTechnique,
    Phase,
    PhaseConfig,
    PhaseSnapshot,
    PhaseState,
    SelfCareTip,
)
from calmcompanion.domain.models.contact import EmergencyContact
from calmcompanion.domain.models.escalation import (
    DispatchResult,
    EscalationPhase,
    EscalationState,
)

__all__ = [
    # Assessment
    "AnswerOption",
    "AssessmentProgress",
    "AssessmentStatus",
    "CurrentQuestion",
    "Question",
    # Exercises
    "BreathingPattern",
    "EngineStatus",
    "GroundingTechnique",
    "Phase",
    "PhaseConfig",
    "PhaseSnapshot",
    "PhaseState",
    "SelfCareTip",
    # Contacts
    "EmergencyContact",
    # Escalation
    "DispatchResult",
    "EscalationPhase",
    "EscalationState",
]
