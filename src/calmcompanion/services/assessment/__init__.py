"""Severity assessment package."""

from calmcompanion.services.assessment.severity_assessment import (
    DEFAULT_QUESTIONS,
    SeverityAssessment,
    score_answers,
)

__all__ = ["DEFAULT_QUESTIONS", "SeverityAssessment", "score_answers"]
