"""
Assessment Domain Models

Questions, answer options and read-only views of an assessment
session in progress.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from calmcompanion.domain.enums.distress_level import DistressLevel, RiskClass


class AssessmentStatus(StrEnum):
    """Assessment session lifecycle states."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnswerOption:
    """
    One selectable answer.

    Attributes:
        value: Machine value submitted by the client
        label: Text shown to the user
        risk: Risk class this answer contributes to scoring
    """

    value: str
    label: str
    risk: RiskClass = RiskClass.LOW

    def to_dict(self) -> dict:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class Question:
    """
    Immutable assessment question with ordered options.

    The per-question risk table lives on the options so that the
    same answer value can carry different risk on different
    questions ("no" to self-harm is low risk, "no" to available
    support is high risk).
    """

    id: str
    prompt: str
    options: tuple[AnswerOption, ...]

    def option_values(self) -> tuple[str, ...]:
        return tuple(option.value for option in self.options)

    def has_option(self, value: str) -> bool:
        return value in self.option_values()

    def risk_of(self, value: str) -> RiskClass:
        """Get risk class of an answer value for this question."""
        for option in self.options:
            if option.value == value:
                return option.risk
        return RiskClass.LOW

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "options": [option.to_dict() for option in self.options],
        }


@dataclass(frozen=True)
class CurrentQuestion:
    """Active question plus the value chosen earlier, if any."""

    question: Question
    index: int
    total: int
    chosen_value: Optional[str] = None

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    def to_dict(self) -> dict:
        return {
            "question": self.question.to_dict(),
            "index": self.index,
            "total": self.total,
            "chosen_value": self.chosen_value,
            "is_last": self.is_last,
        }


@dataclass(frozen=True)
class AssessmentProgress:
    """Read-only assessment snapshot for polling clients."""

    status: AssessmentStatus
    index: int
    total: int
    answers: tuple[str, ...] = field(default_factory=tuple)
    result: Optional[DistressLevel] = None

    @property
    def answered(self) -> int:
        return len(self.answers)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "index": self.index,
            "total": self.total,
            "answered": self.answered,
            "result": self.result.value if self.result else None,
        }
