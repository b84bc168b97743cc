"""
Severity Assessment

Ordered question state machine that turns three self-report answers
into a DistressLevel.

NOTE: The scoring rule is a fixed heuristic carried over from the
product definition. It is not clinically validated and its order of
evaluation must not be changed.
"""

import threading
from typing import Optional, Sequence

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.enums.distress_level import DistressLevel, RiskClass
from calmcompanion.domain.exceptions import InvalidInputError, InvalidStateError
from calmcompanion.domain.models.assessment import (
    AnswerOption,
    AssessmentProgress,
    AssessmentStatus,
    CurrentQuestion,
    Question,
)

logger = get_logger(__name__)


SELF_HARM_QUESTION_INDEX = 1
ACTIVE_IDEATION_VALUE = "active"

DEFAULT_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="distress_level",
        prompt="How would you rate your current distress level?",
        options=(
            AnswerOption("low", "I'm feeling anxious but can manage", RiskClass.LOW),
            AnswerOption("medium", "I'm struggling to cope with my feelings", RiskClass.MEDIUM),
            AnswerOption("high", "I feel overwhelmed and unsafe", RiskClass.HIGH),
        ),
    ),
    Question(
        id="self_harm",
        prompt="Are you having thoughts of harming yourself?",
        options=(
            AnswerOption("no", "No, I'm not having such thoughts", RiskClass.LOW),
            AnswerOption("passive", "I have thoughts but no plans to act on them", RiskClass.MEDIUM),
            AnswerOption("active", "Yes, I'm thinking about harming myself", RiskClass.HIGH),
        ),
    ),
    Question(
        id="support_available",
        prompt="Do you have support available right now?",
        options=(
            AnswerOption("yes", "Yes, I have people I can reach out to", RiskClass.LOW),
            AnswerOption("maybe", "I'm not sure who I could talk to", RiskClass.MEDIUM),
            AnswerOption("no", "No, I feel completely alone", RiskClass.HIGH),
        ),
    ),
)


def score_answers(
    questions: Sequence[Question],
    answers: Sequence[str],
) -> DistressLevel:
    """
    Score a complete answer sequence.

    Rules, evaluated in order:
    1. SEVERE: two or more high-risk answers, or active self-harm ideation
    2. MODERATE: exactly one high-risk answer, or two or more medium-risk
    3. MILD: everything else

    Args:
        questions: Questions in presentation order
        answers: One answer value per question

    Returns:
        Computed distress level
    """
    risks = [question.risk_of(value) for question, value in zip(questions, answers)]
    high_count = risks.count(RiskClass.HIGH)
    medium_count = risks.count(RiskClass.MEDIUM)

    active_ideation = (
        len(answers) > SELF_HARM_QUESTION_INDEX
        and answers[SELF_HARM_QUESTION_INDEX] == ACTIVE_IDEATION_VALUE
    )

    if high_count >= 2 or active_ideation:
        return DistressLevel.SEVERE
    if high_count == 1 or medium_count >= 2:
        return DistressLevel.MODERATE
    return DistressLevel.MILD


class SeverityAssessment:
    """
    Self-triage question state machine.

    Lifecycle:
        NOT_STARTED --start()--> IN_PROGRESS --last answer--> COMPLETED

    Invariant: while in progress, the number of recorded answers
    equals the current question index. back() pops the previous
    answer and keeps it as the value to redisplay.

    Usage:
        assessment = SeverityAssessment()
        assessment.start()
        assessment.answer("medium")
        ...
        level = assessment.result
    """

    def __init__(self, questions: Sequence[Question] = DEFAULT_QUESTIONS) -> None:
        """
        Initialize assessment.

        Args:
            questions: Ordered questions; defaults to the built-in triage set
        """
        if not questions:
            raise ValueError("An assessment needs at least one question")
        if len(questions) <= SELF_HARM_QUESTION_INDEX:
            logger.warning(
                "Question set has no self-harm question",
                question_count=len(questions),
            )

        self._questions: tuple[Question, ...] = tuple(questions)
        self._lock = threading.RLock()
        self._status = AssessmentStatus.NOT_STARTED
        self._answers: list[str] = []
        self._index = 0
        self._restored: Optional[str] = None
        self._result: Optional[DistressLevel] = None

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def question_count(self) -> int:
        return len(self._questions)

    @property
    def status(self) -> AssessmentStatus:
        return self._status

    @property
    def is_complete(self) -> bool:
        return self._status == AssessmentStatus.COMPLETED

    @property
    def result(self) -> Optional[DistressLevel]:
        return self._result

    def start(self) -> CurrentQuestion:
        """Reset to the first question and discard any earlier answers."""
        with self._lock:
            self._status = AssessmentStatus.IN_PROGRESS
            self._answers = []
            self._index = 0
            self._restored = None
            self._result = None
            logger.info("Assessment started", question_count=self.question_count)
            return self._current()

    def cancel(self) -> None:
        """Discard the session without producing a result."""
        with self._lock:
            if self._status == AssessmentStatus.IN_PROGRESS:
                logger.info("Assessment cancelled", answered=len(self._answers))
            self._status = AssessmentStatus.NOT_STARTED
            self._answers = []
            self._index = 0
            self._restored = None
            self._result = None

    def current_question(self) -> CurrentQuestion:
        """
        Get the active question.

        Raises:
            InvalidStateError: If the assessment is not in progress
        """
        with self._lock:
            self._require_in_progress("current_question")
            return self._current()

    def answer(self, value: str) -> Optional[DistressLevel]:
        """
        Record an answer for the current question.

        Args:
            value: One of the current question's option values

        Returns:
            The distress level if this was the last question, else None

        Raises:
            InvalidInputError: If value is not an option of the current question
            InvalidStateError: If the assessment is not in progress
        """
        with self._lock:
            self._require_in_progress("answer")

            question = self._questions[self._index]
            if not question.has_option(value):
                raise InvalidInputError(
                    f"'{value}' is not a valid answer to question '{question.id}'",
                    value=value,
                )

            self._answers.append(value)
            self._restored = None

            if self._index < self.question_count - 1:
                self._index += 1
                return None

            self._result = score_answers(self._questions, self._answers)
            self._status = AssessmentStatus.COMPLETED
            logger.info("Assessment completed", level=self._result.value)
            return self._result

    def back(self) -> CurrentQuestion:
        """
        Return to the previous question.

        The previously chosen value is restored for redisplay and will
        be replaced by the next answer. No-op on the first question.

        Raises:
            InvalidStateError: If the assessment is not in progress
        """
        with self._lock:
            self._require_in_progress("back")

            if self._index == 0:
                return self._current()

            self._index -= 1
            self._restored = self._answers.pop()
            return self._current()

    def progress(self) -> AssessmentProgress:
        """Get a read-only snapshot for polling clients."""
        with self._lock:
            return AssessmentProgress(
                status=self._status,
                index=self._index,
                total=self.question_count,
                answers=tuple(self._answers),
                result=self._result,
            )

    def _current(self) -> CurrentQuestion:
        return CurrentQuestion(
            question=self._questions[self._index],
            index=self._index,
            total=self.question_count,
            chosen_value=self._restored,
        )

    def _require_in_progress(self, operation: str) -> None:
        if self._status == AssessmentStatus.COMPLETED:
            raise InvalidStateError(
                f"Cannot {operation}: assessment already completed",
                state=self._status.value,
            )
        if self._status != AssessmentStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Cannot {operation}: assessment not started",
                state=self._status.value,
            )
