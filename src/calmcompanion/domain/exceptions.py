"""
Domain Exceptions

Error taxonomy shared by the assessment, timing, narration and
escalation components.

InvalidInput, InvalidState and InvalidConfig signal a caller/UI
desync and are raised synchronously. ExternalFailure wraps a
collaborator (Notifier, Narrator) failure and is recoverable.
"""

from typing import Optional


class CalmCompanionError(Exception):
    """Base exception for all core errors."""


class InvalidInputError(CalmCompanionError):
    """A value outside the allowed domain was submitted."""

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message)
        self.value = value


class InvalidStateError(CalmCompanionError):
    """The operation is illegal in the current state."""

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        super().__init__(message)
        self.state = state


class InvalidConfigError(CalmCompanionError):
    """An engine or exercise configuration is malformed."""


class ExternalFailureError(CalmCompanionError):
    """A consumed collaborator failed."""

    def __init__(
        self,
        message: str,
        collaborator: str,
        is_retryable: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.collaborator = collaborator
        self.is_retryable = is_retryable
        self.original_error = original_error
