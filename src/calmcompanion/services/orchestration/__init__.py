"""Help session orchestration."""

from calmcompanion.services.orchestration.help_session import (
    HelpSession,
    HelpSessionManager,
    SessionStage,
)

__all__ = ["HelpSession", "HelpSessionManager", "SessionStage"]
