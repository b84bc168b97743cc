"""
API Dependencies

FastAPI dependency providers for the session manager and sessions.
"""

from fastapi import Depends, HTTPException, Request, status

from calmcompanion.config.logging_config import bind_session_id
from calmcompanion.services.orchestration.help_session import HelpSession, HelpSessionManager


async def get_session_manager(request: Request) -> HelpSessionManager:
    """Session manager created during application startup."""
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise RuntimeError("Session manager not initialized")
    return manager


async def get_help_session(
    session_id: str,
    manager: HelpSessionManager = Depends(get_session_manager),
) -> HelpSession:
    """Get session by ID or raise 404."""
    session = manager.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    bind_session_id(session_id)
    return session
