"""
Session Endpoints

Help session lifecycle, severity assessment, narration and the
companion conversation. Clients poll GET /sessions/{id} for state.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from calmcompanion.api.dependencies import get_help_session, get_session_manager
from calmcompanion.config.logging_config import get_logger
from calmcompanion.services.orchestration.help_session import HelpSession, HelpSessionManager

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models

class CreateSessionResponse(BaseModel):
    """Response for session creation."""

    session_id: str
    stage: str
    question: dict
    message: str


class AnswerRequest(BaseModel):
    """Answer to the current assessment question."""

    value: str = Field(..., min_length=1, max_length=64, description="Option value")


class AnswerResponse(BaseModel):
    """Assessment state after an answer."""

    completed: bool
    level: Optional[str] = None
    track: Optional[str] = None
    question: Optional[dict] = None


class NarrationToggleResponse(BaseModel):
    speaking: bool


class ConversationRequest(BaseModel):
    """User message for the companion."""

    message: str = Field(..., min_length=1, max_length=2000, description="User message")


class ConversationResponse(BaseModel):
    reply: str
    suggested_action: Optional[str] = None
    transcript: list[dict]


# Session lifecycle

@router.post(
    "",
    response_model=CreateSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request help",
)
async def create_session(
    manager: HelpSessionManager = Depends(get_session_manager),
) -> CreateSessionResponse:
    """
    Open a help session and start the severity assessment.

    The intro is narrated and the first question returned.
    """
    session = manager.create()
    question = session.request_help()

    return CreateSessionResponse(
        session_id=session.session_id,
        stage=session.stage.value,
        question=question.to_dict(),
        message="We're here for you. Let's take a moment to understand how you're feeling.",
    )


@router.get("/{session_id}", summary="Session state")
async def get_session_status(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.status()


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a session",
)
async def close_session(
    session: HelpSession = Depends(get_help_session),
    manager: HelpSessionManager = Depends(get_session_manager),
) -> Response:
    manager.remove(session.session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Assessment

@router.get("/{session_id}/assessment", summary="Assessment progress")
async def get_assessment(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.status()["assessment"]


@router.post(
    "/{session_id}/assessment/answer",
    response_model=AnswerResponse,
    summary="Answer the current question",
)
async def answer_question(
    request: AnswerRequest,
    session: HelpSession = Depends(get_help_session),
) -> AnswerResponse:
    """
    Record an answer.

    On the last question the level is scored and the matching
    intervention track is activated.
    """
    level = session.answer(request.value)
    if level is None:
        return AnswerResponse(
            completed=False,
            question=session.assessment.current_question().to_dict(),
        )

    track_id = session.router.active_track_id
    logger.info("Assessment answered to completion", level=level.value)
    return AnswerResponse(
        completed=True,
        level=level.value,
        track=track_id.value if track_id else None,
    )


@router.post("/{session_id}/assessment/back", summary="Previous question")
async def previous_question(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.back().to_dict()


@router.post(
    "/{session_id}/assessment/cancel",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Abandon the assessment",
)
async def cancel_assessment(session: HelpSession = Depends(get_help_session)) -> Response:
    session.cancel_assessment()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Intervention

@router.post("/{session_id}/intervention/exit", summary="Leave the intervention track")
async def exit_intervention(session: HelpSession = Depends(get_help_session)) -> dict:
    session.exit_intervention()
    return session.status()


# Narration

@router.post(
    "/{session_id}/narration/stop",
    response_model=NarrationToggleResponse,
    summary="Stop narration",
)
async def stop_narration(session: HelpSession = Depends(get_help_session)) -> NarrationToggleResponse:
    session.narration.stop()
    return NarrationToggleResponse(speaking=False)


@router.post(
    "/{session_id}/narration/toggle",
    response_model=NarrationToggleResponse,
    summary="Toggle track narration",
)
async def toggle_narration(session: HelpSession = Depends(get_help_session)) -> NarrationToggleResponse:
    """Stop narration if speaking, otherwise replay the active track's script."""
    track = session.track
    if track is None:
        if session.narration.is_speaking:
            session.narration.stop()
        return NarrationToggleResponse(speaking=session.narration.is_speaking)
    return NarrationToggleResponse(speaking=track.toggle_speech())


# Conversation

@router.post(
    "/{session_id}/conversation",
    response_model=ConversationResponse,
    summary="Talk to the companion",
)
async def converse(
    request: ConversationRequest,
    session: HelpSession = Depends(get_help_session),
) -> ConversationResponse:
    conversation = session.conversation
    reply = conversation.handle_user_input(request.message)
    return ConversationResponse(
        reply=reply.text,
        suggested_action=reply.suggested_action,
        transcript=[message.to_dict() for message in conversation.transcript],
    )
