"""
Escalation Endpoints

Emergency-contact selection, confirmation and dispatch for the
severe track.

SAFETY: A failed dispatch returns 502 with the workflow still in
confirmation, so the client can offer retry and crisis resources.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from calmcompanion.api.dependencies import get_help_session
from calmcompanion.config.logging_config import get_logger
from calmcompanion.services.intervention.tracks import SevereTrack
from calmcompanion.services.orchestration.help_session import HelpSession

logger = get_logger(__name__)
router = APIRouter()


class ToggleContactRequest(BaseModel):
    contact_id: str = Field(..., min_length=1, max_length=64)


class SendAlertRequest(BaseModel):
    location_hint: Optional[str] = Field(default=None, max_length=500)


@router.get("/{session_id}/escalation", summary="Escalation state")
async def get_escalation(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(SevereTrack).status()


@router.post("/{session_id}/escalation/toggle", summary="Select or deselect a contact")
async def toggle_contact(
    request: ToggleContactRequest,
    session: HelpSession = Depends(get_help_session),
) -> dict:
    return session.require_track(SevereTrack).escalation.toggle_contact(request.contact_id).to_dict()


@router.post("/{session_id}/escalation/confirm", summary="Review the selection")
async def confirm_escalation(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(SevereTrack).escalation.confirm().to_dict()


@router.post("/{session_id}/escalation/back", summary="Back to contact selection")
async def back_to_selection(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(SevereTrack).escalation.back().to_dict()


@router.post("/{session_id}/escalation/send", summary="Alert the selected contacts")
async def send_alert(
    request: SendAlertRequest,
    session: HelpSession = Depends(get_help_session),
):
    """
    Dispatch the alert.

    The notifier may block on the network, so it runs in the
    threadpool.
    """
    workflow = session.require_track(SevereTrack).escalation
    result = await run_in_threadpool(workflow.send, request.location_hint)

    body = {
        "result": result.to_dict(),
        "escalation": workflow.state.to_dict(),
    }
    if not result.success:
        return JSONResponse(status_code=502, content=body)
    return body


@router.post("/{session_id}/escalation/reset", summary="Start escalation over")
async def reset_escalation(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(SevereTrack).escalation.reset().to_dict()
