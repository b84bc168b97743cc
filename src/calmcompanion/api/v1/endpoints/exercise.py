"""
Exercise Endpoints

Breathing, grounding and self-care tip controls for the mild and
moderate tracks.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from calmcompanion.api.dependencies import get_help_session
from calmcompanion.domain.exceptions import InvalidStateError
from calmcompanion.services.intervention.exercises import BreathingExercise
from calmcompanion.services.intervention.tracks import MildTrack, ModerateTrack
from calmcompanion.services.orchestration.help_session import HelpSession

router = APIRouter()


class PatternRequest(BaseModel):
    index: int = Field(..., ge=0, description="Breathing preset index")


class TechniqueRequest(BaseModel):
    technique_id: str = Field(..., min_length=1, max_length=64)


class HotlineRequest(BaseModel):
    index: int = Field(..., ge=0, description="Hotline index")


def _breathing(session: HelpSession) -> BreathingExercise:
    track = session.track
    if isinstance(track, (MildTrack, ModerateTrack)):
        return track.breathing
    raise InvalidStateError("No breathing exercise in the active track", state=session.stage.value)


# Breathing

@router.get("/{session_id}/breathing", summary="Breathing exercise state")
async def get_breathing(session: HelpSession = Depends(get_help_session)) -> dict:
    return _breathing(session).status()


@router.post("/{session_id}/breathing/start", summary="Start breathing")
async def start_breathing(session: HelpSession = Depends(get_help_session)) -> dict:
    exercise = _breathing(session)
    exercise.start()
    return exercise.status()


@router.post("/{session_id}/breathing/pause", summary="Pause breathing")
async def pause_breathing(session: HelpSession = Depends(get_help_session)) -> dict:
    exercise = _breathing(session)
    exercise.pause()
    return exercise.status()


@router.post("/{session_id}/breathing/resume", summary="Resume breathing")
async def resume_breathing(session: HelpSession = Depends(get_help_session)) -> dict:
    exercise = _breathing(session)
    exercise.resume()
    return exercise.status()


@router.post("/{session_id}/breathing/reset", summary="Reset breathing")
async def reset_breathing(session: HelpSession = Depends(get_help_session)) -> dict:
    exercise = _breathing(session)
    exercise.reset()
    return exercise.status()


@router.post("/{session_id}/breathing/pattern", summary="Select breathing preset")
async def select_pattern(
    request: PatternRequest,
    session: HelpSession = Depends(get_help_session),
) -> dict:
    exercise = _breathing(session)
    exercise.select_pattern(request.index)
    return exercise.status()


# Grounding

@router.get("/{session_id}/grounding", summary="Grounding state")
async def get_grounding(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(ModerateTrack).grounding.status()


@router.post("/{session_id}/grounding/begin", summary="Begin a grounding technique")
async def begin_grounding(
    request: TechniqueRequest,
    session: HelpSession = Depends(get_help_session),
) -> dict:
    grounding = session.require_track(ModerateTrack).grounding
    grounding.begin(request.technique_id)
    return grounding.status()


@router.post("/{session_id}/grounding/next", summary="Next grounding step")
async def next_grounding_step(session: HelpSession = Depends(get_help_session)) -> dict:
    grounding = session.require_track(ModerateTrack).grounding
    grounding.next_step()
    return grounding.status()


@router.post("/{session_id}/grounding/previous", summary="Previous grounding step")
async def previous_grounding_step(session: HelpSession = Depends(get_help_session)) -> dict:
    grounding = session.require_track(ModerateTrack).grounding
    grounding.previous_step()
    return grounding.status()


# Hotlines

@router.post("/{session_id}/hotlines/select", summary="Select a professional hotline")
async def select_hotline(
    request: HotlineRequest,
    session: HelpSession = Depends(get_help_session),
) -> dict:
    return session.require_track(ModerateTrack).select_hotline(request.index).to_dict()


# Self-care tips

@router.post("/{session_id}/tips/next", summary="Next self-care tip")
async def next_tip(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(MildTrack).next_tip().to_dict()


@router.post("/{session_id}/tips/previous", summary="Previous self-care tip")
async def previous_tip(session: HelpSession = Depends(get_help_session)) -> dict:
    return session.require_track(MildTrack).previous_tip().to_dict()
