"""
Health Check Endpoints

Liveness and readiness probes. Readiness reflects whether the
session manager was created by the application lifespan.
"""

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from calmcompanion import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness with per-component detail."""

    ready: bool
    components: dict


def _environment(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return settings.env if settings is not None else "unknown"


def _probe(request: Request, state: str) -> HealthResponse:
    return HealthResponse(status=state, version=__version__, environment=_environment(request))


@router.get("", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request) -> HealthResponse:
    return _probe(request, "healthy")


@router.get("/live", response_model=HealthResponse, summary="Liveness probe")
async def liveness_check(request: Request) -> HealthResponse:
    return _probe(request, "alive")


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
async def readiness_check(request: Request) -> ReadinessResponse:
    """
    Ready once sessions can be opened.

    Components report the notifier backend, the number of emergency
    contacts and the open session count.
    """
    manager = getattr(request.app.state, "session_manager", None)
    components: dict[str, Optional[object]] = {"session_manager": manager is not None}

    if manager is not None:
        components.update(
            notifier=manager.notifier.name,
            contacts=len(manager.contact_store.list_contacts()),
            open_sessions=len(manager),
        )

    return ReadinessResponse(ready=manager is not None, components=components)
