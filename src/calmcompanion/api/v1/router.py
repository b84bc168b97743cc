"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from calmcompanion.api.v1.endpoints.escalation import router as escalation_router
from calmcompanion.api.v1.endpoints.exercise import router as exercise_router
from calmcompanion.api.v1.endpoints.health import router as health_router
from calmcompanion.api.v1.endpoints.session import router as session_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    session_router,
    prefix="/sessions",
    tags=["Sessions"],
)

api_router.include_router(
    exercise_router,
    prefix="/sessions",
    tags=["Exercises"],
)

api_router.include_router(
    escalation_router,
    prefix="/sessions",
    tags=["Escalation"],
)
