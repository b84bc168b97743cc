"""
CalmCompanion FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- CORS configuration
- Error handling middleware
- Router registration
- Metrics endpoint
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calmcompanion import __version__
from calmcompanion.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from calmcompanion.api.v1.router import api_router
from calmcompanion.config import Settings, get_settings
from calmcompanion.config.logging_config import configure_logging, get_logger
from calmcompanion.infrastructure.metrics.prometheus_metrics import metrics_router, update_system_info
from calmcompanion.services.orchestration.help_session import HelpSessionManager
from calmcompanion.services.timing.scheduler import AsyncioScheduler

logger = get_logger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.

        Timers of every session run on the serving event loop.
        """
        logger.info(
            "Starting CalmCompanion application",
            env=settings.env,
            version=__version__,
        )
        update_system_info(settings.env, __version__)

        manager = HelpSessionManager(settings, AsyncioScheduler())
        app.state.session_manager = manager

        try:
            yield
        finally:
            logger.info("Shutting down CalmCompanion application", open_sessions=len(manager))
            manager.close_all()
            app.state.session_manager = None
            logger.info("CalmCompanion application shutdown complete")

    app = FastAPI(
        title="CalmCompanion API",
        description="Guided self-triage and calming interventions for people in distress",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "CalmCompanion API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "calmcompanion.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.env == "development",
        log_level=_settings.log_level.lower(),
    )
