"""
Error Handler Middleware

Provides consistent error handling and response formatting.
Logs errors with correlation IDs for debugging.

Domain errors map to status codes:
- InvalidInputError → 422
- InvalidStateError → 409
- InvalidConfigError → 400
- ExternalFailureError → 502
Anything else is a 500 with the correlation id.
"""

import time
import traceback
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from calmcompanion.config.logging_config import bind_correlation_id, clear_context, get_logger
from calmcompanion.domain.exceptions import (
    CalmCompanionError,
    ExternalFailureError,
    InvalidConfigError,
    InvalidInputError,
    InvalidStateError,
)
from calmcompanion.infrastructure.metrics.prometheus_metrics import track_http_request

logger = get_logger(__name__)


ERROR_STATUS: dict[type[CalmCompanionError], int] = {
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidStateError: status.HTTP_409_CONFLICT,
    InvalidConfigError: status.HTTP_400_BAD_REQUEST,
    ExternalFailureError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error: CalmCompanionError) -> int:
    """Status code for a domain error, most specific class first."""
    for error_type in type(error).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: CalmCompanionError) -> JSONResponse:
    """Translate a domain error into a JSON error body."""
    status_code = status_for(exc)
    content = {
        "error": type(exc).__name__,
        "message": str(exc),
    }
    state = getattr(exc, "state", None)
    if state is not None:
        content["state"] = state

    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CalmCompanionError, domain_error_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Provides:
    - Correlation ID tracking for all requests
    - Consistent error response format
    - Error logging with context
    - Request count and latency metrics
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with error handling."""

        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
        bind_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            track_http_request(request.method, response.status_code, time.perf_counter() - started)
            return response

        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                error_message=str(e),
                traceback=traceback.format_exc(),
            )
            track_http_request(request.method, 500, time.perf_counter() - started)

            # Sanitized body; details stay in the logs
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "correlation_id": correlation_id,
                    "message": "An unexpected error occurred. Please try again.",
                },
                headers={"X-Correlation-ID": correlation_id},
            )

        finally:
            clear_context()
