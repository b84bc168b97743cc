"""
Prometheus Metrics

Metrics for CalmCompanion observability.
Exposes metrics at /metrics endpoint for Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.

PRIVACY: Labels carry categories only, never session ids, contact
details or user text.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from fastapi import APIRouter, Response

from calmcompanion.config.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# HELP SESSION METRICS
# =============================================================================

HELP_SESSIONS_TOTAL = Counter(
    "calm_help_sessions_total",
    "Total number of help sessions started",
)

ACTIVE_HELP_SESSIONS = Gauge(
    "calm_active_help_sessions",
    "Number of currently open help sessions",
)

ASSESSMENTS_COMPLETED = Counter(
    "calm_assessments_completed_total",
    "Completed severity assessments by distress level",
    ["level"],  # mild, moderate, severe
)

# =============================================================================
# INTERVENTION METRICS
# =============================================================================

ACTIVE_TRACKS = Gauge(
    "calm_active_tracks",
    "Currently active intervention tracks",
    ["track"],
)

EXERCISES_COMPLETED = Counter(
    "calm_exercises_completed_total",
    "Guided exercises run to completion",
    ["kind"],  # breathing, grounding
)

NARRATION_UTTERANCES = Counter(
    "calm_narration_utterances_total",
    "Narration utterances by outcome",
    ["outcome"],  # started, completed, cancelled, failed
)

# =============================================================================
# ESCALATION METRICS
# =============================================================================

ESCALATION_DISPATCHES = Counter(
    "calm_escalation_dispatches_total",
    "Emergency contact alert dispatches by outcome",
    ["outcome"],  # success, failure
)

# =============================================================================
# API METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "calm_http_requests_total",
    "Total HTTP requests",
    ["method", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "calm_http_request_duration_seconds",
    "HTTP request duration",
    ["method"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "calm_system",
    "CalmCompanion system information",
)

SYSTEM_INFO.info({
    "version": "0.1.0",
    "environment": "development",
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_help_session_started() -> None:
    """Record a new help session."""
    HELP_SESSIONS_TOTAL.inc()
    ACTIVE_HELP_SESSIONS.inc()


def track_help_session_closed() -> None:
    """Record a closed help session."""
    ACTIVE_HELP_SESSIONS.dec()


def track_assessment_completed(level: str) -> None:
    """Record assessment outcome."""
    ASSESSMENTS_COMPLETED.labels(level=level).inc()


def track_track_activated(track: str) -> None:
    ACTIVE_TRACKS.labels(track=track).inc()


def track_track_deactivated(track: str) -> None:
    ACTIVE_TRACKS.labels(track=track).dec()


def track_exercise_completed(kind: str) -> None:
    """Record a guided exercise run to completion."""
    EXERCISES_COMPLETED.labels(kind=kind).inc()


def track_narration(outcome: str) -> None:
    """Record narration utterance outcome."""
    NARRATION_UTTERANCES.labels(outcome=outcome).inc()


def track_escalation_dispatch(success: bool) -> None:
    """Record escalation dispatch result."""
    ESCALATION_DISPATCHES.labels(outcome="success" if success else "failure").inc()


def track_http_request(method: str, status_code: int, duration_seconds: float) -> None:
    HTTP_REQUESTS_TOTAL.labels(method=method, status_code=str(status_code)).inc()
    HTTP_REQUEST_DURATION.labels(method=method).observe(duration_seconds)


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = "0.1.0") -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
    logger.debug("System info metric updated", environment=environment, version=version)
