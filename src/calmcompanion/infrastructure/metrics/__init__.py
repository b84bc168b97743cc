"""Prometheus metrics package."""

from calmcompanion.infrastructure.metrics.prometheus_metrics import (
    metrics_router,
    track_assessment_completed,
    track_escalation_dispatch,
    track_exercise_completed,
    track_help_session_closed,
    track_help_session_started,
    track_http_request,
    track_narration,
    track_track_activated,
    track_track_deactivated,
    update_system_info,
)

__all__ = [
    "metrics_router",
    "track_assessment_completed",
    "track_escalation_dispatch",
    "track_exercise_completed",
    "track_help_session_closed",
    "track_help_session_started",
    "track_http_request",
    "track_narration",
    "track_track_activated",
    "track_track_deactivated",
    "update_system_info",
]
