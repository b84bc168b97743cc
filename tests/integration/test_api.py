"""
Integration Tests for the HTTP API

Runs the FastAPI application, including its lifespan, in process.
"""

import pytest
from fastapi.testclient import TestClient

from calmcompanion.domain.models.escalation import DispatchResult
from calmcompanion.main import create_application
from calmcompanion.services.escalation.notifier import Notifier
from calmcompanion.services.orchestration.help_session import HelpSessionManager
from calmcompanion.services.timing.scheduler import ManualScheduler


class UnreachableNotifier(Notifier):
    @property
    def name(self) -> str:
        return "unreachable"

    def dispatch(self, contacts, location_hint=None) -> DispatchResult:
        return DispatchResult(
            success=False,
            contact_ids=[c.id for c in contacts],
            detail="gateway timeout",
        )


@pytest.fixture
def app(test_settings):
    return create_application(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def open_session(client) -> str:
    response = client.post("/api/v1/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def answer_all(client, session_id, answers):
    response = None
    for value in answers:
        response = client.post(
            f"/api/v1/sessions/{session_id}/assessment/answer",
            json={"value": value},
        )
        assert response.status_code == 200
    return response.json()


class TestSessionEndpoints:
    """Tests for session creation and assessment."""

    def test_create_session(self, client):
        """Requesting help returns the first question."""
        response = client.post("/api/v1/sessions")

        assert response.status_code == 201
        body = response.json()
        assert body["stage"] == "assessing"
        assert body["question"]["index"] == 0
        assert body["question"]["question"]["id"] == "distress_level"
        assert "risk" not in body["question"]["question"]["options"][0]

    def test_invalid_answer_is_422(self, client):
        """An option from another question is rejected."""
        session_id = open_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/assessment/answer",
            json={"value": "active"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidInputError"

    def test_unknown_session_is_404(self, client):
        response = client.get("/api/v1/sessions/does-not-exist")

        assert response.status_code == 404

    def test_mild_flow_and_tips(self, client):
        """A mild result activates tips and breathing."""
        session_id = open_session(client)

        body = answer_all(client, session_id, ["low", "no", "yes"])
        assert body == {"completed": True, "level": "mild", "track": "mild", "question": None}

        tip = client.post(f"/api/v1/sessions/{session_id}/tips/next").json()
        assert tip["title"] == "Grounding Exercise"

        breathing = client.post(f"/api/v1/sessions/{session_id}/breathing/start").json()
        assert breathing["status"] == "running"
        assert breathing["time_display"] == "2:00"

        paused = client.post(f"/api/v1/sessions/{session_id}/breathing/pause").json()
        assert paused["status"] == "paused"

    def test_back_and_cancel(self, client):
        """back returns the previous answer; cancel returns to idle."""
        session_id = open_session(client)
        client.post(f"/api/v1/sessions/{session_id}/assessment/answer", json={"value": "high"})

        back = client.post(f"/api/v1/sessions/{session_id}/assessment/back").json()
        assert back["chosen_value"] == "high"

        response = client.post(f"/api/v1/sessions/{session_id}/assessment/cancel")
        assert response.status_code == 204
        assert client.get(f"/api/v1/sessions/{session_id}").json()["stage"] == "idle"

    def test_conversation(self, client):
        """The companion replies and keeps a transcript."""
        session_id = open_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/conversation",
            json={"message": "I feel sad"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["suggested_action"] == "grounding"
        assert len(body["transcript"]) == 3

    def test_delete_session(self, client):
        session_id = open_session(client)

        assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404


class TestEscalationEndpoints:
    """Tests for the severe track over HTTP."""

    def test_severe_flow(self, client):
        """Empty confirm conflicts; a selected contact can be alerted."""
        session_id = open_session(client)
        body = answer_all(client, session_id, ["high", "active", "no"])
        assert body["track"] == "severe"

        response = client.post(f"/api/v1/sessions/{session_id}/escalation/confirm")
        assert response.status_code == 409

        toggled = client.post(
            f"/api/v1/sessions/{session_id}/escalation/toggle",
            json={"contact_id": "1"},
        ).json()
        assert toggled["can_confirm"] is True

        confirmed = client.post(f"/api/v1/sessions/{session_id}/escalation/confirm").json()
        assert confirmed["phase"] == "confirming"

        response = client.post(
            f"/api/v1/sessions/{session_id}/escalation/send",
            json={"location_hint": "home"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["result"]["success"] is True
        assert body["escalation"]["phase"] == "sent"

    def test_breathing_on_severe_track_is_409(self, client):
        """Exercises of other tracks are state conflicts."""
        session_id = open_session(client)
        answer_all(client, session_id, ["high", "active", "no"])

        response = client.post(f"/api/v1/sessions/{session_id}/breathing/start")

        assert response.status_code == 409

    def test_unknown_contact_is_422(self, client):
        session_id = open_session(client)
        answer_all(client, session_id, ["high", "active", "no"])

        response = client.post(
            f"/api/v1/sessions/{session_id}/escalation/toggle",
            json={"contact_id": "42"},
        )

        assert response.status_code == 422

    def test_failed_dispatch_is_502(self, app, client, test_settings):
        """A failed alert keeps the workflow in confirmation."""
        app.state.session_manager = HelpSessionManager(
            test_settings,
            ManualScheduler(),
            notifier=UnreachableNotifier(),
        )
        session_id = open_session(client)
        answer_all(client, session_id, ["high", "active", "no"])
        client.post(f"/api/v1/sessions/{session_id}/escalation/toggle", json={"contact_id": "2"})
        client.post(f"/api/v1/sessions/{session_id}/escalation/confirm")

        response = client.post(f"/api/v1/sessions/{session_id}/escalation/send", json={})

        assert response.status_code == 502
        body = response.json()
        assert body["result"]["detail"] == "gateway timeout"
        assert body["escalation"]["phase"] == "confirming"

        status = client.get(f"/api/v1/sessions/{session_id}/escalation").json()
        assert status["last_failure"]["success"] is False


class TestOperationalEndpoints:
    """Tests for health and metrics."""

    def test_health(self, client):
        assert client.get("/api/v1/health").json()["status"] == "healthy"

    def test_readiness(self, client):
        """Readiness reports the session components."""
        open_session(client)

        body = client.get("/api/v1/health/ready").json()

        assert body["components"]["notifier"] == "log"
        assert body["components"]["contacts"] == 3
        assert body["components"]["open_sessions"] == 1

    def test_metrics(self, client):
        """Prometheus exposition includes the session counter."""
        open_session(client)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "calm_help_sessions_total" in response.text

    def test_correlation_id_echoed(self, client):
        response = client.get("/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
