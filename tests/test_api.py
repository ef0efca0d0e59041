# tests/test_api.py
"""
HTTP tests for the check-in API using FastAPI's TestClient.

The orchestrator is injected directly; the lifespan does not run.
"""

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from checkin import main
from checkin.models.flow_models import CheckInStep
from checkin.models.session_state import SessionStore
from checkin.core.flow_engine import FlowEngine
from checkin.core.orchestrator import CheckInOrchestrator
from checkin.core.rate_limit_config import get_real_ip, get_rate_limit_message, get_rate_limits
from checkin.core.step_registry import StepRegistry, build_default_definitions

API_KEY = "test-api-key"
HEADERS = {"X-API-Key": API_KEY}

HAPPY_PATH = [
    {"kind": "acknowledgement"},
    {"kind": "numeric", "value": 8},
    {"kind": "single_choice", "value": "happy"},
    {"kind": "single_choice", "value": "joyful"},
    {"kind": "single_choice", "value": "clear"},
    {"kind": "multi_choice", "values": ["none"]},
    {"kind": "boolean", "value": True},
    {"kind": "numeric", "value": 8},
    {"kind": "numeric", "value": 3},
    {"kind": "free_text", "text": "work"},
    {"kind": "free_text", "text": "walk"},
    {"kind": "numeric", "value": 7},
]


@pytest.fixture
def orchestrator():
    return CheckInOrchestrator(session_store=SessionStore(), flow_engine=FlowEngine(), reveal_mode="none")


@pytest.fixture
def client(monkeypatch, orchestrator):
    monkeypatch.setattr(main, "VALID_API_KEY", API_KEY)
    monkeypatch.setattr(main, "orchestrator", orchestrator)
    main.limiter.reset()
    return TestClient(main.app)


def start(client) -> str:
    response = client.post("/checkin/start", headers=HEADERS)
    assert response.status_code == 200
    return response.json()["session_id"]


@pytest.mark.unit
class TestPublicEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["components"]["overall"] == "healthy"


@pytest.mark.unit
class TestAuthentication:

    def test_missing_key(self, client):
        response = client.post("/checkin/start")
        assert response.status_code == 401

    def test_wrong_key(self, client):
        response = client.post("/checkin/start", headers={"X-API-Key": "wrong"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API Key"


@pytest.mark.integration
class TestCheckInEndpoints:

    def test_start(self, client):
        response = client.post("/checkin/start", headers=HEADERS)
        data = response.json()

        assert data["step"] == "greeting"
        assert data["response_kind"]["kind"] == "acknowledgement"
        assert data["ready"] is True

    def test_start_with_session_id(self, client):
        response = client.post("/checkin/start", headers=HEADERS, json={"session_id": "client-chosen"})
        assert response.json()["session_id"] == "client-chosen"

    def test_full_check_in(self, client, orchestrator):
        session_id = start(client)

        for answer in HAPPY_PATH:
            response = client.post(f"/checkin/{session_id}/answer", headers=HEADERS, json={"answer": answer})
            assert response.status_code == 200
            assert "error" not in response.json()

        data = response.json()
        assert data["step"] == "final"
        assert data["is_complete"] is True
        assert data["persisted"] is True

        info = client.get(f"/checkin/{session_id}", headers=HEADERS).json()
        assert info["answers"]["stressCause"] == "work"
        assert info["turn_count"] == 25

        transcript = client.get(f"/checkin/{session_id}/transcript", headers=HEADERS).json()
        assert transcript["rendered"].endswith("Time to fetch your insights.")

    def test_validation_error_reprompts(self, client):
        session_id = start(client)

        response = client.post(
            f"/checkin/{session_id}/answer",
            headers=HEADERS,
            json={"answer": {"kind": "free_text", "text": "ok"}}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["step"] == "greeting"
        assert data["error"]["type"] == "invalid_answer"

    def test_malformed_answer_is_422(self, client):
        session_id = start(client)
        response = client.post(f"/checkin/{session_id}/answer", headers=HEADERS, json={"answer": {"kind": "dance"}})
        assert response.status_code == 422

    def test_unknown_session_is_404(self, client):
        response = client.post("/checkin/missing/answer", headers=HEADERS, json={"answer": {"kind": "acknowledgement"}})
        assert response.status_code == 404

        assert client.get("/checkin/missing", headers=HEADERS).status_code == 404
        assert client.delete("/checkin/missing", headers=HEADERS).status_code == 404

    def test_settled_and_abandon(self, client):
        session_id = start(client)

        settled = client.post(f"/checkin/{session_id}/settled", headers=HEADERS)
        assert settled.json() == {"session_id": session_id, "ready": True}

        abandoned = client.delete(f"/checkin/{session_id}", headers=HEADERS)
        assert abandoned.json() == {"session_id": session_id, "abandoned": True}
        assert client.get(f"/checkin/{session_id}", headers=HEADERS).status_code == 404

    def test_persist_before_final_is_409(self, client):
        session_id = start(client)
        response = client.post(f"/checkin/{session_id}/persist", headers=HEADERS)
        assert response.status_code == 409

    def test_flow_integrity_error_is_500(self, client, monkeypatch):
        definitions = [d for d in build_default_definitions() if d.step != CheckInStep.ENERGY_LEVEL]
        broken = CheckInOrchestrator(
            flow_engine=FlowEngine(registry=StepRegistry(definitions)),
            reveal_mode="none"
        )
        monkeypatch.setattr(main, "orchestrator", broken)
        session_id = start(client)

        response = client.post(f"/checkin/{session_id}/answer", headers=HEADERS, json={"answer": {"kind": "acknowledgement"}})

        assert response.status_code == 500

    def test_debug_flow(self, client):
        response = client.get("/debug/flow", headers=HEADERS)
        data = response.json()

        assert data["validation_issues"] == []
        assert data["flow_summary"]["initial_step"] == "greeting"


@pytest.mark.unit
class TestServiceNotReady:

    def test_503_without_orchestrator(self, client, monkeypatch):
        monkeypatch.setattr(main, "orchestrator", None)
        response = client.post("/checkin/start", headers=HEADERS)
        assert response.status_code == 503


@pytest.mark.unit
class TestRateLimiting:

    def test_real_ip_prefers_forwarded_header(self):
        scope = {
            "type": "http",
            "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1"), (b"x-real-ip", b"10.0.0.2")],
            "client": ("127.0.0.1", 5000),
        }
        assert get_real_ip(Request(scope)) == "203.0.113.7"

    def test_real_ip_falls_back_to_client(self):
        scope = {"type": "http", "headers": [], "client": ("127.0.0.1", 5000)}
        assert get_real_ip(Request(scope)) == "127.0.0.1"

    @pytest.mark.parametrize("tier", ["default", "trusted"])
    def test_tiers_cover_every_endpoint_group(self, tier):
        assert set(get_rate_limits(tier)) == {"checkin_start", "checkin_answer", "read"}

    def test_trusted_tier_is_looser(self):
        assert get_rate_limits("trusted")["checkin_start"] == "50/minute"
        assert get_rate_limits()["checkin_start"] == "10/minute"

    def test_app_uses_configured_tier(self):
        assert main.RATE_LIMITS == get_rate_limits(main.settings.RATE_LIMIT_TIER)

    def test_start_is_limited(self, client):
        for _ in range(10):
            assert client.post("/checkin/start", headers=HEADERS).status_code == 200

        response = client.post("/checkin/start", headers=HEADERS)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.text == get_rate_limit_message("default")
