import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from enrollment.api.auth import require_api_key
from enrollment.core.orchestrator import UnknownAction
from enrollment.main import app
from enrollment.settings import settings
from enrollment.utils.lock import FlowBusy

client = TestClient(app)

RESULT = {
    "step": "IDENTITY",
    "signal": "STEP_CHANGED",
    "advanced": True,
    "outcome": "advanced",
    "error": None,
    "fieldErrors": {},
}


@pytest.fixture(autouse=True)
def skip_auth():
    app.dependency_overrides[require_api_key] = lambda: None
    yield
    app.dependency_overrides = {}


def test_health():
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "ok"


@patch("enrollment.api.routes.handle_action")
def test_post_action(mock_handle):
    mock_handle.return_value = {"flow": {"currentStep": "IDENTITY"}, "result": RESULT}

    response = client.post("/api/enrollment/f1/actions", json={"action": "accept_terms", "payload": {"accepted": True}})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["flow"] == {"currentStep": "IDENTITY"}
    assert body["result"] == RESULT
    mock_handle.assert_called_once_with("f1", "accept_terms", {"accepted": True})


@patch("enrollment.api.routes.handle_action")
def test_post_action_payload_defaults_to_empty(mock_handle):
    mock_handle.return_value = {"flow": {}, "result": RESULT}
    response = client.post("/api/enrollment/f1/actions", json={"action": "resend_otp"})
    assert response.status_code == 200
    mock_handle.assert_called_once_with("f1", "resend_otp", {})


@patch("enrollment.api.routes.handle_action")
def test_unknown_action_rejected_by_schema(mock_handle):
    response = client.post("/api/enrollment/f1/actions", json={"action": "jump_to_done"})
    assert response.status_code == 422
    mock_handle.assert_not_called()


@patch("enrollment.api.routes.handle_action")
def test_unknown_action_from_orchestrator(mock_handle):
    mock_handle.side_effect = UnknownAction("Unknown action: resume")
    response = client.post("/api/enrollment/f1/actions", json={"action": "resume"})
    assert response.status_code == 400


@patch("enrollment.api.routes.handle_action")
def test_busy_flow_returns_conflict(mock_handle):
    mock_handle.side_effect = FlowBusy("busy")
    response = client.post("/api/enrollment/f1/actions", json={"action": "verify_otp"})
    assert response.status_code == 409


@patch("enrollment.api.routes.get_flow")
def test_get_flow(mock_get_flow):
    mock_get_flow.return_value = {"sessionId": "f1", "currentStep": "OTP"}
    response = client.get("/api/enrollment/f1")
    assert response.status_code == 200
    assert response.json()["currentStep"] == "OTP"
    mock_get_flow.assert_called_once_with("f1")


@patch("enrollment.api.routes.abandon_flow")
def test_delete_flow(mock_abandon):
    response = client.delete("/api/enrollment/f1")
    assert response.status_code == 200
    assert response.json() == {"sessionId": "f1", "deleted": True}
    mock_abandon.assert_called_once_with("f1")


@patch("enrollment.api.routes.get_flow")
def test_api_key_enforced_when_configured(mock_get_flow):
    app.dependency_overrides = {}
    mock_get_flow.return_value = {"sessionId": "f1"}
    with patch.object(settings, "API_KEY", "secret"):
        assert client.get("/api/enrollment/f1").status_code == 401
        assert client.get("/api/enrollment/f1", headers={"x-api-key": "wrong"}).status_code == 401
        assert client.get("/api/enrollment/f1", headers={"x-api-key": "secret"}).status_code == 200


@patch("enrollment.api.routes.get_flow")
def test_unhandled_error_is_generic_500(mock_get_flow):
    mock_get_flow.side_effect = RuntimeError("redis down")
    safe_client = TestClient(app, raise_server_exceptions=False)
    response = safe_client.get("/api/enrollment/f1")
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Something went wrong. Please try again."}
