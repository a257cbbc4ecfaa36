from fastapi.testclient import TestClient
from unittest.mock import patch

from enrollment.main import app
from enrollment.settings import settings

client = TestClient(app)


def test_funnel_rejects_without_configured_key():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", ""):
        response = client.get("/admin/funnel")
    assert response.status_code == 403


def test_funnel_rejects_wrong_key():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", "adm"):
        response = client.get("/admin/funnel", headers={"x-admin-key": "nope"})
    assert response.status_code == 403


@patch("enrollment.api.admin_routes.metrics")
def test_funnel_snapshot(mock_metrics):
    mock_metrics.get_funnel_snapshot.return_value = {"CONTACT": {"advanced": 3}}
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), \
         patch.object(settings, "ADMIN_API_KEY", "adm"), \
         patch.object(settings, "ENABLE_METRICS", True):
        response = client.get("/admin/funnel", headers={"x-admin-key": "adm"})
    assert response.status_code == 200
    assert response.json() == {"enabled": True, "funnel": {"CONTACT": {"advanced": 3}}}
