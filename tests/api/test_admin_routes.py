import pytest
from decimal import Decimal
from unittest.mock import patch, MagicMock
from fastapi.testclient import TestClient
from remitbot.main import app
from remitbot.api.admin_routes import require_admin
from remitbot.store.models import AwaitingDepositChain, SessionRecord
from remitbot.settings import settings

client = TestClient(app)

@pytest.fixture
def skip_auth():
    app.dependency_overrides[require_admin] = lambda: None
    yield
    app.dependency_overrides = {}

@patch("remitbot.api.admin_routes.load_session")
def test_admin_session_snapshot_is_redacted(mock_load, skip_auth):
    mock_load.return_value = SessionRecord(
        chatId="42", authToken="secret-token", isAuthenticated=True, email="user@test.com",
        flow=AwaitingDepositChain(pendingDepositAmount=Decimal("50")), lastUpdatedAtEpoch=1700000000,
    )

    resp = client.get("/admin/session/42")
    assert resp.status_code == 200
    data = resp.json()
    assert data["chatId"] == "42"
    assert data["isAuthenticated"] is True
    assert data["awaitingState"] == "awaiting-deposit-chain"
    assert data["transientFields"] == ["pendingDepositAmount"]
    assert data["lastUpdatedAtEpoch"] == 1700000000
    assert "secret-token" not in resp.text
    assert "user@test.com" not in resp.text

@patch("remitbot.api.admin_routes.pending_reply_jobs", return_value=0)
@patch("remitbot.api.admin_routes.metrics.snapshot")
def test_admin_metrics(mock_snapshot, mock_pending, skip_auth):
    mock_snapshot.return_value = {"events": {"command": 3}, "repliesFailed": 0}
    resp = client.get("/admin/metrics")
    assert resp.status_code == 200
    assert resp.json() == {"events": {"command": 3}, "repliesFailed": 0, "pendingReplyJobs": 0}

def test_admin_requires_key():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", "adm"):
        assert client.get("/admin/metrics").status_code == 403
        assert client.get("/admin/metrics", headers={"x-admin-key": "nope"}).status_code == 403

def test_admin_disabled_without_configured_key():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", ""):
        assert client.get("/admin/session/1", headers={"x-admin-key": ""}).status_code == 403
