import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch
from remitbot.main import app
from remitbot.settings import settings
from remitbot.core.replies import Reply, login_keyboard

from remitbot.api.auth import require_api_key, require_telegram_secret

client = TestClient(app)

@pytest.fixture(autouse=True)
def skip_auth():
    app.dependency_overrides[require_api_key] = lambda: None
    app.dependency_overrides[require_telegram_secret] = lambda: None
    yield
    app.dependency_overrides = {}

@patch("remitbot.api.routes.handle_event")
def test_chat_event_returns_replies(mock_handle):
    mock_handle.return_value = [Reply("🤖 Welcome", login_keyboard())]
    resp = client.post("/api/chat/event", json={"chatId": 5, "kind": "command", "command": "start"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["replies"][0]["text"] == "🤖 Welcome"
    assert body["replies"][0]["buttons"][0][0] == {"label": "🔐 Log In", "action": "login", "params": {}}
    event = mock_handle.call_args.args[0]
    assert event.command == "start"

def test_chat_event_rejects_bad_kind():
    resp = client.post("/api/chat/event", json={"chatId": 5, "kind": "sticker"})
    assert resp.status_code == 422

@patch("remitbot.api.routes.send_or_enqueue")
@patch("remitbot.api.routes.handle_event")
def test_webhook_dispatches_and_delivers(mock_handle, mock_send):
    mock_handle.return_value = [Reply("✅ done")]
    mock_send.return_value = "sent"
    update = {"update_id": 10, "callback_query": {"id": "cb", "data": "dep_chain_137", "message": {"chat": {"id": 77}}}}

    resp = client.post("/telegram/webhook", json=update)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "handled": True, "delivery": "sent"}

    event = mock_handle.call_args.args[0]
    assert event.action == "dep_chain"
    assert event.params == {"chainId": 137}
    chat_id, payload, callback_id = mock_send.call_args.args
    assert chat_id == "77"
    assert payload == [{"text": "✅ done", "buttons": [], "parseMode": None}]
    assert callback_id == "cb"

@patch("remitbot.api.routes.handle_event")
def test_webhook_ignores_unsupported_update(mock_handle):
    resp = client.post("/telegram/webhook", json={"update_id": 11, "edited_message": {}})
    assert resp.status_code == 200
    assert resp.json()["handled"] is False
    mock_handle.assert_not_called()

def test_webhook_secret_enforced():
    app.dependency_overrides = {}
    with patch.object(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret"):
        resp = client.post("/telegram/webhook", json={"update_id": 1},
                           headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"})
        assert resp.status_code == 401

def test_api_key_enforced():
    app.dependency_overrides = {}
    with patch.object(settings, "API_KEY", "k"):
        resp = client.post("/api/chat/event", json={"chatId": 5, "text": "hi"})
        assert resp.status_code == 401

@patch("remitbot.main.redis_healthy", return_value=False)
def test_health_reports_redis(mock_healthy):
    resp = client.get("/health")
    assert resp.json() == {"status": "ok", "redis": False}
