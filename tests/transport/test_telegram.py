import pytest
import httpx
from unittest.mock import patch, MagicMock
from remitbot.core.replies import Reply, chain_menu
from remitbot.settings import settings
from remitbot.transport import telegram


def test_build_send_message_with_keyboard():
    reply = telegram.reply_to_dict(Reply("Select which network to deposit on:", chain_menu(), parseMode="Markdown"))
    payload = telegram.build_send_message(77, reply)
    assert payload["chat_id"] == 77
    assert payload["parse_mode"] == "Markdown"
    first = payload["reply_markup"]["inline_keyboard"][0][0]
    assert first == {"text": "Ethereum (1)", "callback_data": "dep_chain_1"}

def test_build_send_message_plain():
    payload = telegram.build_send_message(77, {"text": "hi", "buttons": [], "parseMode": None})
    assert payload == {"chat_id": 77, "text": "hi"}

def test_api_url_requires_token():
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", ""):
        with pytest.raises(RuntimeError):
            telegram._api_url("sendMessage")

@patch("remitbot.transport.telegram._client")
def test_deliver_replies_in_order(mock_client):
    mock_client.post.return_value = httpx.Response(200, json={"ok": True})
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", "123:abc"):
        sent = telegram.deliver_replies(77, [{"text": "one"}, {"text": "two"}], callback_id="cb")

    assert sent == 2
    urls = [c.args[0] for c in mock_client.post.call_args_list]
    assert urls[0].endswith("/bot123:abc/answerCallbackQuery")
    assert urls[1].endswith("/sendMessage")
    texts = [c.kwargs["json"].get("text") for c in mock_client.post.call_args_list[1:]]
    assert texts == ["one", "two"]

@patch("remitbot.transport.telegram._client")
def test_deliver_replies_raises_on_failure(mock_client):
    mock_client.post.return_value = httpx.Response(429, json={"ok": False})
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", "123:abc"):
        with pytest.raises(RuntimeError):
            telegram.deliver_replies(77, [{"text": "one"}])

@patch("remitbot.transport.telegram._client")
def test_set_webhook_sends_secret(mock_client):
    mock_client.post.return_value = httpx.Response(200, json={"ok": True, "result": True})
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", "123:abc"):
        telegram.set_webhook("https://bot.test/telegram/webhook", "s3cret")
    payload = mock_client.post.call_args.kwargs["json"]
    assert payload["secret_token"] == "s3cret"
    assert payload["allowed_updates"] == ["message", "callback_query"]

@patch("remitbot.transport.telegram._client")
def test_deliver_replies_resumes_after_delivered(mock_client):
    mock_client.post.return_value = httpx.Response(200, json={"ok": True})
    progress = []
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", "123:abc"):
        sent = telegram.deliver_replies(
            77, [{"text": "one"}, {"text": "two"}, {"text": "three"}],
            callback_id="cb", skip=1, on_sent=progress.append,
        )

    assert sent == 2
    # the callback was answered by the first attempt
    urls = [c.args[0] for c in mock_client.post.call_args_list]
    assert all(u.endswith("/sendMessage") for u in urls)
    texts = [c.kwargs["json"]["text"] for c in mock_client.post.call_args_list]
    assert texts == ["two", "three"]
    assert progress == [2, 3]

@patch("remitbot.transport.telegram._client")
def test_progress_stops_at_failed_reply(mock_client):
    mock_client.post.side_effect = [
        httpx.Response(200, json={"ok": True}),
        httpx.Response(502, text="bad gateway"),
    ]
    progress = []
    with patch.object(settings, "TELEGRAM_BOT_TOKEN", "123:abc"):
        with pytest.raises(RuntimeError):
            telegram.deliver_replies(77, [{"text": "one"}, {"text": "two"}], on_sent=progress.append)
    assert progress == [1]
