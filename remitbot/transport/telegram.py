"""
Telegram Bot API reply sink
---------------------------
Renders replies as sendMessage calls with inline keyboards. Replies are plain
dicts here (ReplyOut shape) so the same function runs inline or inside an RQ
worker.
"""
from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

import httpx

from remitbot.api.normalize import encode_callback
from remitbot.core.replies import Reply
from remitbot.observability.logging import log
from remitbot.settings import settings

_client = httpx.Client(timeout=settings.TELEGRAM_TIMEOUT_SEC)


def reply_to_dict(reply: Reply) -> Dict[str, Any]:
    return asdict(reply)


def _api_url(method: str) -> str:
    if not settings.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
    return f"{settings.TELEGRAM_API_BASE}/bot{settings.TELEGRAM_BOT_TOKEN}/{method}"


def _call(method: str, payload: dict) -> dict:
    resp = _client.post(_api_url(method), json=payload)
    if not (200 <= resp.status_code < 300):
        raise RuntimeError(f"Telegram {method} failed: {resp.status_code} {resp.text[:200]}")
    return resp.json()


def reply_markup(buttons: List[List[Dict[str, Any]]]) -> Optional[dict]:
    if not buttons:
        return None
    return {
        "inline_keyboard": [
            [
                {"text": b["label"], "callback_data": encode_callback(b["action"], b.get("params") or {})}
                for b in row
            ]
            for row in buttons
        ]
    }


def build_send_message(chat_id, reply: Dict[str, Any]) -> dict:
    payload: Dict[str, Any] = {"chat_id": chat_id, "text": reply.get("text") or ""}
    markup = reply_markup(reply.get("buttons") or [])
    if markup:
        payload["reply_markup"] = markup
    if reply.get("parseMode"):
        payload["parse_mode"] = reply["parseMode"]
    return payload


def answer_callback_query(callback_id: str) -> None:
    _call("answerCallbackQuery", {"callback_query_id": callback_id})


def deliver_replies(
    chat_id,
    replies: List[Dict[str, Any]],
    callback_id: Optional[str] = None,
    skip: int = 0,
    on_sent: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Send replies in order, starting after the first `skip` (already delivered).
    Raises on the first failure so the caller (or RQ) can retry; `on_sent` gets
    the running count of delivered replies after each one.
    """
    start = time.time()
    if callback_id and not skip:
        try:
            answer_callback_query(callback_id)
        except (httpx.HTTPError, RuntimeError) as e:
            # only clears the button spinner; the replies still matter
            log(event="telegram_answer_callback_failed", chatId=str(chat_id), error=str(e)[:200])

    sent = 0
    for index, reply in enumerate(replies[skip:], start=skip):
        _call("sendMessage", build_send_message(chat_id, reply))
        sent += 1
        if on_sent:
            on_sent(index + 1)

    log(
        event="telegram_replies_sent",
        chatId=str(chat_id),
        count=sent,
        skipped=int(skip),
        elapsedMs=int((time.time() - start) * 1000),
    )
    return sent


def set_webhook(url: str, secret: str = "") -> dict:
    payload = {"url": url, "allowed_updates": ["message", "callback_query"]}
    if secret:
        payload["secret_token"] = secret
    return _call("setWebhook", payload)
