"""
Telegram update -> InboundEvent.

Button payloads travel as short strings in Telegram's callback_data; they are
decoded here, once, into an action name plus typed parameters so the flow
engine never parses strings. Unknown update shapes (stickers, edits, joins)
normalize to None and are acknowledged without reaching the engine.
"""
from typing import Any, Dict, Optional, Tuple

from remitbot.api.schemas import InboundEvent

# action -> (callback_data prefix, param name, param type)
CALLBACK_PARAMS = {
    "dep_chain": ("dep_chain_", "chainId", int),
}


def encode_callback(action: str, params: Optional[Dict[str, Any]] = None) -> str:
    entry = CALLBACK_PARAMS.get(action)
    if entry and params and entry[1] in params:
        prefix, name, _ = entry
        return f"{prefix}{params[name]}"
    return action


def decode_callback(data: str) -> Tuple[str, Dict[str, Any]]:
    data = (data or "").strip()
    for action, (prefix, name, conv) in CALLBACK_PARAMS.items():
        if data.startswith(prefix):
            try:
                return action, {name: conv(data[len(prefix):])}
            except ValueError:
                return data, {}
    return data, {}


def parse_command(text: str) -> Optional[Tuple[str, list]]:
    """'/deposit@MyBot 50 137' -> ('deposit', ['50', '137'])."""
    text = (text or "").strip()
    if not text.startswith("/") or len(text) < 2:
        return None
    head, *args = text.split()
    name = head[1:].split("@", 1)[0]
    if not name:
        return None
    return name, args


def event_from_text(chat_id, text: str) -> InboundEvent:
    parsed = parse_command(text)
    if parsed:
        name, args = parsed
        return InboundEvent(chatId=chat_id, kind="command", command=name, args=args, text=text)
    return InboundEvent(chatId=chat_id, kind="text", text=text or "")


def normalize_telegram_update(update: dict) -> Optional[InboundEvent]:
    if not isinstance(update, dict):
        return None

    cq = update.get("callback_query")
    if isinstance(cq, dict):
        chat = ((cq.get("message") or {}).get("chat") or {})
        chat_id = chat.get("id") or (cq.get("from") or {}).get("id")
        if chat_id is None:
            return None
        action, params = decode_callback(cq.get("data") or "")
        return InboundEvent(
            chatId=chat_id,
            kind="action",
            action=action,
            params=params,
            callbackId=str(cq.get("id")) if cq.get("id") is not None else None,
        )

    msg = update.get("message")
    if isinstance(msg, dict) and isinstance(msg.get("text"), str):
        chat_id = (msg.get("chat") or {}).get("id")
        if chat_id is None:
            return None
        return event_from_text(chat_id, msg["text"])

    return None
