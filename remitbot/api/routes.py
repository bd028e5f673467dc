from typing import Any, List

from fastapi import APIRouter, Body, Depends
from starlette.concurrency import run_in_threadpool

from remitbot.api.auth import require_api_key, require_telegram_secret
from remitbot.api.normalize import normalize_telegram_update
from remitbot.api.schemas import ChatResponse, InboundEvent, ReplyOut
from remitbot.core.dispatcher import handle_event
from remitbot.core.replies import Reply
from remitbot.observability.logging import log
from remitbot.queue.jobs import send_or_enqueue
from remitbot.transport.telegram import reply_to_dict

router = APIRouter()


def _to_out(replies: List[Reply]) -> List[ReplyOut]:
    return [ReplyOut.model_validate(reply_to_dict(r)) for r in replies]


@router.post("/api/chat/event", response_model=ChatResponse, dependencies=[Depends(require_api_key)])
async def chat_event(event: InboundEvent):
    """Transport-neutral entry: one event in, the replies to render out."""
    replies = await run_in_threadpool(handle_event, event)
    return ChatResponse(status="success", replies=_to_out(replies))


@router.post("/telegram/webhook", dependencies=[Depends(require_telegram_secret)])
async def telegram_webhook(update: Any = Body(None)):
    """
    Telegram webhook. Always answers 200 so Telegram does not redeliver an
    update the engine has already acted on; delivery problems are logged.
    """
    event = normalize_telegram_update(update)
    if event is None:
        log(event="telegram_update_ignored", updateId=update.get("update_id") if isinstance(update, dict) else None)
        return {"ok": True, "handled": False}

    replies = await run_in_threadpool(handle_event, event)
    payload = [reply_to_dict(r) for r in replies]
    delivery = await run_in_threadpool(send_or_enqueue, str(event.chatId), payload, event.callbackId)
    return {"ok": True, "handled": True, "delivery": delivery}
