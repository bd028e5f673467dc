from typing import Any, Dict, List, Optional

from rq import Retry, get_current_job

from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics
from remitbot.queue.rq_conn import get_queue
from remitbot.settings import settings
from remitbot.store.redis_conn import get_redis
from remitbot.transport.telegram import deliver_replies

RETRY_INTERVALS = [1, 5, 15]
PROGRESS_TTL_SEC = 3600


def _progress_key(job_id: str) -> str:
    return f"reply:sent:{job_id}"


def deliver_replies_job(chat_id: str, replies: List[Dict[str, Any]], callback_id: Optional[str] = None):
    """
    Background job sending one event's replies to Telegram.
    Failures re-raise so RQ's Retry policy reschedules the job; a retry resumes
    after the last reply Telegram accepted instead of resending the batch.
    """
    job = get_current_job()
    r = get_redis() if job else None
    key = _progress_key(job.id) if job else ""
    already = int(r.get(key) or 0) if r else 0

    def on_sent(count: int) -> None:
        r.set(key, count, ex=PROGRESS_TTL_SEC)

    try:
        log(event="reply_job_start", chatId=str(chat_id), count=len(replies), alreadySent=already)
        sent = deliver_replies(chat_id, replies, callback_id, skip=already, on_sent=on_sent if r else None)
    except Exception as e:
        metrics.increment_reply_failed()
        log(event="reply_job_exception", chatId=str(chat_id), error=str(e)[:500])
        raise

    if r:
        r.delete(key)
    return sent


def retry_policy() -> Optional[Retry]:
    """REPLY_MAX_ATTEMPTS counts the first run; RQ's `max` counts only retries."""
    retries = max(1, int(settings.REPLY_MAX_ATTEMPTS)) - 1
    if not retries:
        return None
    return Retry(max=retries, interval=RETRY_INTERVALS[:retries])


def send_or_enqueue(chat_id: str, replies: List[Dict[str, Any]], callback_id: Optional[str] = None) -> str:
    """Deliver according to REPLY_DELIVERY_MODE; returns how it was handled."""
    if not replies and not callback_id:
        return "empty"

    if settings.REPLY_DELIVERY_MODE == "rq":
        q = get_queue()
        job = q.enqueue(
            deliver_replies_job,
            chat_id,
            replies,
            callback_id,
            retry=retry_policy(),
        )
        log(event="replies_enqueued", chatId=str(chat_id), rq_job_id=getattr(job, "id", "") or "")
        return "queued"

    try:
        deliver_replies(chat_id, replies, callback_id)
        return "sent"
    except Exception as e:
        metrics.increment_reply_failed()
        log(event="reply_send_failed", chatId=str(chat_id), errorType=type(e).__name__, error=str(e)[:500])
        return "failed"
