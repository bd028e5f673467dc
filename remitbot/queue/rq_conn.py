from redis import Redis
from rq import Queue
from remitbot.settings import settings


def get_queue() -> Queue:
    # RQ stores pickled payloads, so this connection must not decode responses
    conn = Redis.from_url(settings.REDIS_URL)
    return Queue(settings.RQ_QUEUE_NAME, connection=conn)


def pending_reply_jobs() -> int:
    """Jobs waiting in the reply queue (0 when inline delivery is configured)."""
    if settings.REPLY_DELIVERY_MODE != "rq":
        return 0
    return int(get_queue().count)
