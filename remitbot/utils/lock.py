from contextlib import contextmanager
from dataclasses import dataclass
import time
import uuid
from typing import Optional
from remitbot.store.redis_conn import get_redis
from remitbot.core.errors import SessionBusy
from remitbot.settings import settings
from remitbot.observability.logging import log
from redis.exceptions import RedisError

# Most platform calls one event can make (OTP verify, then the profile fetch)
REMOTE_CALLS_PER_EVENT = 2
# httpx applies its timeout per phase: connect, write, read, pool
HTTPX_TIMEOUT_PHASES = 4
LOCK_MARGIN_MS = 5000

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


@dataclass(frozen=True)
class Lease:
    """Proof of lock ownership; writers compare `token` against the lock key."""
    key: str
    token: str


def lock_key(chat_id: str) -> str:
    return f"lock:session:{chat_id}"


def default_ttl_ms() -> int:
    """Long enough for the slowest handler to finish before the lock can expire."""
    if settings.SESSION_LOCK_TTL_MS:
        return int(settings.SESSION_LOCK_TTL_MS)
    per_call_ms = float(settings.REMIT_TIMEOUT_SEC) * 1000 * HTTPX_TIMEOUT_PHASES
    return int(REMOTE_CALLS_PER_EVENT * per_call_ms + LOCK_MARGIN_MS)


@contextmanager
def session_lock(chat_id: str, ttl_ms: Optional[int] = None, spins: Optional[int] = None):
    """
    Distributed lock to ensure a single in-flight handler per chat.
    Duplicate or retried deliveries of the same chat wait briefly, then give up.
    Yields a Lease that save_session uses to refuse a write once the lock is lost.
    """
    r = get_redis()
    key = lock_key(chat_id)
    token = uuid.uuid4().hex
    ttl_ms = int(ttl_ms or default_ttl_ms())
    spins = int(spins if spins is not None else settings.SESSION_LOCK_SPINS)
    acquired = bool(r.set(key, token, px=ttl_ms, nx=True))

    try:
        if not acquired:
            for _ in range(spins):
                time.sleep(0.1)
                if r.set(key, token, px=ttl_ms, nx=True):
                    acquired = True
                    break

            if not acquired:
                raise SessionBusy(chat_id)

        yield Lease(key=key, token=token)
    finally:
        if acquired:
            # Release only if we still own it
            try:
                r.eval(_RELEASE_SCRIPT, 1, key, token)
            except RedisError as e:
                # the TTL frees it anyway
                log(event="session_lock_release_failed", chatId=str(chat_id), error=str(e)[:200])
