import json
import time
from dataclasses import fields as dc_fields
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from remitbot.store.redis_conn import get_redis
from remitbot.store.models import FLOW_STATES, TRANSIENT_KEYS, FlowState, Idle, SessionRecord
from remitbot.core import state_machine as sm
from remitbot.core.amounts import is_representable
from remitbot.core.errors import LeaseLost
from remitbot.observability.logging import log

PREFIX = "session:"

# Field names written by the first (grammY) release of the bot
LEGACY_FIELDS = {
    "token": "authToken",
    "sid": "otpSessionId",
    "awaiting": "awaitingState",
    "depositAmount": "pendingDepositAmount",
    "tempRecipientEmail": "pendingRecipientEmail",
    "tempWithdrawAddress": "pendingWithdrawAddress",
}

LEGACY_STATES = {
    "none": sm.IDLE,
    "email": sm.AWAITING_EMAIL,
    "otp": sm.AWAITING_OTP,
    "deposit-amount": sm.AWAITING_DEPOSIT_AMOUNT,
    "deposit-chain": sm.AWAITING_DEPOSIT_CHAIN,
    "sendEmail-enter-email": sm.AWAITING_SEND_EMAIL,
    "sendEmail-enter-amount": sm.AWAITING_SEND_AMOUNT,
    "withdrawWallet-enter-address": sm.AWAITING_WITHDRAW_ADDRESS,
    "withdrawWallet-enter-amount": sm.AWAITING_WITHDRAW_AMOUNT,
    "offramp-enter-invoice": sm.AWAITING_OFFRAMP_INVOICE,
}

_RECORD_KEYS = {"chatId", "authToken", "email", "otpSessionId", "isAuthenticated", "lastUpdatedAtEpoch"}

_SAVE_IF_OWNER = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    redis.call("set", KEYS[2], ARGV[2])
    return 1
else
    return 0
end
"""


def _key(chat_id: str) -> str:
    return f"{PREFIX}{chat_id}"


def _migrate_session_data(data: dict) -> dict:
    """
    Backward-compat migration for stored sessions.
    Renames legacy keys, maps legacy awaiting values onto the current states and
    drops anything the current record does not declare.
    """
    renamed = 0
    for old, new in LEGACY_FIELDS.items():
        if old in data:
            val = data.pop(old)
            if data.get(new) is None:
                data[new] = val
            renamed += 1

    state = data.get("awaitingState")
    if state in LEGACY_STATES:
        data["awaitingState"] = LEGACY_STATES[state]
    elif state not in sm.ALL_STATES:
        data["awaitingState"] = sm.IDLE

    allowed = _RECORD_KEYS | {"awaitingState"} | set(TRANSIENT_KEYS)
    removed = 0
    for k in list(data.keys()):
        if k not in allowed:
            del data[k]
            removed += 1

    if renamed or removed:
        log(
            event="session_migrated",
            chatId=data.get("chatId") or "",
            renamedFields=int(renamed),
            removedFields=int(removed),
            awaitingState=data.get("awaitingState"),
        )
    return data


def _to_decimal(v: Any):
    if v is None or v == "":
        return None
    try:
        d = Decimal(str(v))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() and is_representable(d) else None


def _flow_from_data(data: dict) -> FlowState:
    """Rehydrate the tagged flow value; only the active flow's own fields survive."""
    cls = FLOW_STATES.get(data.get("awaitingState") or sm.IDLE, Idle)
    kwargs = {}
    for f in dc_fields(cls):
        val = data.get(f.name)
        if f.name == "pendingDepositAmount":
            val = _to_decimal(val)
        kwargs[f.name] = val
    return cls(**kwargs)


def session_to_dict(session: SessionRecord) -> Dict[str, Any]:
    data = {
        "chatId": session.chatId,
        "authToken": session.authToken,
        "email": session.email,
        "otpSessionId": session.otpSessionId,
        "isAuthenticated": bool(session.isAuthenticated),
        "awaitingState": session.awaitingState,
        "lastUpdatedAtEpoch": session.lastUpdatedAtEpoch,
    }
    for k, v in session.flow.transient().items():
        data[k] = str(v) if isinstance(v, Decimal) else v
    return data


def session_from_dict(data: dict) -> SessionRecord:
    data = _migrate_session_data(dict(data))
    return SessionRecord(
        chatId=str(data.get("chatId") or ""),
        authToken=data.get("authToken"),
        email=data.get("email"),
        otpSessionId=data.get("otpSessionId"),
        isAuthenticated=bool(data.get("isAuthenticated")),
        flow=_flow_from_data(data),
        lastUpdatedAtEpoch=data.get("lastUpdatedAtEpoch"),
    )


def load_session(chat_id: str) -> SessionRecord:
    r = get_redis()
    raw = r.get(_key(chat_id))
    if not raw:
        s = SessionRecord(chatId=str(chat_id))
        s.lastUpdatedAtEpoch = int(time.time())
        return s

    data = json.loads(raw)
    data["chatId"] = str(chat_id)
    return session_from_dict(data)


def save_session(session: SessionRecord, lease: Optional[Any] = None) -> None:
    """
    Persist the record. With a lease from session_lock the write happens only
    while that lease still owns the chat lock; otherwise LeaseLost is raised.
    """
    r = get_redis()
    session.lastUpdatedAtEpoch = int(time.time())
    payload = json.dumps(session_to_dict(session))
    if lease is None:
        r.set(_key(session.chatId), payload)
        return

    if not r.eval(_SAVE_IF_OWNER, 2, lease.key, _key(session.chatId), lease.token, payload):
        log(event="session_save_lease_lost", chatId=session.chatId, awaitingState=session.awaitingState)
        raise LeaseLost(session.chatId)
