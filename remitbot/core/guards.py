"""
Guard/Cancel layer: at most one active flow per chat, plus a universal abort.
"""
from typing import List

from remitbot.core import state_machine as sm
from remitbot.core.errors import AlreadyAuthenticated, FlowConflict, NotAuthenticated
from remitbot.core.replies import Reply
from remitbot.store.models import Idle, SessionRecord

NOTHING_TO_CANCEL = "ℹ️ There's no ongoing operation to cancel."


def begin_flow(session: SessionRecord, login: bool = False) -> None:
    if session.awaitingState != sm.IDLE:
        raise FlowConflict()
    if login and session.isAuthenticated:
        raise AlreadyAuthenticated()


def require_auth(session: SessionRecord, message: str = "") -> str:
    """Returns the credential so callers never touch an unset token."""
    if not session.isAuthenticated or not session.authToken:
        raise NotAuthenticated(message or None)
    return session.authToken


def reset_flow(session: SessionRecord) -> None:
    """Back to idle; an interrupted login also forgets its unverified email."""
    if session.awaitingState in sm.AUTH_STATES and not session.isAuthenticated:
        session.email = None
    session.otpSessionId = None
    session.flow = Idle()


def cancel(session: SessionRecord) -> List[Reply]:
    if session.awaitingState == sm.IDLE:
        return [Reply(NOTHING_TO_CANCEL)]
    was_login = session.awaitingState in sm.AUTH_STATES
    reset_flow(session)
    if was_login:
        return [Reply("⚠️ Operation canceled. You can /login again when ready.")]
    return [Reply("⚠️ Operation canceled.")]


def cancel_command(session, event, client) -> List[Reply]:
    return cancel(session)
