"""
Auth flow: idle -> awaiting-email -> awaiting-otp -> idle (authenticated).

A failed code request sends the user back to idle; a wrong one-time code keeps
them on the OTP step so they can retype it (or /cancel).
"""
from typing import List, Optional

from remitbot.core import state_machine as sm
from remitbot.core.errors import CorruptFlowState, NotAuthenticated, RemoteError, ValidationError
from remitbot.core.guards import begin_flow
from remitbot.core.replies import Reply, login_keyboard, main_menu
from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics
from remitbot.store.models import AwaitingEmail, AwaitingOtp, Idle, SessionRecord

EMAIL_PROMPT = "🔑 Please enter your email address to log in:"
OTP_PROMPT = "✅ An OTP has been sent to your email. Please enter the one-time password:"
OTP_RETRY = "⌛ Please enter the correct OTP, or send /cancel to abort and start over."


def start_login(session: SessionRecord, event, client) -> List[Reply]:
    begin_flow(session, login=True)
    session.flow = AwaitingEmail()
    return [Reply(EMAIL_PROMPT)]


def submit_email(session: SessionRecord, text: str, client) -> List[Reply]:
    email = (text or "").strip()
    if not email:
        raise ValidationError(EMAIL_PROMPT)
    try:
        challenge = client.request_code(email)
    except RemoteError as e:
        log(event="login_code_request_failed", chatId=session.chatId, error=e.message)
        session.flow = Idle()
        session.email = None
        session.otpSessionId = None
        return [Reply(f"❌ {e.message}")]

    session.flow = AwaitingOtp()
    session.email = challenge.email
    session.otpSessionId = challenge.sessionId
    return [Reply(OTP_PROMPT)]


def _display_name(session: SessionRecord, client) -> str:
    """Best effort: the login already succeeded, a profile failure only costs the greeting."""
    name = session.email or "your account"
    try:
        profile = client.get_profile(session.authToken)
    except RemoteError as e:
        log(event="login_profile_fetch_failed", chatId=session.chatId, error=e.message)
        return name
    return profile.display_name or name


def submit_otp(session: SessionRecord, text: str, client) -> List[Reply]:
    otp = (text or "").strip()
    if not session.email or not session.otpSessionId:
        raise CorruptFlowState()
    if not otp:
        raise ValidationError(OTP_RETRY)
    try:
        auth = client.verify_code(session.email, otp, session.otpSessionId)
    except RemoteError as e:
        log(event="login_code_rejected", chatId=session.chatId, error=e.message)
        return [Reply(f"❌ {e.message}"), Reply(OTP_RETRY)]

    session.authToken = auth.credential
    session.isAuthenticated = True
    session.otpSessionId = None
    session.flow = Idle()
    metrics.increment_flow_completed("login")

    display_name = _display_name(session, client)
    return [Reply(f"✅ Login successful! You are now logged in as {display_name}.", main_menu())]


def logout(session: SessionRecord, event, client) -> List[Reply]:
    if not session.isAuthenticated:
        raise NotAuthenticated("ℹ️ You are not logged in.")
    prev_email = session.email
    session.authToken = None
    session.email = None
    session.otpSessionId = None
    session.isAuthenticated = False
    session.flow = Idle()
    metrics.increment_flow_completed("logout")
    return [Reply(f"🔓 Logged out of {prev_email or 'your account'}.", login_keyboard())]


def handle_text(session: SessionRecord, event, client) -> Optional[List[Reply]]:
    """Declines (returns None) unless the chat is on a login step."""
    if session.awaitingState == sm.AWAITING_EMAIL:
        return submit_email(session, event.text, client)
    if session.awaitingState == sm.AWAITING_OTP:
        return submit_otp(session, event.text, client)
    return None
