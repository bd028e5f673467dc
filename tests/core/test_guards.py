import pytest
from remitbot.core import guards
from remitbot.core.errors import AlreadyAuthenticated, FlowConflict, NotAuthenticated
from remitbot.store.models import (
    AwaitingDepositChain,
    AwaitingEmail,
    AwaitingOtp,
    AwaitingSendAmount,
    Idle,
    SessionRecord,
)
from decimal import Decimal


def test_begin_flow_rejects_second_flow():
    s = SessionRecord(chatId="1", authToken="t", isAuthenticated=True, flow=AwaitingSendAmount(pendingRecipientEmail="a@b.co"))
    with pytest.raises(FlowConflict) as exc:
        guards.begin_flow(s)
    assert "/cancel" in exc.value.message
    # untouched
    assert s.flow.pendingRecipientEmail == "a@b.co"

def test_begin_login_when_authenticated():
    s = SessionRecord(chatId="1", authToken="t", isAuthenticated=True)
    with pytest.raises(AlreadyAuthenticated):
        guards.begin_flow(s, login=True)

def test_require_auth_returns_token():
    s = SessionRecord(chatId="1", authToken="t", isAuthenticated=True)
    assert guards.require_auth(s) == "t"

def test_require_auth_custom_message():
    s = SessionRecord(chatId="1")
    with pytest.raises(NotAuthenticated) as exc:
        guards.require_auth(s, "❌ Please log in first.")
    assert exc.value.message == "❌ Please log in first."

def test_cancel_when_idle_is_noop():
    s = SessionRecord(chatId="1", authToken="t", isAuthenticated=True, email="u@x.io")
    replies = guards.cancel(s)
    assert replies[0].text == guards.NOTHING_TO_CANCEL
    assert s.awaitingState == "idle"
    assert s.authToken == "t"
    assert s.email == "u@x.io"

def test_cancel_is_idempotent():
    s = SessionRecord(chatId="1", authToken="t", isAuthenticated=True,
                      flow=AwaitingDepositChain(pendingDepositAmount=Decimal("50")))
    first = guards.cancel(s)
    assert first[0].text == "⚠️ Operation canceled."
    assert isinstance(s.flow, Idle)
    second = guards.cancel(s)
    assert second[0].text == guards.NOTHING_TO_CANCEL
    assert s.isAuthenticated is True
    assert s.authToken == "t"

def test_cancel_login_forgets_unverified_email():
    s = SessionRecord(chatId="1", email="user@test.com", otpSessionId="sid-1", flow=AwaitingOtp())
    replies = guards.cancel(s)
    assert "/login" in replies[0].text
    assert s.email is None
    assert s.otpSessionId is None
    assert s.awaitingState == "idle"

def test_cancel_email_step():
    s = SessionRecord(chatId="1", flow=AwaitingEmail())
    replies = guards.cancel(s)
    assert replies[0].text.startswith("⚠️ Operation canceled.")
    assert s.awaitingState == "idle"
