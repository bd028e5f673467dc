import pytest
from remitbot.store.session_repo import (
    _migrate_session_data,
    load_session,
    save_session,
    session_from_dict,
    session_to_dict,
)
from remitbot.store.models import (
    AwaitingDepositChain,
    AwaitingOtp,
    AwaitingSendAmount,
    AwaitingWithdrawAmount,
    Idle,
    SessionRecord,
)
from unittest.mock import patch, MagicMock
from remitbot.core.errors import LeaseLost
from remitbot.utils.lock import Lease
from decimal import Decimal
import json

def test_migrate_legacy_field_names():
    data = {
        "token": "T",
        "sid": "S",
        "awaiting": "otp",
        "email": "user@test.com",
    }
    migrated = _migrate_session_data(data)
    assert migrated["authToken"] == "T"
    assert migrated["otpSessionId"] == "S"
    assert migrated["awaitingState"] == "awaiting-otp"
    assert "token" not in migrated
    assert "sid" not in migrated

def test_migrate_legacy_flow_fields():
    data = {"awaiting": "deposit-chain", "depositAmount": 50}
    migrated = _migrate_session_data(data)
    assert migrated["awaitingState"] == "awaiting-deposit-chain"
    assert migrated["pendingDepositAmount"] == 50

def test_migrate_unknown_state_becomes_idle():
    migrated = _migrate_session_data({"awaitingState": "sendEmail-confirm"})
    assert migrated["awaitingState"] == "idle"

def test_migrate_purges_undeclared():
    data = {"chatId": "1", "awaitingState": "idle", "legacy_junk": "foo", "lastMessageId": 9}
    migrated = _migrate_session_data(data)
    assert "legacy_junk" not in migrated
    assert "lastMessageId" not in migrated
    assert migrated["chatId"] == "1"

def test_stale_transient_fields_are_dropped():
    # a leftover recipient email from an older flow must not survive into the deposit flow
    s = session_from_dict({
        "chatId": "1",
        "authToken": "T",
        "isAuthenticated": True,
        "awaitingState": "awaiting-deposit-chain",
        "pendingDepositAmount": "12.5",
        "pendingRecipientEmail": "old@test.com",
    })
    assert s.flow == AwaitingDepositChain(pendingDepositAmount=Decimal("12.5"))
    assert "pendingRecipientEmail" not in session_to_dict(s)

def test_token_without_auth_flag_is_dropped():
    s = session_from_dict({"chatId": "1", "authToken": "T", "isAuthenticated": False})
    assert s.authToken is None
    assert s.isAuthenticated is False

def test_auth_flag_without_token_is_cleared():
    s = session_from_dict({"chatId": "1", "isAuthenticated": True})
    assert s.isAuthenticated is False

def test_otp_session_only_while_awaiting_otp():
    s = session_from_dict({"chatId": "1", "otpSessionId": "S", "awaitingState": "idle"})
    assert s.otpSessionId is None
    s = session_from_dict({"chatId": "1", "otpSessionId": "S", "email": "u@test.com", "awaitingState": "awaiting-otp"})
    assert isinstance(s.flow, AwaitingOtp)
    assert s.otpSessionId == "S"

def test_round_trip_keeps_flow_data():
    s = SessionRecord(chatId="1", authToken="T", isAuthenticated=True,
                      flow=AwaitingWithdrawAmount(pendingWithdrawAddress="0xabc"))
    again = session_from_dict(json.loads(json.dumps(session_to_dict(s))))
    assert again.flow == s.flow
    assert again.authToken == "T"

@patch("remitbot.store.session_repo.get_redis")
def test_load_missing_session_is_fresh(mock_get_redis):
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    mock_get_redis.return_value = mock_redis

    s = load_session("77")
    assert s.chatId == "77"
    assert isinstance(s.flow, Idle)
    assert s.isAuthenticated is False
    mock_redis.get.assert_called_with("session:77")

@patch("remitbot.store.session_repo.get_redis")
def test_load_legacy_session(mock_get_redis):
    mock_redis = MagicMock()
    mock_get_redis.return_value = mock_redis
    mock_redis.get.return_value = json.dumps({
        "token": "T",
        "isAuthenticated": True,
        "awaiting": "sendEmail-enter-amount",
        "tempRecipientEmail": "friend@test.com",
        "tempWithdrawAddress": "0xstale",
    })

    s = load_session("12")
    assert s.chatId == "12"
    assert s.authToken == "T"
    assert s.flow == AwaitingSendAmount(pendingRecipientEmail="friend@test.com")

@patch("remitbot.store.session_repo.get_redis")
def test_save_session_writes_json(mock_get_redis):
    mock_redis = MagicMock()
    mock_get_redis.return_value = mock_redis

    s = SessionRecord(chatId="3", authToken="T", isAuthenticated=True,
                      flow=AwaitingDepositChain(pendingDepositAmount=Decimal("50")))
    save_session(s)

    key, raw = mock_redis.set.call_args.args
    assert key == "session:3"
    stored = json.loads(raw)
    assert stored["awaitingState"] == "awaiting-deposit-chain"
    assert stored["pendingDepositAmount"] == "50"
    assert stored["lastUpdatedAtEpoch"] == s.lastUpdatedAtEpoch

@patch("remitbot.store.session_repo.log")
def test_migrate_session_data_logging(mock_log):
    _migrate_session_data({"chatId": "9", "token": "T", "legacy_junk": "foo"})
    mock_log.assert_called_once()
    kwargs = mock_log.call_args.kwargs
    assert kwargs["event"] == "session_migrated"
    assert kwargs["renamedFields"] == 1
    assert kwargs["removedFields"] == 1

@patch("remitbot.store.session_repo.log")
def test_current_record_is_not_logged(mock_log):
    _migrate_session_data({"chatId": "9", "awaitingState": "idle", "authToken": None})
    mock_log.assert_not_called()

def test_unrepresentable_stored_amount_is_discarded():
    s = session_from_dict({
        "chatId": "1", "authToken": "T", "isAuthenticated": True,
        "awaitingState": "awaiting-deposit-chain", "pendingDepositAmount": "1E+30",
    })
    assert s.flow == AwaitingDepositChain(pendingDepositAmount=None)

@patch("remitbot.store.session_repo.get_redis")
def test_save_with_lease_writes_while_lock_is_owned(mock_get_redis):
    mock_redis = MagicMock()
    mock_redis.eval.return_value = 1
    mock_get_redis.return_value = mock_redis

    save_session(SessionRecord(chatId="3"), Lease(key="lock:session:3", token="tok"))
    args = mock_redis.eval.call_args.args
    assert args[1:5] == (2, "lock:session:3", "session:3", "tok")
    assert json.loads(args[5])["chatId"] == "3"
    mock_redis.set.assert_not_called()

@patch("remitbot.store.session_repo.get_redis")
def test_save_with_expired_lease_is_refused(mock_get_redis):
    mock_redis = MagicMock()
    mock_redis.eval.return_value = 0
    mock_get_redis.return_value = mock_redis

    with pytest.raises(LeaseLost):
        save_session(SessionRecord(chatId="3"), Lease(key="lock:session:3", token="stale"))
    mock_redis.set.assert_not_called()
