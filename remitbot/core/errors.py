"""
Error kinds raised by the flow engine and the remittance client.

Every FlowError carries the text shown to the user; the dispatcher is the
single place that turns them into replies and decides what gets persisted.
"""
from typing import Optional


class FlowError(Exception):
    default_message = "❌ Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FlowError):
    """Malformed or out-of-range input; the user retries the same step."""


class FlowConflict(FlowError):
    default_message = "⚠️ You're already in the middle of an operation. Send /cancel to abort first."


class AlreadyAuthenticated(FlowError):
    default_message = "✅ You are already logged in. Use /logout to log out first."


class NotAuthenticated(FlowError):
    default_message = "❌ Please /login first."


class CorruptFlowState(FlowError):
    """Stored flow data contradicts the awaiting state; the flow is reset."""
    default_message = "❌ Something went wrong. Please /cancel and try again."


class RemoteError(FlowError):
    """The remittance platform rejected a call or could not be reached."""
    default_message = "Unknown error occurred"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, op: str = ""):
        self.status_code = status_code
        self.op = op
        super().__init__(message)


class SessionBusy(FlowError):
    default_message = "⏳ Still working on your previous message. Please try again in a moment."

    def __init__(self, chat_id: str = ""):
        self.chat_id = chat_id
        super().__init__()


class LeaseLost(FlowError):
    """The chat lock expired mid-event; the working copy was not written."""
    default_message = "⚠️ That took too long and was not saved. Please check /listTransfers before trying again."

    def __init__(self, chat_id: str = ""):
        self.chat_id = chat_id
        super().__init__()
