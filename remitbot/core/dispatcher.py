import copy
import time
from typing import Callable, Dict, List, Optional, Tuple

from remitbot.api.schemas import InboundEvent
from remitbot.core import auth_flow, guards, home, money_flow, wallet_views
from remitbot.core.errors import CorruptFlowState, FlowError, LeaseLost, SessionBusy
from remitbot.core.replies import Reply
from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics
from remitbot.remit.client import get_remit_client
from remitbot.store.session_repo import load_session, save_session, session_to_dict
from remitbot.utils.lock import session_lock

GENERIC_APOLOGY = "❌ An unexpected error occurred. Please try again."

Handler = Callable[..., List[Reply]]

# Explicit commands match whatever the awaiting state is
COMMANDS: Dict[str, Handler] = {
    "start": home.start_command,
    "help": home.help_command,
    "login": auth_flow.start_login,
    "logout": auth_flow.logout,
    "cancel": guards.cancel_command,
    "mywallets": wallet_views.show_wallets,
    "balance": wallet_views.show_balances,
    "setwallet": wallet_views.set_wallet_command,
    "getdefault": wallet_views.get_default_command,
    "kyc": wallet_views.kyc_command,
    "profile": wallet_views.profile_command,
    "transfer": money_flow.transfer_command,
    "sendemail": money_flow.send_email_command,
    "withdrawwallet": money_flow.withdraw_wallet_command,
    "offramp": money_flow.offramp_command,
    "deposit": money_flow.deposit_command,
    "listtransfers": money_flow.list_transfers_command,
}

ACTIONS: Dict[str, Handler] = {
    "login": auth_flow.start_login,
    "logout": auth_flow.logout,
    "wallets": wallet_views.show_wallets,
    "balance": wallet_views.show_balances,
    "transfer": money_flow.transfer_action,
    "deposit": money_flow.deposit_action,
    "send_email_inline": money_flow.send_email_action,
    "withdraw_wallet_inline": money_flow.withdraw_wallet_action,
    "offramp_bank_inline": money_flow.offramp_bank_action,
    "list_transfers": money_flow.list_transfers_action,
    "dep_chain": money_flow.deposit_chain_action,
}

# Tried in order; each returns None when the awaiting state is not its own
TEXT_HANDLERS: Tuple[Handler, ...] = (
    auth_flow.handle_text,
    money_flow.handle_text,
)


def is_command(name: Optional[str]) -> bool:
    return (name or "").lower() in COMMANDS


def _unknown_action(session, event, client) -> List[Reply]:
    return [Reply("⚠️ That button is no longer available. Send /start for the menu.")]


def _continue_flow(session, event, client) -> List[Reply]:
    for handler in TEXT_HANDLERS:
        replies = handler(session, event, client)
        if replies is not None:
            return replies
    return home.not_understood(session, event, client)


def _as_text(event: InboundEvent) -> InboundEvent:
    """An unregistered /command is just text typed by the user."""
    if event.kind != "command":
        return event
    text = event.text or " ".join(["/" + (event.command or "")] + list(event.args))
    return event.model_copy(update={"kind": "text", "text": text})


def route(event: InboundEvent) -> Tuple[str, Handler, InboundEvent]:
    if event.kind == "command" and is_command(event.command):
        return "command", COMMANDS[event.command.lower()], event
    if event.kind == "action":
        return "action", ACTIONS.get(event.action or "", _unknown_action), event
    return "text", _continue_flow, _as_text(event)


def _translate(err: FlowError, stored, lease=None) -> List[Reply]:
    """
    Single place that turns flow errors into replies.
    Only a corrupt flow is persisted (forced back to idle); every other error
    leaves the stored record exactly as it was before the event.
    """
    if isinstance(err, CorruptFlowState):
        guards.reset_flow(stored)
        save_session(stored, lease)
    return [Reply(err.message)]


def _changed(before, after) -> bool:
    a = session_to_dict(before)
    b = session_to_dict(after)
    a.pop("lastUpdatedAtEpoch", None)
    b.pop("lastUpdatedAtEpoch", None)
    return a != b


def handle_event(event: InboundEvent, client=None) -> List[Reply]:
    """
    Process one inbound event for one chat and return the replies to send.

    The handler mutates a working copy; the copy is written back only when the
    handler returns normally, so an unexpected failure never leaves a half
    updated session behind.
    """
    start_time = time.time()
    chat_id = str(event.chatId)
    kind, handler, event = route(event)
    metrics.increment_event(kind)
    client = client or get_remit_client()

    before_state = after_state = ""
    outcome = "ok"
    try:
        with session_lock(chat_id) as lease:
            stored = load_session(chat_id)
            before_state = after_state = stored.awaitingState
            working = copy.deepcopy(stored)
            try:
                replies = handler(working, event, client)
            except FlowError as e:
                outcome = type(e).__name__
                replies = _translate(e, stored, lease)
                after_state = stored.awaitingState
            else:
                if _changed(stored, working):
                    save_session(working, lease)
                after_state = working.awaitingState
    except SessionBusy as e:
        outcome = "SessionBusy"
        replies = [Reply(e.message)]
    except LeaseLost as e:
        outcome = "LeaseLost"
        metrics.increment_unexpected()
        replies = [Reply(e.message)]
    except Exception as e:
        outcome = "unexpected"
        metrics.increment_unexpected()
        log(
            event="dispatch_unexpected_error",
            chatId=chat_id,
            kind=kind,
            errorType=type(e).__name__,
            error=str(e)[:500],
        )
        replies = [Reply(GENERIC_APOLOGY)]

    log(
        event="event_dispatched",
        chatId=chat_id,
        kind=kind,
        command=event.command if kind == "command" else None,
        action=event.action if kind == "action" else None,
        awaitingBefore=before_state,
        awaitingAfter=after_state,
        outcome=outcome,
        replies=len(replies),
        latencyMs=int((time.time() - start_time) * 1000),
    )
    return replies
