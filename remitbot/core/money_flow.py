"""
Money-movement flows: send-to-email, withdraw-to-wallet, bank offramp,
deposit and transfer history. Every entry point requires a logged-in chat.

Single-shot commands never touch the awaiting state, so a remote failure there
simply leaves the session as it was. The stepwise deposit keeps the user on
the chain menu after a failed deposit so another chain can be tried without
re-entering the amount. The inline send/withdraw/offramp flows return to idle
once the platform has answered, success or not.
"""
from decimal import Decimal
from typing import List, Optional

from remitbot.core import state_machine as sm
from remitbot.core.amounts import (
    format_amount,
    from_base_units,
    parse_min_amount,
    parse_positive_amount,
    to_base_units,
)
from remitbot.core.errors import CorruptFlowState, RemoteError, ValidationError
from remitbot.core.guards import begin_flow, require_auth
from remitbot.core.replies import MARKDOWN, Reply, chain_menu, md_code, md_escape, transfer_menu
from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics
from remitbot.remit.schemas import Transfer
from remitbot.settings import settings
from remitbot.store.models import (
    AwaitingDepositAmount,
    AwaitingDepositChain,
    AwaitingOfframpInvoice,
    AwaitingSendAmount,
    AwaitingSendEmail,
    AwaitingWithdrawAddress,
    AwaitingWithdrawAmount,
    Idle,
    SessionRecord,
)

COMMAND_ESCAPE = "/"

SEND_USAGE = "Usage: /sendEmail <recipientEmail> <amount> [currency=USDC] [purposeCode=self]"
WITHDRAW_USAGE = "Usage: /withdrawWallet <walletAddress> <amount> [currency=USDC] [purposeCode=self]"
OFFRAMP_USAGE = "Usage: /offramp <invoiceNumber>"
DEPOSIT_USAGE = "Usage: /deposit <amount> <chainId>"
HISTORY_USAGE = "Usage: /listTransfers [page] [limit]"


def _deposit_prompt() -> str:
    return f"🪙 Please enter the amount of USDC to deposit (minimum {format_amount(settings.DEPOSIT_MIN_AMOUNT)} USDC)."


def _withdraw_min_message() -> str:
    return f"❌ Minimum withdraw is {format_amount(settings.WITHDRAW_MIN_AMOUNT)} USDC."


def _looks_like_email(value: str) -> bool:
    if not value or " " in value or value.count("@") != 1:
        return False
    local, _, domain = value.partition("@")
    return bool(local) and "." in domain


def _shown_amount(transfer: Transfer, fallback: Decimal) -> str:
    if transfer.amount is None:
        return format_amount(fallback)
    return format_amount(from_base_units(transfer.amount))


# ---------------------------------------------------------------------------
# Remote operations shared by the one-line commands and the inline flows
# ---------------------------------------------------------------------------
def _send_to_email(session: SessionRecord, client, email: str, amount: Decimal,
                   currency: str, purpose_code: str) -> List[Reply]:
    token = require_auth(session)
    transfer = client.send_to_email(
        token,
        email=email,
        amount=to_base_units(amount),
        currency=currency,
        purpose_code=purpose_code,
    )
    metrics.increment_flow_completed("send_email")
    log(event="transfer_created", chatId=session.chatId, op="send_to_email", transferId=str(transfer.id))
    return [Reply(
        f"✅ Transfer initiated!\n"
        f"ID: `{transfer.id}`\n"
        f"Amount: `{_shown_amount(transfer, amount)} {transfer.currency or currency}`\n"
        f"Status: `{transfer.status}`",
        parseMode=MARKDOWN,
    )]


def _withdraw_to_wallet(session: SessionRecord, client, address: str, amount: Decimal,
                        currency: str, purpose_code: str) -> List[Reply]:
    token = require_auth(session)
    transfer = client.withdraw_to_wallet(
        token,
        address=address,
        amount=to_base_units(amount),
        currency=currency,
        purpose_code=purpose_code,
    )
    metrics.increment_flow_completed("withdraw_wallet")
    log(event="transfer_created", chatId=session.chatId, op="withdraw_to_wallet", transferId=str(transfer.id))
    return [Reply(
        f"✅ External Wallet Withdrawal!\n"
        f"• Transfer ID: `{transfer.id}`\n"
        f"• Amount: `{_shown_amount(transfer, amount)} {transfer.currency or currency}`\n"
        f"• Status: `{transfer.status}`",
        parseMode=MARKDOWN,
    )]


def _withdraw_to_bank(session: SessionRecord, client, invoice_number: str) -> List[Reply]:
    token = require_auth(session)
    transfer = client.withdraw_to_bank(
        token,
        invoice_number=invoice_number,
        purpose_code=settings.DEFAULT_PURPOSE_CODE,
        source_of_funds=settings.DEFAULT_SOURCE_OF_FUNDS,
        recipient_relationship=settings.DEFAULT_RECIPIENT_RELATIONSHIP,
    )
    metrics.increment_flow_completed("offramp")
    log(event="transfer_created", chatId=session.chatId, op="withdraw_to_bank", transferId=str(transfer.id))
    return [Reply(
        f"✅ *Bank Offramp Initiated!*\n\n"
        f"• Transfer ID: `{transfer.id}`\n"
        f"• Status: `{transfer.status}`\n"
        f"• Invoice: {md_code(transfer.invoiceNumber or invoice_number)}\n",
        parseMode=MARKDOWN,
    )]


def _deposit(session: SessionRecord, client, amount: Decimal, chain_id: int) -> List[Reply]:
    token = require_auth(session)
    transfer = client.deposit(
        token,
        amount=to_base_units(amount),
        source_of_funds=settings.DEFAULT_SOURCE_OF_FUNDS,
        chain_id=chain_id,
    )
    metrics.increment_flow_completed("deposit")
    log(event="transfer_created", chatId=session.chatId, op="deposit", transferId=str(transfer.id), chainId=chain_id)
    return [Reply(
        f"✅ *Deposit Initiated!*\n"
        f"• Transfer ID: `{transfer.id}`\n"
        f"• Status: `{transfer.status}`\n"
        f"• Amount: `{format_amount(amount)} USDC`\n"
        f"• Chain: `{chain_id}`",
        parseMode=MARKDOWN,
    )]


def _failed(prefix: str, err: RemoteError) -> List[Reply]:
    return [Reply(f"❌ {prefix}: {err.message}")]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def transfer_command(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in to initiate transfers.")
    return [Reply("↗️ Choose a transfer option:", transfer_menu())]


def send_email_command(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session)
    args = list(event.args)
    if len(args) < 2:
        raise ValidationError(SEND_USAGE)
    email, raw_amount = args[0], args[1]
    currency = args[2] if len(args) > 2 else settings.DEFAULT_CURRENCY
    purpose_code = args[3] if len(args) > 3 else settings.DEFAULT_PURPOSE_CODE
    amount = parse_positive_amount(raw_amount, "❌ Invalid amount. Must be > 0")
    try:
        return _send_to_email(session, client, email, amount, currency, purpose_code)
    except RemoteError as e:
        return _failed("Failed to send", e)


def withdraw_wallet_command(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session)
    args = list(event.args)
    if len(args) < 2:
        raise ValidationError(WITHDRAW_USAGE)
    address, raw_amount = args[0], args[1]
    currency = args[2] if len(args) > 2 else settings.DEFAULT_CURRENCY
    purpose_code = args[3] if len(args) > 3 else settings.DEFAULT_PURPOSE_CODE
    amount = parse_min_amount(raw_amount, settings.WITHDRAW_MIN_AMOUNT, _withdraw_min_message())
    try:
        return _withdraw_to_wallet(session, client, address, amount, currency, purpose_code)
    except RemoteError as e:
        return _failed("Failed to withdraw", e)


def offramp_command(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session)
    if not event.args:
        raise ValidationError(OFFRAMP_USAGE)
    try:
        return _withdraw_to_bank(session, client, event.args[0])
    except RemoteError as e:
        return _failed("Failed to do bank offramp", e)


def deposit_command(session: SessionRecord, event, client) -> List[Reply]:
    """
    /deposit              -> stepwise: ask for the amount, then the chain
    /deposit <amount>     -> stepwise from the chain menu
    /deposit <amount> <chainId> -> one call, no state change
    """
    require_auth(session)
    args = list(event.args)
    if not args:
        begin_flow(session)
        session.flow = AwaitingDepositAmount()
        return [Reply(_deposit_prompt())]

    minimum = settings.DEPOSIT_QUICK_MIN_AMOUNT
    amount = parse_min_amount(
        args[0], minimum, f"❌ Minimum deposit is {format_amount(minimum)} USDC. {DEPOSIT_USAGE}"
    )
    if len(args) < 2:
        begin_flow(session)
        session.flow = AwaitingDepositChain(pendingDepositAmount=amount)
        return [Reply("Select which network to deposit on:", chain_menu())]

    try:
        chain_id = int(args[1])
    except ValueError:
        raise ValidationError(f"❌ Invalid chain ID. {DEPOSIT_USAGE}")
    try:
        return _deposit(session, client, amount, chain_id)
    except RemoteError as e:
        return _failed("Failed to deposit", e)


def _page_args(args: List[str]):
    try:
        page = int(args[0]) if len(args) > 0 else 1
        limit = int(args[1]) if len(args) > 1 else settings.TRANSFER_PAGE_LIMIT
    except ValueError:
        raise ValidationError(HISTORY_USAGE)
    if page < 1 or limit < 1:
        raise ValidationError(HISTORY_USAGE)
    return page, limit


def show_transfers(session: SessionRecord, client, page: int, limit: int) -> List[Reply]:
    token = require_auth(session)
    try:
        result = client.list_transfers(token, page, limit)
    except RemoteError as e:
        return _failed("Failed to list transfers", e)
    if not result.data:
        return [Reply("No transfers found for your account.")]

    lines = [f"📃 *Transfers (Page {result.page}):*"]
    for i, t in enumerate(result.data, start=1):
        entry = (
            f"\n*{i}.* ID: `{t.id}`\n"
            f"   Status: `{t.status}`, Type: `{t.type}`\n"
            f"   Amount: `{format_amount(from_base_units(t.amount))} USDC`"
        )
        if t.destination_address:
            entry += f"\n   Destination: {md_escape(t.destination_address)}"
        lines.append(entry)
    return [Reply("\n".join(lines), parseMode=MARKDOWN)]


def list_transfers_command(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session)
    page, limit = _page_args(list(event.args))
    return show_transfers(session, client, page, limit)


# ---------------------------------------------------------------------------
# Button actions
# ---------------------------------------------------------------------------
def transfer_action(session: SessionRecord, event, client) -> List[Reply]:
    return transfer_command(session, event, client)


def deposit_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    begin_flow(session)
    session.flow = AwaitingDepositAmount()
    return [Reply(_deposit_prompt())]


def send_email_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    begin_flow(session)
    session.flow = AwaitingSendEmail()
    return [Reply("📧 Enter the recipient's email address:")]


def withdraw_wallet_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    begin_flow(session)
    session.flow = AwaitingWithdrawAddress()
    return [Reply("💸 Enter the destination wallet address:")]


def offramp_bank_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    begin_flow(session)
    session.flow = AwaitingOfframpInvoice()
    return [Reply("🏦 Enter the invoice number for the bank offramp:")]


def list_transfers_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    return show_transfers(session, client, 1, settings.TRANSFER_PAGE_LIMIT)


def deposit_chain_action(session: SessionRecord, event, client) -> List[Reply]:
    require_auth(session, "❌ Please log in first.")
    if session.awaitingState != sm.AWAITING_DEPOSIT_CHAIN:
        raise ValidationError("❌ Not expecting a deposit chain selection right now.")
    amount = session.flow.pendingDepositAmount
    if amount is None:
        raise CorruptFlowState()
    try:
        chain_id = int(event.params.get("chainId"))
    except (TypeError, ValueError):
        raise ValidationError("❌ Invalid chain selection.")

    try:
        replies = _deposit(session, client, amount, chain_id)
    except RemoteError as e:
        # stay on the chain menu; the amount is kept for the next choice
        log(event="deposit_chain_failed", chatId=session.chatId, chainId=chain_id, error=e.message)
        return [
            Reply(f"❌ {e.message}\nTry a different chain?"),
            Reply("Select a different network:", chain_menu()),
        ]
    session.flow = Idle()
    return replies


# ---------------------------------------------------------------------------
# Free-text steps
# ---------------------------------------------------------------------------
def _on_deposit_amount(session: SessionRecord, text: str, client) -> List[Reply]:
    minimum = settings.DEPOSIT_MIN_AMOUNT
    amount = parse_min_amount(text, minimum, f"❌ Minimum deposit is {format_amount(minimum)} USDC. Try again:")
    session.flow = AwaitingDepositChain(pendingDepositAmount=amount)
    return [Reply("Select which network to deposit on:", chain_menu())]


def _on_send_email(session: SessionRecord, text: str, client) -> List[Reply]:
    email = text.strip()
    if not _looks_like_email(email):
        raise ValidationError("❌ That doesn't look like an email address. Try again:")
    session.flow = AwaitingSendAmount(pendingRecipientEmail=email)
    return [Reply(f"💵 How much {settings.DEFAULT_CURRENCY} should be sent to {email}?")]


def _on_send_amount(session: SessionRecord, text: str, client) -> List[Reply]:
    email = session.flow.pendingRecipientEmail
    if not email:
        raise CorruptFlowState()
    amount = parse_positive_amount(text, "❌ Invalid amount. Must be > 0. Try again:")
    session.flow = Idle()
    try:
        return _send_to_email(session, client, email, amount,
                              settings.DEFAULT_CURRENCY, settings.DEFAULT_PURPOSE_CODE)
    except RemoteError as e:
        return _failed("Failed to send", e)


def _on_withdraw_address(session: SessionRecord, text: str, client) -> List[Reply]:
    address = text.strip()
    if not address or " " in address:
        raise ValidationError("❌ Please enter a single wallet address:")
    session.flow = AwaitingWithdrawAmount(pendingWithdrawAddress=address)
    return [Reply(
        f"💵 How much {settings.DEFAULT_CURRENCY} should be withdrawn "
        f"(minimum {format_amount(settings.WITHDRAW_MIN_AMOUNT)})?"
    )]


def _on_withdraw_amount(session: SessionRecord, text: str, client) -> List[Reply]:
    address = session.flow.pendingWithdrawAddress
    if not address:
        raise CorruptFlowState()
    amount = parse_min_amount(text, settings.WITHDRAW_MIN_AMOUNT, _withdraw_min_message() + " Try again:")
    session.flow = Idle()
    try:
        return _withdraw_to_wallet(session, client, address, amount,
                                   settings.DEFAULT_CURRENCY, settings.DEFAULT_PURPOSE_CODE)
    except RemoteError as e:
        return _failed("Failed to withdraw", e)


def _on_offramp_invoice(session: SessionRecord, text: str, client) -> List[Reply]:
    invoice = text.strip()
    if not invoice or " " in invoice:
        raise ValidationError("❌ Please enter a single invoice number:")
    session.flow = Idle()
    try:
        return _withdraw_to_bank(session, client, invoice)
    except RemoteError as e:
        return _failed("Failed to do bank offramp", e)


_ABORT_MESSAGES = {
    sm.AWAITING_DEPOSIT_AMOUNT: "Deposit flow aborted. Use /deposit again if you want to retry.",
    sm.AWAITING_DEPOSIT_CHAIN: "Deposit flow aborted. Use /deposit again if you want to retry.",
    sm.AWAITING_SEND_EMAIL: "Send flow aborted. Use /transfer to start again.",
    sm.AWAITING_SEND_AMOUNT: "Send flow aborted. Use /transfer to start again.",
    sm.AWAITING_WITHDRAW_ADDRESS: "Withdraw flow aborted. Use /transfer to start again.",
    sm.AWAITING_WITHDRAW_AMOUNT: "Withdraw flow aborted. Use /transfer to start again.",
    sm.AWAITING_OFFRAMP_INVOICE: "Offramp flow aborted. Use /transfer to start again.",
}

_TEXT_STEPS = {
    sm.AWAITING_DEPOSIT_AMOUNT: _on_deposit_amount,
    sm.AWAITING_SEND_EMAIL: _on_send_email,
    sm.AWAITING_SEND_AMOUNT: _on_send_amount,
    sm.AWAITING_WITHDRAW_ADDRESS: _on_withdraw_address,
    sm.AWAITING_WITHDRAW_AMOUNT: _on_withdraw_amount,
    sm.AWAITING_OFFRAMP_INVOICE: _on_offramp_invoice,
}


def handle_text(session: SessionRecord, event, client) -> Optional[List[Reply]]:
    """Declines (returns None) unless the chat is on a money-movement step."""
    state = session.awaitingState
    if state not in sm.MONEY_STATES:
        return None

    text = (event.text or "").strip()
    # an unrecognised /command typed mid-flow aborts the flow instead of being parsed
    if text.startswith(COMMAND_ESCAPE):
        session.flow = Idle()
        return [Reply(_ABORT_MESSAGES[state])]

    if state == sm.AWAITING_DEPOSIT_CHAIN:
        return [Reply("Please pick a network from the menu (or /cancel):", chain_menu())]

    require_auth(session)
    return _TEXT_STEPS[state](session, text, client)
