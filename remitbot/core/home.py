from typing import List

from remitbot.core.replies import Reply, login_keyboard, main_menu
from remitbot.store.models import SessionRecord

NOT_UNDERSTOOD = "🤔 Sorry, I didn't understand that. Send /help to see what I can do."

LOGGED_OUT_HELP = (
    "You are currently logged out. Basic commands:\n\n"
    "• /start - Show main menu\n"
    "• /login - Email OTP login\n"
    "• /logout - Log out\n"
    "• /cancel - Cancel an in-progress operation\n\n"
    "Log in to see more commands."
)

LOGGED_IN_HELP = (
    "🔹 /mywallets - List wallets\n"
    "🔹 /balance - Show balances\n"
    "🔹 /setwallet <walletId> - Set default wallet\n"
    "🔹 /getdefault - Show default wallet\n"
    "🔹 /transfer - Transfer menu\n"
    "🔹 /sendEmail <email> <amount> - Send to an email\n"
    "🔹 /withdrawWallet <address> <amount> - Withdraw to a wallet\n"
    "🔹 /offramp <invoiceNumber> - Withdraw to bank\n"
    "🔹 /deposit [amount] [chainId] - Deposit USDC\n"
    "🔹 /listTransfers [page] [limit] - Transfer history\n"
    "🔹 /kyc - KYC status\n"
    "🔹 /profile - Profile details\n"
    "🔹 /cancel - Cancel an in-progress operation\n"
    "🔹 /logout - Log out"
)


def start_command(session: SessionRecord, event, client) -> List[Reply]:
    if session.isAuthenticated:
        return [Reply(f"🤖 Welcome back, {session.email or 'user'}!", main_menu())]
    return [Reply(
        "🤖 Welcome to the Copperx Bot.\nPlease log in to access your wallet and manage your funds.",
        login_keyboard(),
    )]


def help_command(session: SessionRecord, event, client) -> List[Reply]:
    return [Reply(LOGGED_IN_HELP if session.isAuthenticated else LOGGED_OUT_HELP)]


def not_understood(session: SessionRecord, event, client) -> List[Reply]:
    return [Reply(NOT_UNDERSTOOD)]
