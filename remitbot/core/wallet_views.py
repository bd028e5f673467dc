"""Read-only account views: KYC, profile, wallets, balances, default wallet."""
from typing import List

from remitbot.core.errors import RemoteError, ValidationError
from remitbot.core.guards import require_auth
from remitbot.core.replies import MARKDOWN, Reply, md_escape, network_name
from remitbot.settings import settings
from remitbot.store.models import SessionRecord


def kyc_command(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session, "❌ You must be logged in to check your KYC status. Use /login first.")
    portal = settings.KYC_PORTAL_URL
    try:
        page = client.get_kyc_status(token)
    except RemoteError as e:
        return [Reply(f"❌ Failed to fetch KYC status: {e.message}")]
    if not page.records:
        return [Reply(f"No KYC record found. If you haven't started, please visit {portal}")]

    status = page.records[0].status
    if status == "approved":
        return [Reply("✅ Your KYC is approved! You can use all wallet features.")]
    if status == "pending":
        return [Reply(f"⌛ Your KYC is still pending. Please visit {portal} to complete any steps.")]
    if status in ("failed", "rejected"):
        return [Reply(f"❌ Your KYC is rejected or failed. Please contact support or reapply at {portal}")]
    return [Reply(f"Your KYC status is: {status}. Visit {portal} for details.")]


def profile_command(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session)
    try:
        p = client.get_profile(token)
    except RemoteError as e:
        return [Reply(f"❌ Could not fetch profile: {e.message}")]
    return [Reply(
        f"👤 *Profile Details*\n\n"
        f"ID: `{p.id}`\n"
        f"Name: {md_escape(p.display_name)}\n"
        f"Email: {md_escape(p.email)}\n"
        f"Role: {md_escape(p.role)}\n"
        f"Wallet Address: {md_escape(p.walletAddress)}\n"
        f"Status: {md_escape(p.status)}",
        parseMode=MARKDOWN,
    )]


def show_wallets(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session, "❌ Please log in to view your wallets.")
    try:
        wallets = client.list_wallets(token)
    except RemoteError as e:
        return [Reply(f"❌ Failed to fetch wallets: {e.message}")]
    if not wallets:
        return [Reply("You have no wallets linked to your account.")]

    text = "💼 *Your Wallets:*\n"
    for idx, w in enumerate(wallets, start=1):
        text += (
            f"\n*{idx}.* Wallet ID: `{w.id}`\n"
            f"   Address: `{w.walletAddress}`\n"
            f"   Network: `{network_name(w.network)}`\n"
        )
        if w.isDefault:
            text += "   Default: *YES*\n"
    return [Reply(text, parseMode=MARKDOWN)]


def show_balances(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session, "❌ Please log in to check your balance.")
    try:
        wallet_balances = client.list_balances(token)
    except RemoteError as e:
        return [Reply(f"❌ Failed to fetch balances: {e.message}")]
    if not wallet_balances:
        return [Reply("No wallet balances found. You might not have any wallets yet.")]

    text = "💰 *Wallet Balances:*\n"
    for wb in wallet_balances:
        text += f"\n*Network:* `{network_name(wb.network)}` | *Default:* `{str(wb.isDefault).lower()}`\n"
        for bal in wb.balances:
            text += f"   • {md_escape(bal.symbol)}: {md_escape(bal.balance)}\n"
    return [Reply(text, parseMode=MARKDOWN)]


def set_wallet_command(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session)
    if not event.args:
        raise ValidationError("Usage: /setwallet <walletId>")
    try:
        w = client.set_default_wallet(token, event.args[0])
    except RemoteError as e:
        return [Reply(f"❌ Failed to set default wallet: {e.message}")]
    return [Reply(
        f"✅ Default wallet updated to: `{w.id}`\n"
        f"Network: {md_escape(network_name(w.network))}\nAddress: {md_escape(w.walletAddress)}",
        parseMode=MARKDOWN,
    )]


def get_default_command(session: SessionRecord, event, client) -> List[Reply]:
    token = require_auth(session)
    try:
        w = client.get_default_wallet(token)
    except RemoteError as e:
        return [Reply(f"❌ Could not fetch default wallet: {e.message}")]
    return [Reply(
        f"*Default Wallet:*\n\n"
        f"`ID:` {md_escape(w.id)}\n"
        f"`Address:` {md_escape(w.walletAddress)}\n"
        f"`Network:` {md_escape(network_name(w.network))}\n",
        parseMode=MARKDOWN,
    )]
