from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MARKDOWN = "Markdown"

# Deposit chains offered in the stepwise deposit menu (chain id -> label)
NETWORK_NAMES = {
    1: "Ethereum",
    137: "Polygon",
    42161: "Arbitrum",
    8453: "Base",
    23434: "Starknet",
}
DEPOSIT_CHAINS = (1, 137, 42161, 8453, 23434)


@dataclass
class Button:
    label: str
    action: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Reply:
    text: str
    buttons: List[List[Button]] = field(default_factory=list)
    parseMode: Optional[str] = None


# Legacy Markdown entities; outside an entity each needs a backslash
_MD_SPECIAL = ("_", "*", "`", "[")


def md_escape(value: Any) -> str:
    """Make a platform or user value safe to interpolate into a Markdown reply."""
    text = str(value)
    for ch in _MD_SPECIAL:
        text = text.replace(ch, "\\" + ch)
    return text


def md_code(value: Any) -> str:
    """Inline code span; a backtick cannot be escaped inside one, so it is swapped out."""
    return "`" + str(value).replace("`", "'") + "`"


def network_name(chain_id: Any) -> str:
    try:
        return NETWORK_NAMES.get(int(chain_id), f"Chain #{chain_id}")
    except (TypeError, ValueError):
        return f"Chain #{chain_id}"


def main_menu() -> List[List[Button]]:
    return [
        [Button("💼 My Wallets", "wallets"), Button("💰 Balance", "balance")],
        [Button("↗️ Transfer", "transfer"), Button("🪙 Deposit", "deposit")],
        [Button("🔓 Logout", "logout")],
    ]


def login_keyboard() -> List[List[Button]]:
    return [[Button("🔐 Log In", "login")]]


def transfer_menu() -> List[List[Button]]:
    return [
        [Button("📧 Send Email", "send_email_inline")],
        [Button("💸 Withdraw Wallet", "withdraw_wallet_inline")],
        [Button("🏦 Offramp Bank", "offramp_bank_inline")],
        [Button("🪙 Deposit", "deposit")],
        [Button("📜 History", "list_transfers")],
    ]


def chain_menu() -> List[List[Button]]:
    return [
        [Button(f"{NETWORK_NAMES[c]} ({c})", "dep_chain", {"chainId": c})]
        for c in DEPOSIT_CHAINS
    ]
