from dataclasses import dataclass, field, fields as dc_fields
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Type

from remitbot.core import state_machine as sm


@dataclass(frozen=True)
class FlowState:
    """
    Tagged awaiting-state value. One subclass per state; each carries only the
    transient fields its own flow needs, so data from another flow cannot linger.
    """
    name: ClassVar[str] = sm.IDLE

    def transient(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dc_fields(self)}


@dataclass(frozen=True)
class Idle(FlowState):
    name = sm.IDLE


@dataclass(frozen=True)
class AwaitingEmail(FlowState):
    name = sm.AWAITING_EMAIL


@dataclass(frozen=True)
class AwaitingOtp(FlowState):
    name = sm.AWAITING_OTP


@dataclass(frozen=True)
class AwaitingDepositAmount(FlowState):
    name = sm.AWAITING_DEPOSIT_AMOUNT


@dataclass(frozen=True)
class AwaitingDepositChain(FlowState):
    name = sm.AWAITING_DEPOSIT_CHAIN
    pendingDepositAmount: Optional[Decimal] = None


@dataclass(frozen=True)
class AwaitingSendEmail(FlowState):
    name = sm.AWAITING_SEND_EMAIL


@dataclass(frozen=True)
class AwaitingSendAmount(FlowState):
    name = sm.AWAITING_SEND_AMOUNT
    pendingRecipientEmail: Optional[str] = None


@dataclass(frozen=True)
class AwaitingWithdrawAddress(FlowState):
    name = sm.AWAITING_WITHDRAW_ADDRESS


@dataclass(frozen=True)
class AwaitingWithdrawAmount(FlowState):
    name = sm.AWAITING_WITHDRAW_AMOUNT
    pendingWithdrawAddress: Optional[str] = None


@dataclass(frozen=True)
class AwaitingOfframpInvoice(FlowState):
    name = sm.AWAITING_OFFRAMP_INVOICE


FLOW_STATES: Dict[str, Type[FlowState]] = {
    cls.name: cls
    for cls in (
        Idle,
        AwaitingEmail,
        AwaitingOtp,
        AwaitingDepositAmount,
        AwaitingDepositChain,
        AwaitingSendEmail,
        AwaitingSendAmount,
        AwaitingWithdrawAddress,
        AwaitingWithdrawAmount,
        AwaitingOfframpInvoice,
    )
}

# Every transient key any flow may persist (used to purge stale keys on load)
TRANSIENT_KEYS = ("pendingDepositAmount", "pendingRecipientEmail", "pendingWithdrawAddress")


@dataclass
class SessionRecord:
    # Core identifiers
    chatId: str = ""

    # Credential
    authToken: Optional[str] = None
    email: Optional[str] = None
    otpSessionId: Optional[str] = None
    isAuthenticated: bool = False

    # Flow discriminant + its transient data
    flow: FlowState = field(default_factory=Idle)

    # Ops
    lastUpdatedAtEpoch: Optional[int] = None

    @property
    def awaitingState(self) -> str:
        return self.flow.name

    def __post_init__(self):
        """
        Keep the access gate consistent:
        - no credential means not authenticated (and vice versa)
        - the OTP correlation id only lives while a code is awaited
        """
        if not self.authToken:
            self.authToken = None
            self.isAuthenticated = False
        elif not self.isAuthenticated:
            self.authToken = None
        if not isinstance(self.flow, AwaitingOtp):
            self.otpSessionId = None
