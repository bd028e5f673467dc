from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# Amounts arrive either as base-unit strings or plain numbers depending on the endpoint
Amount = Union[int, float, str]


class RemitModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OtpChallenge(RemitModel):
    email: str
    sessionId: str = Field(alias="sid")


class AuthResult(RemitModel):
    credential: str = Field(alias="accessToken")
    user: Optional[Dict[str, Any]] = None


class Profile(RemitModel):
    id: Optional[Union[str, int]] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    walletAddress: Optional[str] = None
    status: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.firstName or ''} {self.lastName or ''}".strip()


class KycRecord(RemitModel):
    status: Optional[str] = None


class KycPage(RemitModel):
    records: List[KycRecord] = Field(default_factory=list, alias="data")


class Wallet(RemitModel):
    id: Union[str, int]
    walletAddress: Optional[str] = None
    network: Optional[Union[int, str]] = None
    isDefault: bool = False


class TokenBalance(RemitModel):
    symbol: Optional[str] = None
    balance: Optional[Amount] = None


class WalletBalances(RemitModel):
    network: Optional[Union[int, str]] = None
    isDefault: bool = False
    balances: List[TokenBalance] = Field(default_factory=list)


class DestinationAccount(RemitModel):
    walletAddress: Optional[str] = None


class Transfer(RemitModel):
    id: Union[str, int]
    status: Optional[str] = None
    type: Optional[str] = None
    amount: Optional[Amount] = None
    currency: Optional[str] = None
    invoiceNumber: Optional[str] = None
    destinationAccount: Optional[DestinationAccount] = None

    @property
    def destination_address(self) -> Optional[str]:
        if self.destinationAccount is None:
            return None
        return self.destinationAccount.walletAddress


class TransferPage(RemitModel):
    page: int = 1
    data: List[Transfer] = Field(default_factory=list)
