"""
Remittance platform client
--------------------------
One method per platform operation. Every failure (transport error, non-2xx,
unparseable or unexpected payload) surfaces as a single RemoteError whose
message is safe to show to the user. Calls are never retried here.
"""
from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from remitbot.core.errors import RemoteError
from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics
from remitbot.remit.schemas import (
    AuthResult,
    KycPage,
    OtpChallenge,
    Profile,
    Transfer,
    TransferPage,
    Wallet,
    WalletBalances,
)
from remitbot.settings import settings

M = TypeVar("M", bound=BaseModel)


def error_message(resp: httpx.Response) -> str:
    """Turn a non-2xx platform response into a user-facing message."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        if data.get("error"):
            return f"Error {resp.status_code}: {data['error']}"
        msg = data.get("message")
        if msg:
            return msg if isinstance(msg, str) else json.dumps(msg)
    return f"Request failed with status {resp.status_code}"


class RemitClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 http: Optional[httpx.Client] = None):
        self.base_url = (base_url or settings.REMIT_API_BASE).rstrip("/")
        self._http = http or httpx.Client(
            base_url=self.base_url,
            timeout=float(timeout or settings.REMIT_TIMEOUT_SEC),
        )

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        h = {"Content-Type": "application/json"}
        if token:
            h["Authorization"] = f"Bearer {token}"
        return h

    def _call(self, op: str, method: str, path: str, *, token: Optional[str] = None,
              json: Optional[dict] = None, params: Optional[dict] = None) -> Any:
        metrics.increment_remote_attempt(op)
        start = time.time()
        try:
            resp = self._http.request(method, path, headers=self._headers(token), json=json, params=params)
        except httpx.HTTPError as e:
            metrics.increment_remote_failed(op)
            log(event="remit_call_failed", op=op, path=path, errorType=type(e).__name__, error=str(e)[:300])
            raise RemoteError(str(e) or "Unknown error occurred", op=op)

        elapsed_ms = int((time.time() - start) * 1000)
        metrics.record_remote_latency(elapsed_ms)

        if not (200 <= resp.status_code < 300):
            metrics.increment_remote_failed(op)
            message = error_message(resp)
            log(event="remit_call_failed", op=op, path=path, statusCode=int(resp.status_code),
                elapsedMs=elapsed_ms, error=message[:300])
            raise RemoteError(message, status_code=resp.status_code, op=op)

        try:
            data = resp.json() if resp.content else None
        except ValueError:
            metrics.increment_remote_failed(op)
            log(event="remit_call_failed", op=op, path=path, statusCode=int(resp.status_code), error="invalid_json")
            raise RemoteError("Unexpected response from the platform.", status_code=resp.status_code, op=op)

        metrics.increment_remote_ok(op)
        log(event="remit_call", op=op, path=path, statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        return data

    def _parse(self, op: str, model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except PayloadError as e:
            log(event="remit_payload_invalid", op=op, model=model.__name__, errors=e.error_count())
            raise RemoteError("Unexpected response from the platform.", op=op)

    def _parse_list(self, op: str, model: Type[M], data: Any) -> List[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            log(event="remit_payload_invalid", op=op, model=model.__name__, errors=1)
            raise RemoteError("Unexpected response from the platform.", op=op)
        return [self._parse(op, model, item) for item in data]

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------
    def request_code(self, email: str) -> OtpChallenge:
        data = self._call("request_code", "POST", "/api/auth/email-otp/request", json={"email": email})
        return self._parse("request_code", OtpChallenge, data)

    def verify_code(self, email: str, otp: str, session_id: str) -> AuthResult:
        payload = {"email": email, "otp": otp}
        if session_id:
            payload["sid"] = session_id
        data = self._call("verify_code", "POST", "/api/auth/email-otp/authenticate", json=payload)
        return self._parse("verify_code", AuthResult, data)

    def get_profile(self, token: str) -> Profile:
        data = self._call("get_profile", "GET", "/api/auth/me", token=token)
        return self._parse("get_profile", Profile, data)

    def get_kyc_status(self, token: str) -> KycPage:
        data = self._call("get_kyc_status", "GET", "/api/kycs", token=token, params={"page": 1, "limit": 1})
        return self._parse("get_kyc_status", KycPage, data or {})

    # ------------------------------------------------------------------
    # wallets
    # ------------------------------------------------------------------
    def list_wallets(self, token: str) -> List[Wallet]:
        data = self._call("list_wallets", "GET", "/api/wallets", token=token)
        return self._parse_list("list_wallets", Wallet, data)

    def list_balances(self, token: str) -> List[WalletBalances]:
        data = self._call("list_balances", "GET", "/api/wallets/balances", token=token)
        return self._parse_list("list_balances", WalletBalances, data)

    def set_default_wallet(self, token: str, wallet_id: str) -> Wallet:
        data = self._call("set_default_wallet", "POST", "/api/wallets/default", token=token,
                          json={"walletId": wallet_id})
        return self._parse("set_default_wallet", Wallet, data)

    def get_default_wallet(self, token: str) -> Wallet:
        data = self._call("get_default_wallet", "GET", "/api/wallets/default", token=token)
        return self._parse("get_default_wallet", Wallet, data)

    # ------------------------------------------------------------------
    # transfers (amounts are base-unit strings)
    # ------------------------------------------------------------------
    def send_to_email(self, token: str, *, email: str, amount: str, currency: str, purpose_code: str) -> Transfer:
        payload = {"email": email, "amount": amount, "currency": currency, "purposeCode": purpose_code}
        data = self._call("send_to_email", "POST", "/api/transfers/send", token=token, json=payload)
        return self._parse("send_to_email", Transfer, data)

    def withdraw_to_wallet(self, token: str, *, address: str, amount: str, currency: str,
                           purpose_code: str) -> Transfer:
        payload = {"walletAddress": address, "amount": amount, "currency": currency, "purposeCode": purpose_code}
        data = self._call("withdraw_to_wallet", "POST", "/api/transfers/wallet-withdraw", token=token, json=payload)
        return self._parse("withdraw_to_wallet", Transfer, data)

    def withdraw_to_bank(self, token: str, *, invoice_number: str, purpose_code: str, source_of_funds: str,
                         recipient_relationship: str) -> Transfer:
        payload = {
            "invoiceNumber": invoice_number,
            "purposeCode": purpose_code,
            "sourceOfFunds": source_of_funds,
            "recipientRelationship": recipient_relationship,
        }
        data = self._call("withdraw_to_bank", "POST", "/api/transfers/offramp", token=token, json=payload)
        return self._parse("withdraw_to_bank", Transfer, data)

    def deposit(self, token: str, *, amount: str, source_of_funds: str, chain_id: int) -> Transfer:
        payload = {"amount": amount, "sourceOfFunds": source_of_funds, "depositChainId": int(chain_id)}
        data = self._call("deposit", "POST", "/api/transfers/deposit", token=token, json=payload)
        return self._parse("deposit", Transfer, data)

    def list_transfers(self, token: str, page: int = 1, limit: int = 5) -> TransferPage:
        data = self._call("list_transfers", "GET", "/api/transfers", token=token,
                          params={"page": int(page), "limit": int(limit)})
        return self._parse("list_transfers", TransferPage, data or {})


_client: Optional[RemitClient] = None


def get_remit_client() -> RemitClient:
    global _client
    if _client is None:
        _client = RemitClient()
    return _client
