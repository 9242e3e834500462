"""Request and response contracts for the HTTP API.

Token amounts are exchanged as decimal strings so 256-bit values survive
JSON clients that parse numbers as doubles.
"""

from datetime import datetime
from typing import Optional

from eth_utils import decode_hex
from pydantic import BaseModel, Field, field_validator

from burnswap.engine.authorization import AdminCall


def _check_hex(value: Optional[str], field: str) -> Optional[str]:
    if value:
        try:
            decode_hex(value)
        except ValueError as e:
            raise ValueError(f"{field} is not valid hex: {e}") from e
    return value


class ExchangeRequest(BaseModel):
    """Relayed exchange call."""

    caller: str = Field(..., description="Address surrendering the source asset")
    source_amount: int = Field(..., ge=0, description="Source units to burn")
    permit: Optional[str] = Field(
        default=None, description="Hex permit payload (selector + ABI body), empty for none"
    )

    @field_validator("permit")
    @classmethod
    def validate_permit_hex(cls, v: Optional[str]) -> Optional[str]:
        return _check_hex(v, "permit")

    def permit_bytes(self) -> bytes:
        return decode_hex(self.permit) if self.permit else b""


class ExchangeResponse(BaseModel):
    requester: str
    source_amount: str
    target_amount: str
    permit_applied: Optional[bool] = None
    event_id: int


class FundReserveRequest(BaseModel):
    """Reserve deposit pulled through the funder's target-asset allowance."""

    funder: str = Field(..., description="Address paying target asset into the reserve")
    amount: int = Field(..., ge=0)
    permit: Optional[str] = Field(
        default=None, description="Hex target-asset permit payload, empty for none"
    )

    @field_validator("permit")
    @classmethod
    def validate_permit_hex(cls, v: Optional[str]) -> Optional[str]:
        return _check_hex(v, "permit")

    def permit_bytes(self) -> bytes:
        return decode_hex(self.permit) if self.permit else b""


class FundReserveResponse(BaseModel):
    reserve: str


class QuoteResponse(BaseModel):
    source_amount: str
    target_amount: str
    ratio: str


class StateResponse(BaseModel):
    source_asset: str
    target_asset: str
    engine_address: str
    administrator: str
    admin_nonce: int
    ratio: str
    ratio_scale: str
    withdraw_deadline: int
    withdrawal_unlocked: bool
    reserve: str
    source_custody: str
    source_total_supply: str


class BalancesResponse(BaseModel):
    holder: str
    source: str
    target: str


class EventResponse(BaseModel):
    id: int
    kind: str
    requester: Optional[str] = None
    payload: dict
    created_at: Optional[datetime] = None


class SignedAdminRequest(BaseModel):
    """Administrative call signed with the administrator key.

    The signer recovered from ``signature`` is the acting identity. The
    signature covers the operation, its arguments, ``nonce`` and ``expiry``.
    """

    nonce: int = Field(..., ge=0, description="Current admin_nonce from the state endpoint")
    expiry: int = Field(..., ge=0, description="Unix time after which the signature is void")
    signature: str = Field(..., description="Hex r || s || v signature")

    @field_validator("signature")
    @classmethod
    def validate_signature_hex(cls, v: str) -> str:
        return _check_hex(v, "signature")

    def signature_bytes(self) -> bytes:
        return decode_hex(self.signature)

    def to_call(self) -> AdminCall:
        raise NotImplementedError


class WithdrawRequest(SignedAdminRequest):
    asset: str
    amount: int = Field(..., ge=0)

    def to_call(self) -> AdminCall:
        return AdminCall(
            "withdraw", self.nonce, self.expiry, asset=self.asset, value=self.amount
        )


class SetRatioRequest(SignedAdminRequest):
    ratio: int = Field(..., ge=0)

    def to_call(self) -> AdminCall:
        return AdminCall("set_ratio", self.nonce, self.expiry, value=self.ratio)


class SetDeadlineRequest(SignedAdminRequest):
    deadline: int = Field(..., ge=0)

    def to_call(self) -> AdminCall:
        return AdminCall("set_withdraw_deadline", self.nonce, self.expiry, value=self.deadline)


class TransferAdministrationRequest(SignedAdminRequest):
    new_administrator: str

    def to_call(self) -> AdminCall:
        return AdminCall(
            "transfer_administration",
            self.nonce,
            self.expiry,
            account=self.new_administrator,
        )


class AdminEventResponse(BaseModel):
    """Event emitted by an administrative call."""

    kind: str
    payload: dict


def stringify_amounts(payload: dict) -> dict:
    """Render integer fields of an event payload as decimal strings."""
    return {k: str(v) if isinstance(v, int) else v for k, v in payload.items()}
