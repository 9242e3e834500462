"""Signed administrative calls.

Outside the process the administrator proves its identity with an EIP-712
signature over the operation, its arguments, the administrator nonce and an
expiry. The nonce is stored on the exchange configuration and advances with
every accepted call, so each signature applies at most once.
"""

from dataclasses import dataclass, replace

from eth_keys.exceptions import BadSignature, ValidationError

from burnswap.assets.typed_data import (
    build_admin_call_typed_data,
    is_canonical,
    recover_signer,
    sign_typed_data,
)
from burnswap.errors import AdminSignatureRejected
from burnswap.utils.addresses import ensure_uint256, normalize_address

ZERO_ADDRESS = "0x" + "00" * 20

ADMIN_OPERATIONS = (
    "withdraw",
    "set_ratio",
    "set_withdraw_deadline",
    "transfer_administration",
)

# r || s || v
SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class AdminCall:
    """Administrative operation and the arguments covered by its signature.

    ``asset`` is used by withdraw and ``account`` by transfer_administration.
    ``value`` carries the withdraw amount, the ratio or the deadline. Unused
    fields stay zero.
    """

    operation: str
    nonce: int
    expiry: int
    asset: str = ZERO_ADDRESS
    value: int = 0
    account: str = ZERO_ADDRESS

    def typed_data(self, chain_id: int, engine_address: str) -> dict:
        return build_admin_call_typed_data(
            chain_id=chain_id,
            engine_address=engine_address,
            operation=self.operation,
            asset=self.asset,
            value=self.value,
            account=self.account,
            nonce=self.nonce,
            expiry=self.expiry,
        )


def normalize_call(call: AdminCall) -> AdminCall:
    """Check the operation and canonicalize addresses and integers.

    Raises:
        AdminSignatureRejected: Operation is not an administrative operation
        InvalidAddress: asset or account is not an address
        InvalidAmount: value, nonce or expiry is not a uint256
    """
    if call.operation not in ADMIN_OPERATIONS:
        raise AdminSignatureRejected(f"Unknown administrative operation {call.operation!r}")
    return replace(
        call,
        asset=normalize_address(call.asset, "asset"),
        account=normalize_address(call.account, "account"),
        value=ensure_uint256(call.value, "value"),
        nonce=ensure_uint256(call.nonce, "nonce"),
        expiry=ensure_uint256(call.expiry, "expiry"),
    )


def sign_admin_call(private_key, call: AdminCall, chain_id: int, engine_address: str) -> bytes:
    """Sign call for the exchange at engine_address. Returns r || s || v."""
    call = normalize_call(call)
    typed_data = call.typed_data(chain_id, normalize_address(engine_address, "engine address"))
    v, r, s = sign_typed_data(private_key, typed_data)
    return r + s + bytes([v])


def recover_admin_signer(
    call: AdminCall, signature: bytes, chain_id: int, engine_address: str
) -> str:
    """Recover the address that signed call.

    Raises:
        AdminSignatureRejected: Signature is not 65 bytes, not canonical, or
            does not recover to an address
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise AdminSignatureRejected(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    r, s, v = bytes(signature[:32]), bytes(signature[32:64]), signature[64]
    if not is_canonical(v, s):
        raise AdminSignatureRejected("Signature is not in canonical form")

    try:
        return recover_signer(call.typed_data(chain_id, engine_address), v, r, s)
    except (BadSignature, ValidationError, ValueError) as e:
        raise AdminSignatureRejected(f"Invalid signature: {e}") from e
