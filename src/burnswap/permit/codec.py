"""Permit payload codec.

A permit payload is the calldata of an ERC-20 ``permit`` call: the 4-byte
function selector followed by the ABI encoding of
``(owner, spender, value, deadline, v, r, s)``. An empty payload means the
caller relies on an allowance granted beforehand.
"""

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector

from burnswap.errors import MalformedPermit
from burnswap.utils.addresses import normalize_address

PERMIT_SIGNATURE = "permit(address,address,uint256,uint256,uint8,bytes32,bytes32)"
PERMIT_SELECTOR: bytes = function_signature_to_4byte_selector(PERMIT_SIGNATURE)
PERMIT_ABI_TYPES = ["address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"]

# selector + 7 static words
PERMIT_PAYLOAD_LENGTH = 4 + 7 * 32


@dataclass(frozen=True)
class PermitMessage:
    """Decoded permit. Transient, never persisted."""

    signer: str
    spender: str
    amount: int
    deadline: int
    v: int
    r: bytes
    s: bytes


def encode_permit_payload(permit: PermitMessage) -> bytes:
    """Encode a permit into selector-prefixed calldata.

    Raises:
        MalformedPermit: If a field does not fit its ABI type, such as an r
            longer than 32 bytes or a v above 255
    """
    try:
        body = encode(
            PERMIT_ABI_TYPES,
            [
                permit.signer,
                permit.spender,
                permit.amount,
                permit.deadline,
                permit.v,
                permit.r,
                permit.s,
            ],
        )
    except EncodingError as e:
        raise MalformedPermit(f"Cannot encode permit: {e}") from e
    return PERMIT_SELECTOR + body


def decode_permit_payload(payload: bytes) -> PermitMessage:
    """Decode selector-prefixed permit calldata.

    Raises:
        MalformedPermit: If the selector is not the permit selector or the body
            is not a valid ABI encoding of the permit arguments
    """
    if len(payload) < 4:
        raise MalformedPermit(f"Permit payload too short: {len(payload)} bytes")

    selector = bytes(payload[:4])
    if selector != PERMIT_SELECTOR:
        raise MalformedPermit(
            f"Unrecognized permit type tag 0x{selector.hex()}, expected 0x{PERMIT_SELECTOR.hex()}"
        )

    if len(payload) != PERMIT_PAYLOAD_LENGTH:
        raise MalformedPermit(
            f"Permit payload must be {PERMIT_PAYLOAD_LENGTH} bytes, got {len(payload)}"
        )

    try:
        signer, spender, amount, deadline, v, r, s = decode(PERMIT_ABI_TYPES, bytes(payload[4:]))
    except DecodingError as e:
        raise MalformedPermit(f"Cannot decode permit payload: {e}") from e

    return PermitMessage(
        signer=normalize_address(signer, "permit signer"),
        spender=normalize_address(spender, "permit spender"),
        amount=amount,
        deadline=deadline,
        v=v,
        r=r,
        s=s,
    )
