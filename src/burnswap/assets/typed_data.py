"""EIP-712 typed data for EIP-2612 permits and signed administrative calls.

Used by the ledger gateway to recover permit signers, by the administration
layer to recover the signer of an administrative call, and by clients to sign
both offline.
"""

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data

# secp256k1 group order; signatures with s above half of it are malleable
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

EIP712_DOMAIN = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

PERMIT_TYPES = {
    "EIP712Domain": EIP712_DOMAIN,
    "Permit": [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}

ADMIN_DOMAIN_NAME = "burnswap"
ADMIN_DOMAIN_VERSION = "1"

ADMIN_CALL_TYPES = {
    "EIP712Domain": EIP712_DOMAIN,
    "AdminCall": [
        {"name": "operation", "type": "string"},
        {"name": "asset", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "account", "type": "address"},
        {"name": "nonce", "type": "uint256"},
        {"name": "expiry", "type": "uint256"},
    ],
}


def build_permit_typed_data(
    token_name: str,
    token_version: str,
    chain_id: int,
    token_address: str,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> dict:
    """Build the full EIP-712 structure for a permit."""
    return {
        "types": PERMIT_TYPES,
        "primaryType": "Permit",
        "domain": {
            "name": token_name,
            "version": token_version,
            "chainId": chain_id,
            "verifyingContract": token_address,
        },
        "message": {
            "owner": owner,
            "spender": spender,
            "value": value,
            "nonce": nonce,
            "deadline": deadline,
        },
    }


def build_admin_call_typed_data(
    chain_id: int,
    engine_address: str,
    operation: str,
    asset: str,
    value: int,
    account: str,
    nonce: int,
    expiry: int,
) -> dict:
    """Build the EIP-712 structure for an administrative call.

    The engine address is the verifying contract, so a signature is only
    valid for one exchange on one chain.
    """
    return {
        "types": ADMIN_CALL_TYPES,
        "primaryType": "AdminCall",
        "domain": {
            "name": ADMIN_DOMAIN_NAME,
            "version": ADMIN_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": engine_address,
        },
        "message": {
            "operation": operation,
            "asset": asset,
            "value": value,
            "account": account,
            "nonce": nonce,
            "expiry": expiry,
        },
    }


def encode_typed(typed_data: dict) -> SignableMessage:
    """Encode typed data into a signable message."""
    return encode_typed_data(full_message=typed_data)


def is_canonical(v: int, s: bytes) -> bool:
    """Whether (v, s) is the canonical, non-malleable form of a signature."""
    return v in (27, 28) and int.from_bytes(s, "big") <= SECP256K1_N // 2


def sign_typed_data(private_key, typed_data: dict) -> tuple[int, bytes, bytes]:
    """Sign typed data.

    Args:
        private_key: Key accepted by eth_account (hex string, bytes or LocalAccount key)
        typed_data: Output of build_permit_typed_data or build_admin_call_typed_data

    Returns:
        (v, r, s) with r and s as 32-byte big-endian values
    """
    signed = Account.sign_message(encode_typed(typed_data), private_key=private_key)
    return signed.v, signed.r.to_bytes(32, "big"), signed.s.to_bytes(32, "big")


def recover_signer(typed_data: dict, v: int, r: bytes, s: bytes) -> str:
    """Recover the checksum address that signed typed_data."""
    vrs = (v, int.from_bytes(r, "big"), int.from_bytes(s, "big"))
    return Account.recover_message(encode_typed(typed_data), vrs=vrs)
