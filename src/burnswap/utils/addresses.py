"""Address and integer normalization shared by the engine and gateways."""

from typing import Any

from eth_utils import is_address, to_checksum_address

from burnswap.errors import InvalidAddress, InvalidAmount

UINT256_MAX = 2**256 - 1


def normalize_address(value: Any, field: str = "address") -> str:
    """Return the EIP-55 checksum form of an address.

    Raises:
        InvalidAddress: If value is not a 20-byte hex address
    """
    if isinstance(value, bytes) and len(value) == 20:
        return to_checksum_address(value)
    if not isinstance(value, str) or not is_address(value):
        raise InvalidAddress(f"{field} is not a valid address: {value!r}")
    return to_checksum_address(value)


def ensure_uint256(value: Any, field: str = "amount") -> int:
    """Check that value is an int in the uint256 range and return it."""
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{field} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise InvalidAmount(f"{field} out of uint256 range: {value}")
    return value
