"""Utility modules for burnswap."""

from burnswap.utils.addresses import UINT256_MAX, ensure_uint256, normalize_address
from burnswap.utils.locks import LockTimeoutError, engine_lock, get_engine_lock

__all__ = [
    "UINT256_MAX",
    "ensure_uint256",
    "normalize_address",
    "LockTimeoutError",
    "engine_lock",
    "get_engine_lock",
]
