"""Ledger module for exchange configuration, token storage and events."""

from burnswap.ledger.database import get_db, init_db
from burnswap.ledger.models import (
    EventKind,
    EventRecord,
    ExchangeConfig,
    PermitNonce,
    TokenAllowance,
    TokenAsset,
    TokenBalance,
    Uint256,
)
from burnswap.ledger.repository import LedgerRepository

__all__ = [
    # Models
    "ExchangeConfig",
    "EventRecord",
    "PermitNonce",
    "TokenAllowance",
    "TokenAsset",
    "TokenBalance",
    # Types
    "EventKind",
    "Uint256",
    # Database
    "get_db",
    "init_db",
    "LedgerRepository",
]
