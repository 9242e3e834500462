"""Exchange engine, administration and timelock."""

from burnswap.engine.admin import Administration, require_administrator
from burnswap.engine.authorization import AdminCall, sign_admin_call
from burnswap.engine.bootstrap import (
    EngineServices,
    bootstrap_from_settings,
    build_engine,
    initialize_exchange,
)
from burnswap.engine.context import EngineContext, TransactionRunner
from burnswap.engine.events import (
    AdministratorChanged,
    DeadlineChanged,
    ExchangePerformed,
    LoggedEvent,
    RatioChanged,
    WithdrawalPerformed,
)
from burnswap.engine.exchange import EngineState, ExchangeEngine, ExchangeResult
from burnswap.engine.pricing import RATIO_SCALE, compute_target_amount
from burnswap.engine.timelock import TimelockGuard

__all__ = [
    "AdminCall",
    "Administration",
    "EngineContext",
    "EngineServices",
    "EngineState",
    "ExchangeEngine",
    "ExchangeResult",
    "TimelockGuard",
    "TransactionRunner",
    "bootstrap_from_settings",
    "build_engine",
    "compute_target_amount",
    "initialize_exchange",
    "require_administrator",
    "sign_admin_call",
    "RATIO_SCALE",
    # Events
    "AdministratorChanged",
    "DeadlineChanged",
    "ExchangePerformed",
    "LoggedEvent",
    "RatioChanged",
    "WithdrawalPerformed",
]
