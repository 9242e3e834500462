"""Exchange initialization and wiring from settings."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from burnswap.assets.ledger_token import register_token
from burnswap.config import Settings, get_settings
from burnswap.engine.admin import Administration
from burnswap.engine.context import TransactionRunner, system_clock
from burnswap.engine.exchange import ExchangeEngine
from burnswap.errors import ConfigurationError
from burnswap.ledger.models import ExchangeConfig
from burnswap.ledger.repository import LedgerRepository
from burnswap.utils.addresses import ensure_uint256, normalize_address

logger = logging.getLogger(__name__)


async def initialize_exchange(
    session: AsyncSession,
    source_asset: str,
    target_asset: str,
    lock_duration: int,
    ratio: int,
    administrator: str,
    engine_address: str,
    now: Optional[int] = None,
) -> ExchangeConfig:
    """Create the configuration singleton.

    The withdraw deadline is set to now + lock_duration.

    Raises:
        ConfigurationError: Assets are identical or the exchange already exists
    """
    source_asset = normalize_address(source_asset, "source asset")
    target_asset = normalize_address(target_asset, "target asset")
    if source_asset == target_asset:
        raise ConfigurationError("Source and target asset must differ")
    ensure_uint256(ratio, "ratio")
    ensure_uint256(lock_duration, "lock_duration")

    repo = LedgerRepository(session)
    if await repo.get_config() is not None:
        raise ConfigurationError("Exchange is already initialized")

    now = system_clock() if now is None else now
    config = await repo.create_config(
        source_asset=source_asset,
        target_asset=target_asset,
        engine_address=normalize_address(engine_address, "engine address"),
        ratio=ratio,
        withdraw_deadline=ensure_uint256(now + lock_duration, "withdraw deadline"),
        administrator=normalize_address(administrator, "administrator"),
    )
    logger.info(
        f"Exchange initialized: {source_asset} -> {target_asset}, ratio {ratio}, "
        f"withdraw deadline {config.withdraw_deadline}"
    )
    return config


async def bootstrap_from_settings(
    session: AsyncSession,
    settings: Optional[Settings] = None,
    now: Optional[int] = None,
) -> ExchangeConfig:
    """Register both tokens and initialize the exchange if not yet done."""
    settings = settings or get_settings()
    await register_token(
        session, settings.source_asset_address, settings.source_asset_name, settings.chain_id
    )
    await register_token(
        session, settings.target_asset_address, settings.target_asset_name, settings.chain_id
    )

    existing = await LedgerRepository(session).get_config()
    if existing is not None:
        return existing

    return await initialize_exchange(
        session,
        source_asset=settings.source_asset_address,
        target_asset=settings.target_asset_address,
        lock_duration=settings.lock_duration_seconds,
        ratio=settings.initial_ratio,
        administrator=settings.administrator_address,
        engine_address=settings.engine_address,
        now=now,
    )


@dataclass
class EngineServices:
    """Engine components sharing one transaction runner."""

    runner: TransactionRunner
    exchange: ExchangeEngine
    admin: Administration


def build_engine(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], int]] = None,
) -> EngineServices:
    """Wire the exchange engine and administration from settings."""
    settings = settings or get_settings()
    runner = TransactionRunner(
        session_factory,
        engine_address=settings.engine_address,
        clock=clock,
        lock_timeout=settings.lock_timeout,
    )
    return EngineServices(
        runner=runner,
        exchange=ExchangeEngine(runner, reject_zero_output=settings.reject_zero_output),
        admin=Administration(
            runner,
            min_ratio=settings.min_ratio,
            max_ratio=settings.max_ratio,
            chain_id=settings.chain_id,
        ),
    )
