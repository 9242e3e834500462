"""Transaction runner for engine operations.

Each state-mutating call runs as one unit: it holds the engine lock, opens a
fresh session, reads the configuration singleton, and commits only if the
whole block succeeds. Any exception rolls back every balance change, permit
nonce and event written by the block.
"""

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from burnswap.assets.base import AssetGateway
from burnswap.assets.ledger_token import LedgerAssetGateway
from burnswap.engine.events import EngineEvent, event_payload
from burnswap.errors import ConfigurationError
from burnswap.ledger.models import EventRecord, ExchangeConfig
from burnswap.ledger.repository import LedgerRepository
from burnswap.utils.addresses import normalize_address
from burnswap.utils.locks import engine_lock

logger = logging.getLogger(__name__)

# (session, asset address, clock) -> gateway bound to that session
GatewayFactory = Callable[[AsyncSession, str, Callable[[], int]], AssetGateway]


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


@dataclass
class EngineContext:
    """State visible to one engine transaction."""

    session: AsyncSession
    repo: LedgerRepository
    config: ExchangeConfig
    source: AssetGateway
    target: AssetGateway
    now: int
    gateway_factory: GatewayFactory = field(repr=False)

    def gateway(self, asset: str) -> AssetGateway:
        """Gateway for any asset held by the engine."""
        asset = normalize_address(asset, "asset")
        if asset == self.source.asset:
            return self.source
        if asset == self.target.asset:
            return self.target
        return self.gateway_factory(self.session, asset, lambda: self.now)

    async def emit(self, event: EngineEvent, requester: Optional[str] = None) -> EventRecord:
        """Append event to the log of this transaction."""
        record = await self.repo.append_event(event.kind, event_payload(event), requester=requester)
        logger.info(f"Event {event.kind.value}: {event_payload(event)}")
        return record


class TransactionRunner:
    """Runs engine operations atomically and serialized per engine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine_address: str,
        gateway_factory: GatewayFactory = LedgerAssetGateway,
        clock: Optional[Callable[[], int]] = None,
        lock_timeout: Optional[float] = 30.0,
    ):
        self.session_factory = session_factory
        self.engine_address = normalize_address(engine_address, "engine address")
        self.gateway_factory = gateway_factory
        self.clock = clock or system_clock
        self.lock_timeout = lock_timeout

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncIterator[EngineContext]:
        """Open an atomic engine transaction.

        Args:
            operation: Description for logging

        Yields:
            EngineContext bound to a fresh session
        """
        async with engine_lock(self.engine_address, timeout=self.lock_timeout, operation=operation):
            async with self.session_factory() as session:
                try:
                    ctx = await self._build_context(session)
                    yield ctx
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

    async def _build_context(self, session: AsyncSession) -> EngineContext:
        repo = LedgerRepository(session)
        config = await repo.require_config()
        if config.engine_address != self.engine_address:
            raise ConfigurationError(
                f"Stored engine address {config.engine_address} does not match "
                f"runner engine address {self.engine_address}"
            )

        # One timestamp per transaction, like a block timestamp
        now = self.clock()
        return EngineContext(
            session=session,
            repo=repo,
            config=config,
            source=self.gateway_factory(session, config.source_asset, lambda: now),
            target=self.gateway_factory(session, config.target_asset, lambda: now),
            now=now,
            gateway_factory=self.gateway_factory,
        )
