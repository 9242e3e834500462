"""Repository for exchange configuration and the event log."""

import json
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from burnswap.errors import NotInitialized
from burnswap.ledger.models import EventKind, EventRecord, ExchangeConfig

CONFIG_ID = 1


class LedgerRepository:
    """Repository for engine-owned rows: the config singleton and events.

    Token balances are owned by the asset gateway, not by this repository.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # Config operations
    async def get_config(self) -> Optional[ExchangeConfig]:
        """Get the exchange configuration, if initialized."""
        return await self.session.get(ExchangeConfig, CONFIG_ID)

    async def require_config(self) -> ExchangeConfig:
        """Get the exchange configuration. Raises NotInitialized if missing."""
        config = await self.get_config()
        if config is None:
            raise NotInitialized("Exchange has not been initialized")
        return config

    async def create_config(
        self,
        source_asset: str,
        target_asset: str,
        engine_address: str,
        ratio: int,
        withdraw_deadline: int,
        administrator: str,
    ) -> ExchangeConfig:
        """Insert the configuration singleton."""
        config = ExchangeConfig(
            id=CONFIG_ID,
            source_asset=source_asset,
            target_asset=target_asset,
            engine_address=engine_address,
            ratio=ratio,
            withdraw_deadline=withdraw_deadline,
            administrator=administrator,
            admin_nonce=0,
        )
        self.session.add(config)
        await self.session.flush()
        return config

    # Event log operations
    async def append_event(
        self,
        kind: EventKind,
        payload: dict,
        requester: Optional[str] = None,
    ) -> EventRecord:
        """Append an event to the log."""
        record = EventRecord(
            kind=kind.value,
            payload=json.dumps(payload, sort_keys=True),
            requester=requester,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def list_events(
        self,
        kind: Optional[EventKind] = None,
        requester: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[EventRecord]:
        """Get events in emission order, optionally filtered."""
        stmt = select(EventRecord)
        if kind is not None:
            stmt = stmt.where(EventRecord.kind == kind.value)
        if requester is not None:
            stmt = stmt.where(EventRecord.requester == requester)
        stmt = stmt.order_by(EventRecord.id).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_events(self, kind: Optional[EventKind] = None) -> int:
        """Count events, optionally of a single kind."""
        stmt = select(func.count(EventRecord.id))
        if kind is not None:
            stmt = stmt.where(EventRecord.kind == kind.value)
        return await self.session.scalar(stmt) or 0
