"""Tests for the ledger repository and exchange initialization."""

import json

import pytest

from burnswap.config import RATIO_SCALE
from burnswap.engine.bootstrap import bootstrap_from_settings, initialize_exchange
from burnswap.errors import ConfigurationError, InvalidAmount, NotInitialized
from burnswap.ledger.models import EventKind
from burnswap.ledger.repository import LedgerRepository
from tests.conftest import ADMIN, ALICE, DEADLINE, ENGINE, SOURCE, START_TIME, TARGET


class TestConfig:
    """Tests for the configuration singleton."""

    @pytest.mark.asyncio
    async def test_missing_config(self, db_session):
        repo = LedgerRepository(db_session)

        assert await repo.get_config() is None
        with pytest.raises(NotInitialized):
            await repo.require_config()

    @pytest.mark.asyncio
    async def test_initialize_exchange(self, db_session):
        config = await initialize_exchange(
            db_session,
            source_asset=SOURCE.lower(),
            target_asset=TARGET,
            lock_duration=100,
            ratio=RATIO_SCALE,
            administrator=ADMIN,
            engine_address=ENGINE,
            now=START_TIME,
        )

        assert config.source_asset == SOURCE
        assert config.withdraw_deadline == START_TIME + 100
        assert config.admin_nonce == 0
        assert (await LedgerRepository(db_session).require_config()) is config

    @pytest.mark.asyncio
    async def test_assets_must_differ(self, db_session):
        with pytest.raises(ConfigurationError, match="must differ"):
            await initialize_exchange(
                db_session, SOURCE, SOURCE.lower(), 100, RATIO_SCALE, ADMIN, ENGINE
            )

    @pytest.mark.asyncio
    async def test_negative_lock_duration(self, db_session):
        with pytest.raises(InvalidAmount):
            await initialize_exchange(db_session, SOURCE, TARGET, -1, RATIO_SCALE, ADMIN, ENGINE)

    @pytest.mark.asyncio
    async def test_initialize_twice(self, db_session):
        await initialize_exchange(db_session, SOURCE, TARGET, 100, RATIO_SCALE, ADMIN, ENGINE)

        with pytest.raises(ConfigurationError, match="already initialized"):
            await initialize_exchange(db_session, SOURCE, TARGET, 100, RATIO_SCALE, ADMIN, ENGINE)

    @pytest.mark.asyncio
    async def test_bootstrap_is_idempotent(self, db_session, test_settings):
        first = await bootstrap_from_settings(db_session, test_settings, now=START_TIME)
        second = await bootstrap_from_settings(db_session, test_settings, now=START_TIME + 50)

        assert first is second
        assert second.withdraw_deadline == DEADLINE

    @pytest.mark.asyncio
    async def test_large_values_round_trip(self, session_factory):
        """uint256 values survive the database exactly."""
        huge = 2**255 + 12345
        async with session_factory() as session:
            await initialize_exchange(session, SOURCE, TARGET, 0, huge, ADMIN, ENGINE, now=0)
            await session.commit()

        async with session_factory() as session:
            config = await LedgerRepository(session).require_config()
            assert config.ratio == huge


class TestEventLog:
    """Tests for the append-only event log."""

    @pytest.mark.asyncio
    async def test_append_and_list(self, db_session):
        repo = LedgerRepository(db_session)

        await repo.append_event(EventKind.RATIO_CHANGED, {"new_ratio": 5}, requester=ADMIN)
        await repo.append_event(
            EventKind.EXCHANGE,
            {"source_amount": 1, "target_amount": 1, "requester": ALICE},
            requester=ALICE,
        )

        events = await repo.list_events()
        assert [e.kind for e in events] == ["ratio_changed", "exchange"]
        assert json.loads(events[0].payload) == {"new_ratio": 5}

        assert await repo.count_events() == 2
        assert await repo.count_events(EventKind.EXCHANGE) == 1
        assert len(await repo.list_events(requester=ALICE)) == 1
        assert len(await repo.list_events(kind=EventKind.WITHDRAWAL)) == 0
