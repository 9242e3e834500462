"""Tests for the exchange engine."""

import asyncio

import pytest

from burnswap.config import RATIO_SCALE
from burnswap.engine import ExchangeEngine, ExchangePerformed
from burnswap.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    ZeroOutputRejected,
)
from burnswap.ledger.models import EventKind
from tests.conftest import (
    ADMIN,
    ADMIN_TARGET,
    ALICE,
    ALICE_SOURCE,
    BOB,
    DEADLINE,
    ENGINE,
    RESERVE,
    SOURCE,
    TARGET,
)


class TestExchange:
    """Tests for burn-and-pay exchanges."""

    @pytest.mark.asyncio
    async def test_exchange_moves_exact_amounts(self, services, ledger):
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        result = await services.exchange.exchange(ALICE, 100)

        assert result.requester == ALICE
        assert result.source_amount == 100
        assert result.target_amount == 100
        assert result.permit_applied is None

        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE - 100
        assert await ledger.balance(TARGET, ALICE) == 100
        assert await ledger.balance(TARGET, ENGINE) == RESERVE - 100
        # Pulled source is burned, not held
        assert await ledger.balance(SOURCE, ENGINE) == 0
        assert await ledger.total_supply(SOURCE) == ALICE_SOURCE - 100
        assert await ledger.total_supply(TARGET) == ADMIN_TARGET
        assert await ledger.allowance(SOURCE, ALICE, ENGINE) == 0

    @pytest.mark.asyncio
    async def test_exchange_at_fractional_ratio(self, services, ledger):
        await services.admin.set_ratio(ADMIN, 4_200_000_000)
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        result = await services.exchange.exchange(ALICE, 100)

        assert result.target_amount == 42
        assert await ledger.balance(TARGET, ALICE) == 42
        assert await ledger.balance(TARGET, ENGINE) == RESERVE - 42

    @pytest.mark.asyncio
    async def test_exchange_emits_event(self, services, ledger):
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        result = await services.exchange.exchange(ALICE, 100)
        events = await services.exchange.list_events()

        assert len(events) == 1
        assert events[0].id == result.event_id
        assert events[0].kind == EventKind.EXCHANGE
        assert events[0].requester == ALICE
        assert events[0].event == ExchangePerformed(
            source_amount=100, target_amount=100, requester=ALICE
        )

    @pytest.mark.asyncio
    async def test_insufficient_reserve_changes_nothing(self, services, ledger):
        """Reserve of RESERVE at 1:1 cannot pay RESERVE + 500."""
        await ledger.mint(SOURCE, ALICE, RESERVE)
        amount = RESERVE + 500
        await ledger.approve(SOURCE, ALICE, ENGINE, amount)

        with pytest.raises(InsufficientBalance) as exc_info:
            await services.exchange.exchange(ALICE, amount)

        assert exc_info.value.asset == TARGET
        assert exc_info.value.holder == ENGINE
        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE + RESERVE
        assert await ledger.total_supply(SOURCE) == ALICE_SOURCE + RESERVE
        assert await ledger.allowance(SOURCE, ALICE, ENGINE) == amount
        assert await ledger.balance(TARGET, ENGINE) == RESERVE
        assert await ledger.balance(TARGET, ALICE) == 0
        assert await services.exchange.list_events() == []

    @pytest.mark.asyncio
    async def test_exchange_without_allowance(self, services, ledger):
        with pytest.raises(InsufficientAllowance):
            await services.exchange.exchange(ALICE, 100)

        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE
        assert await ledger.balance(TARGET, ENGINE) == RESERVE

    @pytest.mark.asyncio
    async def test_exchange_more_than_balance(self, services, ledger):
        await ledger.approve(SOURCE, ALICE, ENGINE, ALICE_SOURCE + 1)

        with pytest.raises(InsufficientBalance) as exc_info:
            await services.exchange.exchange(ALICE, ALICE_SOURCE + 1)

        assert exc_info.value.asset == SOURCE
        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE

    @pytest.mark.asyncio
    async def test_zero_amount(self, services, ledger):
        result = await services.exchange.exchange(ALICE, 0)

        assert result.target_amount == 0
        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE
        assert len(await services.exchange.list_events()) == 1

    @pytest.mark.asyncio
    async def test_output_floors_to_zero(self, services, ledger):
        """Tiny exchanges burn the source and pay nothing by default."""
        await services.admin.set_ratio(ADMIN, 1)
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        result = await services.exchange.exchange(ALICE, 100)

        assert result.target_amount == 0
        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE - 100
        assert await ledger.total_supply(SOURCE) == ALICE_SOURCE - 100

    @pytest.mark.asyncio
    async def test_zero_output_rejected_by_policy(self, services, ledger):
        engine = ExchangeEngine(services.runner, reject_zero_output=True)
        await services.admin.set_ratio(ADMIN, 1)
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        with pytest.raises(ZeroOutputRejected):
            await engine.exchange(ALICE, 100)

        assert await ledger.balance(SOURCE, ALICE) == ALICE_SOURCE
        assert await ledger.allowance(SOURCE, ALICE, ENGINE) == 100

    @pytest.mark.asyncio
    async def test_zero_ratio_drains_nothing(self, services, ledger):
        await services.admin.set_ratio(ADMIN, 0)
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)

        result = await services.exchange.exchange(ALICE, 100)

        assert result.target_amount == 0
        assert await ledger.balance(TARGET, ENGINE) == RESERVE

    @pytest.mark.asyncio
    async def test_invalid_caller(self, services):
        with pytest.raises(InvalidAddress):
            await services.exchange.exchange("not-an-address", 1)

    @pytest.mark.asyncio
    async def test_invalid_amount(self, services):
        with pytest.raises(InvalidAmount):
            await services.exchange.exchange(ALICE, -5)

    @pytest.mark.asyncio
    async def test_concurrent_exchanges(self, services, ledger):
        await ledger.mint(SOURCE, BOB, 500)
        await ledger.approve(SOURCE, ALICE, ENGINE, 300)
        await ledger.approve(SOURCE, BOB, ENGINE, 400)

        results = await asyncio.gather(
            services.exchange.exchange(ALICE, 300),
            services.exchange.exchange(BOB, 400),
        )

        assert sorted(r.target_amount for r in results) == [300, 400]
        assert await ledger.balance(TARGET, ENGINE) == RESERVE - 700
        assert await ledger.total_supply(SOURCE) == ALICE_SOURCE + 500 - 700
        assert len(await services.exchange.list_events()) == 2

    @pytest.mark.asyncio
    async def test_concurrent_exchanges_cannot_overdraw_reserve(self, services, ledger):
        await ledger.mint(SOURCE, BOB, RESERVE)
        await ledger.approve(SOURCE, ALICE, ENGINE, 600)
        await ledger.approve(SOURCE, BOB, ENGINE, 600)

        results = await asyncio.gather(
            services.exchange.exchange(ALICE, 600),
            services.exchange.exchange(BOB, 600),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, InsufficientBalance)]
        assert len(failures) == 1
        assert await ledger.balance(TARGET, ENGINE) == RESERVE - 600


class TestQuoteAndReserve:
    """Tests for quotes and reserve funding."""

    @pytest.mark.asyncio
    async def test_quote(self, services):
        assert await services.exchange.quote(250) == 250

        await services.admin.set_ratio(ADMIN, RATIO_SCALE // 4)

        assert await services.exchange.quote(250) == 62

    @pytest.mark.asyncio
    async def test_quote_does_not_change_state(self, services, ledger):
        await services.exchange.quote(100)

        assert await ledger.balance(TARGET, ENGINE) == RESERVE
        assert await services.exchange.list_events() == []

    @pytest.mark.asyncio
    async def test_fund_reserve(self, services, ledger):
        await ledger.approve(TARGET, ADMIN, ENGINE, 2_000)

        reserve = await services.exchange.fund_reserve(ADMIN, 2_000)

        assert reserve == RESERVE + 2_000
        assert await ledger.balance(TARGET, ADMIN) == ADMIN_TARGET - RESERVE - 2_000
        assert await ledger.allowance(TARGET, ADMIN, ENGINE) == 0

    @pytest.mark.asyncio
    async def test_fund_reserve_requires_allowance(self, services, ledger):
        """A holder's tokens never move into the reserve without approval."""
        await ledger.mint(TARGET, BOB, 500)

        with pytest.raises(InsufficientAllowance) as exc_info:
            await services.exchange.fund_reserve(BOB, 500)

        assert exc_info.value.owner == BOB
        assert exc_info.value.spender == ENGINE
        assert await ledger.balance(TARGET, BOB) == 500
        assert await ledger.balance(TARGET, ENGINE) == RESERVE
        assert await services.exchange.list_events() == []

    @pytest.mark.asyncio
    async def test_fund_reserve_limited_by_allowance(self, services, ledger):
        await ledger.approve(TARGET, ADMIN, ENGINE, 100)

        with pytest.raises(InsufficientAllowance):
            await services.exchange.fund_reserve(ADMIN, 101)

        assert await ledger.allowance(TARGET, ADMIN, ENGINE) == 100
        assert await ledger.balance(TARGET, ENGINE) == RESERVE

    @pytest.mark.asyncio
    async def test_fund_reserve_insufficient_balance(self, services, ledger):
        await ledger.approve(TARGET, ALICE, ENGINE, 1)

        with pytest.raises(InsufficientBalance):
            await services.exchange.fund_reserve(ALICE, 1)

        assert await ledger.balance(TARGET, ENGINE) == RESERVE
        assert await ledger.allowance(TARGET, ALICE, ENGINE) == 1


class TestState:
    """Tests for state and balance views."""

    @pytest.mark.asyncio
    async def test_get_state(self, services):
        state = await services.exchange.get_state()

        assert state.source_asset == SOURCE
        assert state.target_asset == TARGET
        assert state.engine_address == ENGINE
        assert state.administrator == ADMIN
        assert state.admin_nonce == 0
        assert state.ratio == RATIO_SCALE
        assert state.withdraw_deadline == DEADLINE
        assert state.withdrawal_unlocked is False
        assert state.reserve == RESERVE
        assert state.source_custody == 0
        assert state.source_total_supply == ALICE_SOURCE

    @pytest.mark.asyncio
    async def test_state_unlocks_after_deadline(self, services, clock):
        clock.now = DEADLINE
        assert (await services.exchange.get_state()).withdrawal_unlocked is False

        clock.now = DEADLINE + 1
        assert (await services.exchange.get_state()).withdrawal_unlocked is True

    @pytest.mark.asyncio
    async def test_get_balances(self, services, ledger):
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)
        await services.exchange.exchange(ALICE, 100)

        balances = await services.exchange.get_balances(ALICE.lower())

        assert balances == {"source": ALICE_SOURCE - 100, "target": 100}


class TestEventLog:
    """Tests for reading the event log."""

    @pytest.mark.asyncio
    async def test_events_in_emission_order(self, services, ledger):
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)
        await services.admin.set_ratio(ADMIN, 2 * RATIO_SCALE)
        await services.exchange.exchange(ALICE, 100)
        await services.admin.set_withdraw_deadline(ADMIN, DEADLINE + 1)

        events = await services.exchange.list_events()

        assert [e.kind for e in events] == [
            EventKind.RATIO_CHANGED,
            EventKind.EXCHANGE,
            EventKind.DEADLINE_CHANGED,
        ]
        assert events[1].event.target_amount == 200
        assert [e.id for e in events] == sorted(e.id for e in events)

    @pytest.mark.asyncio
    async def test_filter_by_kind_and_requester(self, services, ledger):
        await ledger.mint(SOURCE, BOB, 100)
        await ledger.approve(SOURCE, ALICE, ENGINE, 100)
        await ledger.approve(SOURCE, BOB, ENGINE, 100)
        await services.exchange.exchange(ALICE, 50)
        await services.exchange.exchange(BOB, 50)
        await services.admin.set_ratio(ADMIN, RATIO_SCALE // 2)

        exchanges = await services.exchange.list_events(kind=EventKind.EXCHANGE)
        from_bob = await services.exchange.list_events(requester=BOB)
        paged = await services.exchange.list_events(limit=1, offset=2)

        assert len(exchanges) == 2
        assert [e.requester for e in from_bob] == [BOB]
        assert len(paged) == 1
        assert paged[0].kind == EventKind.RATIO_CHANGED
