"""Tests for the engine lock and transaction runner."""

import asyncio

import pytest

from burnswap.engine.context import TransactionRunner
from burnswap.errors import ConfigurationError, NotInitialized
from burnswap.utils.locks import (
    LockTimeoutError,
    clear_engine_locks,
    engine_lock,
    get_engine_lock,
)
from tests.conftest import ALICE, ALICE_SOURCE, ENGINE, START_TIME


class TestEngineLocks:
    """Tests for the concurrency locks module."""

    @pytest.mark.asyncio
    async def test_same_engine_shares_lock(self):
        """Checksum and lowercase forms map to one lock."""
        assert get_engine_lock(ENGINE) is get_engine_lock(ENGINE.lower())

    @pytest.mark.asyncio
    async def test_different_engines_get_different_locks(self):
        assert get_engine_lock(ENGINE) is not get_engine_lock(ALICE)

    @pytest.mark.asyncio
    async def test_lock_held_inside_context(self):
        async with engine_lock(ENGINE, operation="test"):
            lock = get_engine_lock(ENGINE)
            assert lock.locked()

        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        with pytest.raises(RuntimeError):
            async with engine_lock(ENGINE):
                raise RuntimeError("boom")

        assert not get_engine_lock(ENGINE).locked()

    @pytest.mark.asyncio
    async def test_lock_prevents_concurrent_access(self):
        results = []

        async def task(name, delay):
            async with engine_lock(ENGINE, timeout=10.0, operation=f"task_{name}"):
                results.append(f"{name}_start")
                await asyncio.sleep(delay)
                results.append(f"{name}_end")

        await asyncio.gather(task("A", 0.05), task("B", 0.05))

        assert results in [
            ["A_start", "A_end", "B_start", "B_end"],
            ["B_start", "B_end", "A_start", "A_end"],
        ]

    @pytest.mark.asyncio
    async def test_lock_timeout_raises_error(self):
        async def hold_lock():
            async with engine_lock(ENGINE, timeout=5.0):
                await asyncio.sleep(0.5)

        hold_task = asyncio.create_task(hold_lock())
        await asyncio.sleep(0.05)

        with pytest.raises(LockTimeoutError):
            async with engine_lock(ENGINE, timeout=0.1):
                pass

        await hold_task

    @pytest.mark.asyncio
    async def test_clear_engine_locks(self):
        old = get_engine_lock(ENGINE)

        clear_engine_locks()

        assert get_engine_lock(ENGINE) is not old


class TestTransactionRunner:
    """Tests for atomic engine transactions."""

    @pytest.mark.asyncio
    async def test_requires_initialized_exchange(self, session_factory):
        runner = TransactionRunner(session_factory, ENGINE)

        with pytest.raises(NotInitialized):
            async with runner.transaction("test"):
                pass

    @pytest.mark.asyncio
    async def test_rejects_foreign_engine(self, services, session_factory):
        runner = TransactionRunner(session_factory, ALICE)

        with pytest.raises(ConfigurationError):
            async with runner.transaction("test"):
                pass

    @pytest.mark.asyncio
    async def test_reads_clock_once(self, services, clock):
        async with services.runner.transaction("test") as ctx:
            first = ctx.now
            clock.now = START_TIME + 100
            assert ctx.now == first == START_TIME
            assert ctx.source.clock() == START_TIME

    @pytest.mark.asyncio
    async def test_error_rolls_back_everything(self, services):
        with pytest.raises(RuntimeError):
            async with services.runner.transaction("test") as ctx:
                ctx.config.ratio = 1
                await ctx.source.burn(ALICE, 10)
                raise RuntimeError("abort")

        state = await services.exchange.get_state()
        assert state.ratio != 1
        assert state.source_total_supply == ALICE_SOURCE
