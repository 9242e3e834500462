"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from eth_account import Account
from eth_utils import to_checksum_address
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["ADMIN_TOKEN"] = ""

from burnswap.assets.ledger_token import LedgerAssetGateway
from burnswap.config import RATIO_SCALE, Settings
from burnswap.engine.authorization import AdminCall, sign_admin_call
from burnswap.engine.bootstrap import EngineServices, bootstrap_from_settings, build_engine
from burnswap.ledger.database import create_db_engine, create_session_factory, init_db
from burnswap.utils.locks import clear_engine_locks

START_TIME = 1_700_000_000
LOCK_DURATION = 30 * 24 * 3600
DEADLINE = START_TIME + LOCK_DURATION

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
ADMIN_KEY = "0x" + "aa" * 32

ALICE = Account.from_key(ALICE_KEY).address
BOB = Account.from_key(BOB_KEY).address
ADMIN = Account.from_key(ADMIN_KEY).address

ENGINE = to_checksum_address("0x" + "be" * 20)
SOURCE = to_checksum_address("0x" + "50" * 20)
TARGET = to_checksum_address("0x" + "7a" * 20)
OTHER_TOKEN = to_checksum_address("0x" + "0c" * 20)

CHAIN_ID = 1
SOURCE_NAME = "Source Token"
TARGET_NAME = "Target Token"

ALICE_SOURCE = 1_000
ADMIN_TARGET = 10_000
RESERVE = 1_000


def signed_admin_call(operation, nonce=0, expiry=START_TIME + 600, key=ADMIN_KEY, **fields):
    """Administrative call on the test exchange and its signature by key."""
    call = AdminCall(operation, nonce, expiry, **fields)
    return call, sign_admin_call(key, call, CHAIN_ID, ENGINE)


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture(autouse=True)
def reset_locks():
    """Engine locks are bound to the loop that first contends them."""
    clear_engine_locks()
    yield
    clear_engine_locks()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Settings describing the test exchange."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        chain_id=CHAIN_ID,
        engine_address=ENGINE,
        administrator_address=ADMIN,
        source_asset_address=SOURCE,
        source_asset_name=SOURCE_NAME,
        target_asset_address=TARGET,
        target_asset_name=TARGET_NAME,
        initial_ratio=RATIO_SCALE,
        lock_duration_seconds=LOCK_DURATION,
        lock_timeout=5.0,
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session over the raw tables, tokens registered but no exchange."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def initialized(session_factory, test_settings):
    """Exchange initialized at START_TIME with funded accounts and reserve.

    Alice holds ALICE_SOURCE source tokens, the administrator holds the
    target supply minus RESERVE, and the engine holds RESERVE target tokens.
    """
    async with session_factory() as session:
        await bootstrap_from_settings(session, test_settings, now=START_TIME)

        source = LedgerAssetGateway(session, SOURCE)
        target = LedgerAssetGateway(session, TARGET)
        await source.mint(ALICE, ALICE_SOURCE)
        await target.mint(ADMIN, ADMIN_TARGET)
        await target.transfer(ADMIN, ENGINE, RESERVE)
        await session.commit()


@pytest_asyncio.fixture
async def services(session_factory, test_settings, clock, initialized) -> EngineServices:
    """Engine services on the initialized exchange."""
    return build_engine(session_factory, settings=test_settings, clock=clock)


@pytest.fixture
def ledger(session_factory):
    """Direct token operations outside the engine, committed immediately."""
    return LedgerOps(session_factory)


class LedgerOps:
    """Helper for setting up and inspecting token state in tests."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def balance(self, asset: str, holder: str) -> int:
        async with self.session_factory() as session:
            return await LedgerAssetGateway(session, asset).balance_of(holder)

    async def allowance(self, asset: str, owner: str, spender: str) -> int:
        async with self.session_factory() as session:
            return await LedgerAssetGateway(session, asset).allowance(owner, spender)

    async def total_supply(self, asset: str) -> int:
        async with self.session_factory() as session:
            return await LedgerAssetGateway(session, asset).total_supply()

    async def nonce(self, asset: str, owner: str) -> int:
        async with self.session_factory() as session:
            return await LedgerAssetGateway(session, asset).nonces(owner)

    async def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        async with self.session_factory() as session:
            await LedgerAssetGateway(session, asset).approve(owner, spender, amount)
            await session.commit()

    async def mint(self, asset: str, to: str, amount: int) -> None:
        async with self.session_factory() as session:
            await LedgerAssetGateway(session, asset).mint(to, amount)
            await session.commit()

    async def transfer(self, asset: str, sender: str, to: str, amount: int) -> None:
        async with self.session_factory() as session:
            await LedgerAssetGateway(session, asset).transfer(sender, to, amount)
            await session.commit()
