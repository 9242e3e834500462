"""SQLAlchemy models for the exchange ledger."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Uint256(TypeDecorator):
    """Unsigned 256-bit integer stored as a decimal string.

    Numeric columns lose precision past 64 bits on SQLite, token amounts
    and ratios must round-trip exactly.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class EventKind(str, Enum):
    """Kind of an entry in the event log."""

    EXCHANGE = "exchange"
    RATIO_CHANGED = "ratio_changed"
    DEADLINE_CHANGED = "deadline_changed"
    WITHDRAWAL = "withdrawal"
    ADMINISTRATOR_CHANGED = "administrator_changed"


class ExchangeConfig(Base):
    """Singleton exchange configuration.

    Asset identities and the engine address are fixed at initialization.
    Only the administration layer mutates ratio, deadline and administrator.
    """

    __tablename__ = "exchange_config"

    id: Mapped[int] = mapped_column(primary_key=True)
    source_asset: Mapped[str] = mapped_column(String(42), nullable=False)
    target_asset: Mapped[str] = mapped_column(String(42), nullable=False)
    engine_address: Mapped[str] = mapped_column(String(42), nullable=False)
    ratio: Mapped[int] = mapped_column(Uint256, nullable=False)
    withdraw_deadline: Mapped[int] = mapped_column(Uint256, nullable=False)
    administrator: Mapped[str] = mapped_column(String(42), nullable=False)
    # consumed by each signed administrative call
    admin_nonce: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TokenAsset(Base):
    """Token registered on the ledger-backed asset gateway."""

    __tablename__ = "token_assets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(42), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # EIP-712 domain name
    version: Mapped[str] = mapped_column(String(20), default="1")
    chain_id: Mapped[int] = mapped_column(nullable=False)
    total_supply: Mapped[int] = mapped_column(Uint256, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TokenBalance(Base):
    """Balance of one holder for one token."""

    __tablename__ = "token_balances"
    __table_args__ = (Index("ix_token_balances_asset_holder", "asset", "holder", unique=True),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    holder: Mapped[str] = mapped_column(String(42), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TokenAllowance(Base):
    """Amount a spender may pull from an owner."""

    __tablename__ = "token_allowances"
    __table_args__ = (
        Index("ix_token_allowances_asset_owner_spender", "asset", "owner", "spender", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    owner: Mapped[str] = mapped_column(String(42), nullable=False)
    spender: Mapped[str] = mapped_column(String(42), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, default=0)


class PermitNonce(Base):
    """EIP-2612 nonce per owner, consumed by each accepted permit."""

    __tablename__ = "permit_nonces"
    __table_args__ = (Index("ix_permit_nonces_asset_owner", "asset", "owner", unique=True),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    owner: Mapped[str] = mapped_column(String(42), nullable=False)
    nonce: Mapped[int] = mapped_column(Uint256, default=0)


class EventRecord(Base):
    """Append-only log of engine events."""

    __tablename__ = "event_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kind: Mapped[EventKind] = mapped_column(String(40), nullable=False, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    requester: Mapped[Optional[str]] = mapped_column(String(42), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
