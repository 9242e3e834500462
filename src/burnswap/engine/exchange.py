"""Exchange engine: burn source asset, pay target asset from the reserve."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from burnswap.engine.context import TransactionRunner
from burnswap.engine.events import ExchangePerformed, LoggedEvent, event_from_record
from burnswap.engine.pricing import compute_target_amount
from burnswap.engine.timelock import TimelockGuard
from burnswap.errors import ZeroOutputRejected
from burnswap.ledger.models import EventKind
from burnswap.permit.authorizer import PermitAuthorizer
from burnswap.permit.codec import PermitMessage, encode_permit_payload
from burnswap.utils.addresses import ensure_uint256, normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of a successful exchange."""

    requester: str
    source_amount: int
    target_amount: int
    permit_applied: Optional[bool]  # None when no permit was supplied
    event_id: int


@dataclass(frozen=True)
class EngineState:
    """Snapshot of configuration and custody balances."""

    source_asset: str
    target_asset: str
    engine_address: str
    administrator: str
    admin_nonce: int
    ratio: int
    withdraw_deadline: int
    withdrawal_unlocked: bool
    reserve: int
    source_custody: int
    source_total_supply: int
    updated_at: Optional[datetime]


class ExchangeEngine:
    """Central state machine for user exchanges.

    An exchange pulls the source asset from the caller, burns it, then pays
    the target asset out of the reserve. Pull and burn always happen before
    the payout, and the whole sequence commits or rolls back as one unit.
    """

    def __init__(
        self,
        runner: TransactionRunner,
        authorizer: Optional[PermitAuthorizer] = None,
        reject_zero_output: bool = False,
    ):
        self.runner = runner
        self.authorizer = authorizer or PermitAuthorizer(runner.engine_address)
        self.reject_zero_output = reject_zero_output

    async def exchange(
        self,
        caller: str,
        source_amount: int,
        permit: Union[bytes, PermitMessage, None] = None,
    ) -> ExchangeResult:
        """Exchange source_amount of the source asset for the target asset.

        Args:
            caller: Address surrendering the source asset and receiving the target asset
            source_amount: Units of source asset to burn
            permit: Optional permit payload (or decoded PermitMessage) granting the
                engine an allowance of exactly source_amount

        Returns:
            ExchangeResult with the paid target amount

        Raises:
            PermitError: Permit is malformed or not bound to this call
            InsufficientAllowance: No allowance for the pull
            InsufficientBalance: Caller balance or reserve too low
            ZeroOutputRejected: Target amount is zero and the policy rejects it
        """
        caller = normalize_address(caller, "caller")
        ensure_uint256(source_amount, "source_amount")
        if isinstance(permit, PermitMessage):
            permit = encode_permit_payload(permit)

        async with self.runner.transaction("exchange") as ctx:
            config = ctx.config
            engine = config.engine_address

            permit_applied = None
            if permit:
                permit_applied = await self.authorizer.authorize(
                    ctx.source, caller, permit, source_amount
                )

            target_amount = compute_target_amount(source_amount, config.ratio)
            if target_amount == 0 and self.reject_zero_output:
                raise ZeroOutputRejected(
                    f"Exchanging {source_amount} at ratio {config.ratio} pays nothing"
                )

            await ctx.source.transfer_from(engine, caller, engine, source_amount)
            await ctx.source.burn(engine, source_amount)
            await ctx.target.transfer(engine, caller, target_amount)

            record = await ctx.emit(
                ExchangePerformed(
                    source_amount=source_amount,
                    target_amount=target_amount,
                    requester=caller,
                ),
                requester=caller,
            )

        logger.info(
            f"Exchanged {source_amount} {config.source_asset} for "
            f"{target_amount} {config.target_asset} to {caller}"
        )
        return ExchangeResult(
            requester=caller,
            source_amount=source_amount,
            target_amount=target_amount,
            permit_applied=permit_applied,
            event_id=record.id,
        )

    async def quote(self, source_amount: int) -> int:
        """Target amount source_amount would currently pay, without state change."""
        ensure_uint256(source_amount, "source_amount")
        async with self.runner.transaction("quote") as ctx:
            return compute_target_amount(source_amount, ctx.config.ratio)

    async def fund_reserve(
        self,
        funder: str,
        amount: int,
        permit: Union[bytes, PermitMessage, None] = None,
    ) -> int:
        """Pull amount of funder's target asset into the reserve.

        The engine spends funder's target-asset allowance, so funder must have
        approved the engine beforehand or supply a target-asset permit.

        Returns:
            Reserve balance after the deposit

        Raises:
            PermitError: Permit is malformed or not bound to this call
            InsufficientAllowance: Funder has not approved the engine for amount
            InsufficientBalance: Funder holds less than amount
        """
        funder = normalize_address(funder, "funder")
        ensure_uint256(amount)
        if isinstance(permit, PermitMessage):
            permit = encode_permit_payload(permit)

        async with self.runner.transaction("fund_reserve") as ctx:
            engine = ctx.config.engine_address
            if permit:
                await self.authorizer.authorize(ctx.target, funder, permit, amount)
            await ctx.target.transfer_from(engine, funder, engine, amount)
            reserve = await ctx.target.balance_of(engine)
        logger.info(f"Reserve funded with {amount} by {funder}, now {reserve}")
        return reserve

    async def get_state(self) -> EngineState:
        """Read configuration and custody balances."""
        async with self.runner.transaction("get_state") as ctx:
            config = ctx.config
            engine = config.engine_address
            return EngineState(
                source_asset=config.source_asset,
                target_asset=config.target_asset,
                engine_address=engine,
                administrator=config.administrator,
                admin_nonce=config.admin_nonce,
                ratio=config.ratio,
                withdraw_deadline=config.withdraw_deadline,
                withdrawal_unlocked=TimelockGuard.is_unlocked(config, ctx.now),
                reserve=await ctx.target.balance_of(engine),
                source_custody=await ctx.source.balance_of(engine),
                source_total_supply=await ctx.source.total_supply(),
                updated_at=config.updated_at,
            )

    async def get_balances(self, holder: str) -> dict[str, int]:
        """Source and target balances of holder."""
        holder = normalize_address(holder, "holder")
        async with self.runner.transaction("get_balances") as ctx:
            return {
                "source": await ctx.source.balance_of(holder),
                "target": await ctx.target.balance_of(holder),
            }

    async def list_events(
        self,
        kind: Optional[EventKind] = None,
        requester: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[LoggedEvent]:
        """Read the event log in emission order."""
        if requester is not None:
            requester = normalize_address(requester, "requester")
        async with self.runner.transaction("list_events") as ctx:
            records = await ctx.repo.list_events(
                kind=kind, requester=requester, limit=limit, offset=offset
            )
            return [event_from_record(record) for record in records]
