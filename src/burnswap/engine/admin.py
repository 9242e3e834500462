"""Administration: ratio, deadline, withdrawals and administrator handover.

Every operation checks the caller against the administrator stored in the
configuration before looking at its arguments. In-process callers pass the
caller address directly; remote callers go through ``execute``, where the
caller is the signer of an ``AdminCall``.
"""

import logging
from typing import Optional

from burnswap.engine.authorization import AdminCall, normalize_call, recover_admin_signer
from burnswap.engine.context import EngineContext, TransactionRunner
from burnswap.engine.events import (
    AdministratorChanged,
    DeadlineChanged,
    EngineEvent,
    RatioChanged,
    WithdrawalPerformed,
)
from burnswap.engine.pricing import check_ratio_bounds
from burnswap.engine.timelock import TimelockGuard
from burnswap.errors import AdminSignatureRejected, InvalidAddress, Unauthorized
from burnswap.utils.addresses import ensure_uint256, normalize_address

logger = logging.getLogger(__name__)


def require_administrator(ctx: EngineContext, caller: str, operation: str) -> None:
    """Raise Unauthorized unless caller is the configured administrator."""
    if caller != ctx.config.administrator:
        logger.warning(f"Rejected {operation} from non-administrator {caller}")
        raise Unauthorized(caller, operation)


class Administration:
    """Administrator-only operations on the exchange."""

    def __init__(
        self,
        runner: TransactionRunner,
        min_ratio: Optional[int] = None,
        max_ratio: Optional[int] = None,
        chain_id: int = 1,
    ):
        self.runner = runner
        self.min_ratio = min_ratio
        self.max_ratio = max_ratio
        self.chain_id = chain_id

    async def withdraw(self, caller: str, asset: str, amount: int) -> WithdrawalPerformed:
        """Send amount of asset from custody to the administrator.

        Raises:
            Unauthorized: Caller is not the administrator
            TimeoutNotReached: Asset is the target asset and the deadline has not passed
            InsufficientBalance: Custody holds less than amount
        """
        caller = normalize_address(caller, "caller")
        async with self.runner.transaction("withdraw") as ctx:
            return await self._withdraw(ctx, caller, asset, amount)

    async def set_ratio(self, caller: str, new_ratio: int) -> RatioChanged:
        """Overwrite the exchange ratio."""
        caller = normalize_address(caller, "caller")
        async with self.runner.transaction("set_ratio") as ctx:
            return await self._set_ratio(ctx, caller, new_ratio)

    async def set_withdraw_deadline(self, caller: str, new_deadline: int) -> DeadlineChanged:
        """Push the withdraw deadline later.

        Raises:
            DeadlineNotIncreasing: new_deadline is not after the current deadline
        """
        caller = normalize_address(caller, "caller")
        async with self.runner.transaction("set_withdraw_deadline") as ctx:
            return await self._set_withdraw_deadline(ctx, caller, new_deadline)

    async def transfer_administration(
        self, caller: str, new_administrator: str
    ) -> AdministratorChanged:
        """Hand the administrator role to another address."""
        caller = normalize_address(caller, "caller")
        async with self.runner.transaction("transfer_administration") as ctx:
            return await self._transfer_administration(ctx, caller, new_administrator)

    async def execute(self, call: AdminCall, signature: bytes) -> EngineEvent:
        """Apply an administrative call signed by the administrator.

        The call must carry the current administrator nonce and must not be
        expired. The nonce advances only when the operation itself succeeds.

        Raises:
            AdminSignatureRejected: Unknown operation, expired call, stale
                nonce or unusable signature
            Unauthorized: Signer is not the administrator
        """
        call = normalize_call(call)
        async with self.runner.transaction(call.operation) as ctx:
            config = ctx.config
            if ctx.now > call.expiry:
                raise AdminSignatureRejected(
                    f"{call.operation} call expired at {call.expiry} (now {ctx.now})"
                )
            if call.nonce != config.admin_nonce:
                raise AdminSignatureRejected(
                    f"{call.operation} call has nonce {call.nonce}, "
                    f"expected {config.admin_nonce}"
                )

            signer = recover_admin_signer(
                call, signature, self.chain_id, config.engine_address
            )
            require_administrator(ctx, signer, call.operation)
            config.admin_nonce += 1

            if call.operation == "withdraw":
                event = await self._withdraw(ctx, signer, call.asset, call.value)
            elif call.operation == "set_ratio":
                event = await self._set_ratio(ctx, signer, call.value)
            elif call.operation == "set_withdraw_deadline":
                event = await self._set_withdraw_deadline(ctx, signer, call.value)
            else:
                event = await self._transfer_administration(ctx, signer, call.account)

        logger.info(f"Signed {call.operation} call {call.nonce} applied for {signer}")
        return event

    async def _withdraw(
        self, ctx: EngineContext, caller: str, asset: str, amount: int
    ) -> WithdrawalPerformed:
        require_administrator(ctx, caller, "withdraw")
        asset = normalize_address(asset, "asset")
        ensure_uint256(amount)

        TimelockGuard.check_withdrawal(ctx.config, asset, ctx.now)
        await ctx.gateway(asset).transfer(ctx.config.engine_address, caller, amount)

        event = WithdrawalPerformed(asset=asset, amount=amount)
        await ctx.emit(event, requester=caller)
        return event

    async def _set_ratio(self, ctx: EngineContext, caller: str, new_ratio: int) -> RatioChanged:
        require_administrator(ctx, caller, "set_ratio")
        ensure_uint256(new_ratio, "ratio")
        check_ratio_bounds(new_ratio, self.min_ratio, self.max_ratio)

        ctx.config.ratio = new_ratio
        event = RatioChanged(new_ratio=new_ratio)
        await ctx.emit(event, requester=caller)
        return event

    async def _set_withdraw_deadline(
        self, ctx: EngineContext, caller: str, new_deadline: int
    ) -> DeadlineChanged:
        require_administrator(ctx, caller, "set_withdraw_deadline")
        ensure_uint256(new_deadline, "deadline")

        TimelockGuard.extend(ctx.config, new_deadline)
        event = DeadlineChanged(new_deadline=new_deadline)
        await ctx.emit(event, requester=caller)
        return event

    async def _transfer_administration(
        self, ctx: EngineContext, caller: str, new_administrator: str
    ) -> AdministratorChanged:
        require_administrator(ctx, caller, "transfer_administration")
        new_administrator = normalize_address(new_administrator, "new administrator")
        if int(new_administrator, 16) == 0:
            raise InvalidAddress("New administrator cannot be the zero address")

        ctx.config.administrator = new_administrator
        event = AdministratorChanged(
            previous_administrator=caller, new_administrator=new_administrator
        )
        await ctx.emit(event, requester=caller)
        return event
