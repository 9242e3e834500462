"""Permit authorizer.

Binds a permit payload to the exchange it accompanies, then forwards it to
the source asset gateway on a best-effort basis.
"""

import logging

from burnswap.assets.base import AssetGateway
from burnswap.errors import (
    GatewayError,
    PermitAmountMismatch,
    PermitSignerMismatch,
    PermitSpenderMismatch,
)
from burnswap.permit.codec import PermitMessage, decode_permit_payload
from burnswap.utils.addresses import normalize_address

logger = logging.getLogger(__name__)


class PermitAuthorizer:
    """Validates permit payloads for one engine.

    A permit is accepted only if it was signed by the caller, names the engine
    as spender and covers exactly the amount being exchanged.

    The gateway ``permit`` call itself is not a gate. Anyone who sees the
    signed payload can submit it to the token first, consuming its nonce; the
    exchange then proceeds on the allowance that submission created. If no
    allowance exists, the ``transfer_from`` that follows fails and aborts the
    exchange.
    """

    def __init__(self, engine_address: str):
        self.engine_address = normalize_address(engine_address, "engine address")

    def validate(self, caller: str, payload: bytes, expected_amount: int) -> PermitMessage:
        """Decode payload and check it against the current call.

        Raises:
            MalformedPermit: Wrong type tag or undecodable body
            PermitSignerMismatch: Signer is not the caller
            PermitSpenderMismatch: Spender is not the engine
            PermitAmountMismatch: Amount differs from expected_amount
        """
        permit = decode_permit_payload(payload)

        if permit.signer != caller:
            raise PermitSignerMismatch(
                f"Permit signed by {permit.signer} but exchange called by {caller}"
            )
        if permit.spender != self.engine_address:
            raise PermitSpenderMismatch(
                f"Permit spender {permit.spender} is not the engine {self.engine_address}"
            )
        if permit.amount != expected_amount:
            raise PermitAmountMismatch(
                f"Permit amount {permit.amount} does not match exchanged amount {expected_amount}"
            )
        return permit

    async def authorize(
        self,
        gateway: AssetGateway,
        caller: str,
        payload: bytes,
        expected_amount: int,
    ) -> bool:
        """Validate payload and submit it to the gateway.

        Returns:
            True if the gateway accepted the permit, False if it refused it
        """
        caller = normalize_address(caller, "caller")
        permit = self.validate(caller, payload, expected_amount)

        try:
            await gateway.permit(
                permit.signer,
                permit.spender,
                permit.amount,
                permit.deadline,
                permit.v,
                permit.r,
                permit.s,
            )
        except GatewayError as e:
            logger.warning(
                "Permit from %s for %d not applied by %s: %s",
                caller,
                expected_amount,
                gateway.asset,
                e,
            )
            return False

        logger.debug(f"Permit from {caller} for {expected_amount} applied on {gateway.asset}")
        return True
