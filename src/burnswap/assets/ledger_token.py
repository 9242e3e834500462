"""Ledger-backed token gateway.

Implements ERC-20 balances and allowances, burning, and EIP-2612 permits on
the SQL ledger, inside the session of the surrounding transaction. All checks
run before any row is modified so a raised error leaves nothing to undo.
"""

import logging
import time
from typing import Callable, Optional

from eth_keys.exceptions import BadSignature, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from burnswap.assets.base import AssetGateway
from burnswap.assets.typed_data import (
    build_permit_typed_data,
    is_canonical,
    recover_signer,
)
from burnswap.errors import (
    GatewayError,
    InsufficientAllowance,
    InsufficientBalance,
    PermitRejected,
)
from burnswap.ledger.models import PermitNonce, TokenAllowance, TokenAsset, TokenBalance
from burnswap.utils.addresses import UINT256_MAX, ensure_uint256, normalize_address

logger = logging.getLogger(__name__)

async def register_token(
    session: AsyncSession,
    address: str,
    name: str,
    chain_id: int,
    version: str = "1",
) -> TokenAsset:
    """Register a token on the ledger. Returns the existing row if already registered."""
    address = normalize_address(address, "token address")
    stmt = select(TokenAsset).where(TokenAsset.address == address)
    token = (await session.execute(stmt)).scalar_one_or_none()
    if token is None:
        token = TokenAsset(
            address=address, name=name, version=version, chain_id=chain_id, total_supply=0
        )
        session.add(token)
        await session.flush()
        logger.info(f"Registered token {name} at {address} (chain {chain_id})")
    return token


class LedgerAssetGateway(AssetGateway):
    """SQL-backed ERC-20 token with burn and EIP-2612 permit."""

    def __init__(
        self,
        session: AsyncSession,
        asset: str,
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__(normalize_address(asset, "asset"))
        self.session = session
        self.clock = clock or (lambda: int(time.time()))
        self._token: Optional[TokenAsset] = None

    async def _get_token(self) -> TokenAsset:
        if self._token is None:
            stmt = select(TokenAsset).where(TokenAsset.address == self.asset)
            self._token = (await self.session.execute(stmt)).scalar_one_or_none()
            if self._token is None:
                raise GatewayError(f"Token {self.asset} is not registered")
        return self._token

    async def _balance_row(self, holder: str, create: bool = True) -> Optional[TokenBalance]:
        stmt = select(TokenBalance).where(
            TokenBalance.asset == self.asset, TokenBalance.holder == holder
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None and create:
            row = TokenBalance(asset=self.asset, holder=holder, amount=0)
            self.session.add(row)
            await self.session.flush()
        return row

    async def _allowance_row(
        self, owner: str, spender: str, create: bool = True
    ) -> Optional[TokenAllowance]:
        stmt = select(TokenAllowance).where(
            TokenAllowance.asset == self.asset,
            TokenAllowance.owner == owner,
            TokenAllowance.spender == spender,
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None and create:
            row = TokenAllowance(asset=self.asset, owner=owner, spender=spender, amount=0)
            self.session.add(row)
            await self.session.flush()
        return row

    async def _nonce_row(self, owner: str, create: bool = True) -> Optional[PermitNonce]:
        stmt = select(PermitNonce).where(
            PermitNonce.asset == self.asset, PermitNonce.owner == owner
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None and create:
            row = PermitNonce(asset=self.asset, owner=owner, nonce=0)
            self.session.add(row)
            await self.session.flush()
        return row

    # Views
    async def balance_of(self, holder: str) -> int:
        await self._get_token()
        row = await self._balance_row(normalize_address(holder, "holder"), create=False)
        return row.amount if row is not None else 0

    async def allowance(self, owner: str, spender: str) -> int:
        await self._get_token()
        row = await self._allowance_row(
            normalize_address(owner, "owner"),
            normalize_address(spender, "spender"),
            create=False,
        )
        return row.amount if row is not None else 0

    async def total_supply(self) -> int:
        token = await self._get_token()
        return token.total_supply

    async def nonces(self, owner: str) -> int:
        await self._get_token()
        row = await self._nonce_row(normalize_address(owner, "owner"), create=False)
        return row.nonce if row is not None else 0

    # Mutations
    async def mint(self, to: str, amount: int) -> None:
        """Create amount new tokens for to (operator setup, not used by the engine)."""
        token = await self._get_token()
        ensure_uint256(amount)
        if token.total_supply + amount > UINT256_MAX:
            raise GatewayError(f"Minting {amount} would overflow total supply of {self.asset}")
        row = await self._balance_row(normalize_address(to, "recipient"))
        row.amount += amount
        token.total_supply += amount
        await self.session.flush()

    async def transfer(self, sender: str, to: str, amount: int) -> None:
        await self._get_token()
        ensure_uint256(amount)
        sender = normalize_address(sender, "sender")
        to = normalize_address(to, "recipient")
        await self._move(sender, to, amount)

    async def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        await self._get_token()
        ensure_uint256(amount)
        spender = normalize_address(spender, "spender")
        owner = normalize_address(owner, "owner")
        to = normalize_address(to, "recipient")

        allowance = await self._allowance_row(owner, spender)
        if allowance.amount < amount:
            raise InsufficientAllowance(self.asset, owner, spender, allowance.amount, amount)
        source = await self._balance_row(owner)
        if source.amount < amount:
            raise InsufficientBalance(self.asset, owner, source.amount, amount)

        # Unlimited approvals are not consumed
        if allowance.amount != UINT256_MAX:
            allowance.amount -= amount
        await self._move(owner, to, amount)

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        await self._get_token()
        ensure_uint256(amount)
        row = await self._allowance_row(
            normalize_address(owner, "owner"), normalize_address(spender, "spender")
        )
        row.amount = amount
        await self.session.flush()

    async def burn(self, holder: str, amount: int) -> None:
        token = await self._get_token()
        ensure_uint256(amount)
        row = await self._balance_row(normalize_address(holder, "holder"))
        if row.amount < amount:
            raise InsufficientBalance(self.asset, row.holder, row.amount, amount)
        row.amount -= amount
        token.total_supply -= amount
        await self.session.flush()
        logger.debug(f"Burned {amount} of {self.asset} from {row.holder}")

    async def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: bytes,
        s: bytes,
    ) -> None:
        token = await self._get_token()
        owner = normalize_address(owner, "owner")
        spender = normalize_address(spender, "spender")
        ensure_uint256(value, "value")
        ensure_uint256(deadline, "deadline")

        now = self.clock()
        if now > deadline:
            raise PermitRejected(f"Permit expired at {deadline} (now {now})")
        if not is_canonical(v, s):
            raise PermitRejected("Permit signature is not in canonical form")

        nonce_row = await self._nonce_row(owner)
        typed_data = build_permit_typed_data(
            token_name=token.name,
            token_version=token.version,
            chain_id=token.chain_id,
            token_address=token.address,
            owner=owner,
            spender=spender,
            value=value,
            nonce=nonce_row.nonce,
            deadline=deadline,
        )
        try:
            signer = recover_signer(typed_data, v, r, s)
        except (BadSignature, ValidationError, ValueError) as e:
            raise PermitRejected(f"Invalid permit signature: {e}") from e
        if signer != owner:
            raise PermitRejected(f"Permit signed by {signer}, expected {owner}")

        nonce_row.nonce += 1
        allowance = await self._allowance_row(owner, spender)
        allowance.amount = value
        await self.session.flush()
        logger.debug(f"Permit accepted: {owner} -> {spender} for {value} of {self.asset}")

    async def _move(self, sender: str, to: str, amount: int) -> None:
        source = await self._balance_row(sender)
        if source.amount < amount:
            raise InsufficientBalance(self.asset, sender, source.amount, amount)
        destination = await self._balance_row(to)
        source.amount -= amount
        destination.amount += amount
        await self.session.flush()
