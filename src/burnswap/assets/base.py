"""Base interface for the asset gateway.

The engine never stores token balances itself. For each of its two assets it
talks to a gateway that provides ERC-20 style transfers, burning and
EIP-2612 permits, and it relies on the gateway to raise on failure:

1. ``transfer_from`` pulls the source asset from the caller into custody
2. ``burn`` destroys the pulled amount
3. ``transfer`` pays the target asset out of the reserve
4. ``permit`` grants the engine an allowance from an offline signature
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AssetGateway(ABC):
    """Abstract gateway to a single fungible token.

    Every mutating method is atomic and raises a ``GatewayError`` subclass
    instead of returning a failure flag. The acting identity is passed
    explicitly as the first address argument.
    """

    def __init__(self, asset: str):
        self.asset = asset

    @abstractmethod
    async def balance_of(self, holder: str) -> int:
        """Get the token balance of holder."""
        pass

    @abstractmethod
    async def allowance(self, owner: str, spender: str) -> int:
        """Get the amount spender may pull from owner."""
        pass

    @abstractmethod
    async def total_supply(self) -> int:
        """Get the circulating supply."""
        pass

    @abstractmethod
    async def nonces(self, owner: str) -> int:
        """Get the next permit nonce of owner."""
        pass

    @abstractmethod
    async def transfer(self, sender: str, to: str, amount: int) -> None:
        """Move amount from sender to to.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        pass

    @abstractmethod
    async def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        """Move amount from owner to to using spender's allowance.

        Raises:
            InsufficientAllowance: If the allowance is lower than amount
            InsufficientBalance: If owner holds less than amount
        """
        pass

    @abstractmethod
    async def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set the allowance of spender over owner's tokens."""
        pass

    @abstractmethod
    async def burn(self, holder: str, amount: int) -> None:
        """Destroy amount of holder's tokens, reducing total supply.

        Raises:
            InsufficientBalance: If holder holds less than amount
        """
        pass

    @abstractmethod
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
        """Grant spender an allowance of value from an owner signature.

        Raises:
            PermitRejected: If the permit is expired, consumed or not signed by owner
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(asset={self.asset})"
