"""Timelock guard on reserve withdrawals."""

from burnswap.errors import DeadlineNotIncreasing, TimeoutNotReached
from burnswap.ledger.models import ExchangeConfig


class TimelockGuard:
    """Keeps the target reserve locked until the withdraw deadline.

    The deadline only moves forward: users can rely on the reserve staying
    available for exchanges at least until the deadline they last observed.
    """

    @staticmethod
    def is_unlocked(config: ExchangeConfig, now: int) -> bool:
        """True once the deadline has strictly passed."""
        return now > config.withdraw_deadline

    @classmethod
    def check_withdrawal(cls, config: ExchangeConfig, asset: str, now: int) -> None:
        """Raise TimeoutNotReached when withdrawing the target asset too early.

        Other assets, including the source asset, are not time-locked.
        """
        if asset == config.target_asset and not cls.is_unlocked(config, now):
            raise TimeoutNotReached(now, config.withdraw_deadline)

    @staticmethod
    def extend(config: ExchangeConfig, new_deadline: int) -> None:
        """Move the deadline to new_deadline, which must be strictly later."""
        if new_deadline <= config.withdraw_deadline:
            raise DeadlineNotIncreasing(config.withdraw_deadline, new_deadline)
        config.withdraw_deadline = new_deadline
