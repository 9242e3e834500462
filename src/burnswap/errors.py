"""Exceptions raised by the exchange engine and its collaborators.

Every exception aborts the whole call: the surrounding transaction is
rolled back, so no balance, nonce or event survives a failure.
"""


class ExchangeError(Exception):
    """Base class for all engine errors."""
    pass


# Asset gateway

class GatewayError(ExchangeError):
    """Raised by an asset gateway when a token operation fails."""
    pass


class InsufficientBalance(GatewayError):
    """Holder balance is lower than the requested amount."""

    def __init__(self, asset: str, holder: str, available: int, required: int):
        self.asset = asset
        self.holder = holder
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient balance: {holder} holds {available} of {asset}, need {required}"
        )


class InsufficientAllowance(GatewayError):
    """Spender allowance is lower than the requested amount."""

    def __init__(self, asset: str, owner: str, spender: str, available: int, required: int):
        self.asset = asset
        self.owner = owner
        self.spender = spender
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient allowance: {spender} may spend {available} of {asset} "
            f"for {owner}, need {required}"
        )


class PermitRejected(GatewayError):
    """The gateway refused a permit (expired, bad signature, consumed nonce)."""
    pass


# Permit authorizer

class PermitError(ExchangeError):
    """Permit payload failed validation against the current call."""
    pass


class MalformedPermit(PermitError):
    """Payload does not carry the recognized permit type tag or cannot be decoded."""
    pass


class PermitSignerMismatch(PermitError):
    """Permit signer is not the caller."""
    pass


class PermitSpenderMismatch(PermitError):
    """Permit spender is not the engine."""
    pass


class PermitAmountMismatch(PermitError):
    """Permit amount differs from the exchanged amount."""
    pass


# Administration and timelock

class Unauthorized(ExchangeError):
    """Caller is not the administrator."""

    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"{caller} is not allowed to {operation}")


class AdminSignatureRejected(ExchangeError):
    """Signed administrative call is expired, replayed or not a valid signature."""
    pass


class TimeoutNotReached(ExchangeError):
    """Target asset withdrawal attempted before the withdraw deadline."""

    def __init__(self, now: int, deadline: int):
        self.now = now
        self.deadline = deadline
        super().__init__(f"Withdraw deadline {deadline} not reached (now {now})")


class DeadlineNotIncreasing(ExchangeError):
    """New withdraw deadline is not strictly later than the current one."""

    def __init__(self, current: int, requested: int):
        self.current = current
        self.requested = requested
        super().__init__(
            f"New deadline {requested} must be greater than current deadline {current}"
        )


# Policy and configuration

class ZeroOutputRejected(ExchangeError):
    """Exchange would burn source asset and pay out nothing."""
    pass


class RatioOutOfBounds(ExchangeError):
    """Ratio outside the configured bounds."""
    pass


class InvalidAmount(ExchangeError, ValueError):
    """Value is not an unsigned 256-bit integer."""
    pass


class InvalidAddress(ExchangeError, ValueError):
    """Value is not a 20-byte hex address."""
    pass


class ConfigurationError(ExchangeError):
    """Exchange cannot be initialized with the given parameters."""
    pass


class NotInitialized(ExchangeError):
    """Exchange configuration has not been created yet."""
    pass
