"""Concurrency control for engine state.

The ratio read and the pull/burn/transfer chain of an exchange must see one
consistent snapshot, so every state-mutating call holds a single lock per
engine for its whole transaction.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)

# Global lock registry: engine address -> asyncio.Lock
_engine_locks: dict[str, asyncio.Lock] = {}


def get_engine_lock(engine_address: str) -> asyncio.Lock:
    """Get or create the lock guarding an engine's state.

    Args:
        engine_address: Checksum address of the engine

    Returns:
        asyncio.Lock shared by every caller of that engine
    """
    key = engine_address.lower()
    lock = _engine_locks.get(key)
    if lock is None:
        lock = _engine_locks[key] = asyncio.Lock()
    return lock


class LockTimeoutError(Exception):
    """Raised when the engine lock cannot be acquired within the timeout period."""

    pass


@asynccontextmanager
async def engine_lock(
    engine_address: str,
    timeout: Optional[float] = 30.0,
    operation: str = "engine_operation",
):
    """Hold the engine lock for the duration of the block.

    Args:
        engine_address: Engine whose state is mutated
        timeout: Maximum time to wait for the lock (None or 0 = wait forever)
        operation: Description for logging

    Example:
        async with engine_lock(config.engine_address, operation="exchange"):
            # Atomic read-modify-write of config and balances
            pass
    """
    lock = get_engine_lock(engine_address)

    try:
        if timeout:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        else:
            await lock.acquire()
    except asyncio.TimeoutError:
        logger.warning(f"Lock timeout for engine {engine_address} after {timeout}s: {operation}")
        raise LockTimeoutError(
            f"Could not acquire lock for engine {engine_address} within {timeout}s"
        )

    logger.debug(f"Lock acquired for engine {engine_address}: {operation}")
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Lock released for engine {engine_address}: {operation}")


def clear_engine_locks() -> None:
    """Clear all engine locks (useful for testing)."""
    _engine_locks.clear()
