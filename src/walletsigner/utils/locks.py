"""Concurrency control for address allocation.

Provides per-chain locking so that allocate-index, derive and record run as
one serialized step for each chain type.
"""

import asyncio
import logging
from typing import Optional

from walletsigner.errors import LockTimeoutError

logger = logging.getLogger(__name__)


class ChainLockRegistry:
    """Holds one asyncio.Lock per chain type."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, chain_type: str) -> asyncio.Lock:
        """Get or create the lock for a chain type.

        Runs without awaiting, so creation cannot interleave on one event loop.
        """
        lock = self._locks.get(chain_type)
        if lock is None:
            lock = self._locks[chain_type] = asyncio.Lock()
        return lock

    def clear(self) -> None:
        """Drop all locks (useful for testing)."""
        self._locks.clear()


class ChainLock:
    """Context manager for exclusive access to a chain's address allocation.

    Example:
        async with ChainLock(locks, "evm", operation="create_address"):
            index = await registry.allocate_next_index("evm")
            ...
    """

    def __init__(
        self,
        registry: ChainLockRegistry,
        chain_type: str,
        timeout: Optional[float] = 30.0,
        operation: str = "address_allocation",
    ):
        """Initialize the lock.

        Args:
            registry: Lock registry to take the chain's lock from
            chain_type: Chain type to serialize on
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.chain_type = chain_type
        self.timeout = timeout
        self.operation = operation
        self._lock = registry.get(chain_type)
        self._acquired = False

    async def __aenter__(self) -> "ChainLock":
        """Acquire the lock."""
        try:
            if self.timeout:
                self._acquired = await asyncio.wait_for(
                    self._lock.acquire(),
                    timeout=self.timeout,
                )
            else:
                await self._lock.acquire()
                self._acquired = True
        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for chain {self.chain_type} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for chain {self.chain_type} within {self.timeout}s"
            )

        logger.debug(f"Lock acquired for chain {self.chain_type}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for chain {self.chain_type}: {self.operation}")
        return False
