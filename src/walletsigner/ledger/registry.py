"""Address index registry.

The next index for a chain is always computed as ``1 + max(index)`` over the
existing records (0 when there are none). There is no separately persisted
counter, so a crash between allocation and insert leaves nothing to repair:
the failed attempt is simply retried and gets the same index.

Allocation and recording must run under ``serialized(chain_type)``. Without
it two callers can compute the same index; the unique constraints then make
the losing insert fail with DuplicateAddressError instead of overwriting.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from walletsigner.chains import ChainType
from walletsigner.errors import DuplicateAddressError, StorageError
from walletsigner.ledger.database import Database
from walletsigner.ledger.models import AddressRecord
from walletsigner.ledger.repository import AddressRepository
from walletsigner.utils.locks import ChainLock, ChainLockRegistry

logger = logging.getLogger(__name__)


class AddressIndexRegistry:
    """Persisted address <-> path <-> index records per chain type."""

    def __init__(self, db: Database, lock_timeout: Optional[float] = 30.0):
        self.db = db
        self.lock_timeout = lock_timeout
        self._locks = ChainLockRegistry()

    def serialized(self, chain_type: "str | ChainType", operation: str = "create_address") -> ChainLock:
        """Per-chain critical section for allocate + derive + record."""
        return ChainLock(
            self._locks,
            ChainType.parse(chain_type).value,
            timeout=self.lock_timeout,
            operation=operation,
        )

    async def allocate_next_index(self, chain_type: "str | ChainType") -> int:
        """Next free index for a chain: 1 + max(index), or 0 if none exist."""
        chain = ChainType.parse(chain_type).value
        try:
            async with self.db.session() as session:
                max_index = await AddressRepository(session).max_index(chain)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read max index for {chain}: {e}") from e
        return max_index + 1

    async def record_address(
        self,
        address: str,
        path: str,
        index: int,
        chain_type: "str | ChainType",
    ) -> AddressRecord:
        """Insert a write-once record.

        Raises:
            DuplicateAddressError: Address or (chain, index) already recorded
            StorageError: Any other storage failure
        """
        chain = ChainType.parse(chain_type).value
        try:
            async with self.db.session() as session:
                record = await AddressRepository(session).insert(address, path, index, chain)
        except IntegrityError as e:
            logger.warning(f"Duplicate address record for {chain} index {index}: {address}")
            raise DuplicateAddressError(
                f"Address record conflicts with an existing one ({chain} index {index}, {address})"
            ) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to record address {address}: {e}") from e

        logger.info(f"Address recorded: {address}, index: {index}, chain: {chain}")
        return record

    async def find_by_address(self, address: str) -> Optional[AddressRecord]:
        """Look up a record by address; hex addresses match in any casing."""
        try:
            async with self.db.session() as session:
                repo = AddressRepository(session)
                record = await repo.get_by_address(address)
                if record is None and address.lower().startswith("0x"):
                    record = await repo.get_by_address_ci(address)
                return record
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to look up address {address}: {e}") from e

    async def find_first(self, chain_type: "str | ChainType") -> Optional[AddressRecord]:
        """Lowest-index record for a chain (the canary for EVM)."""
        chain = ChainType.parse(chain_type).value
        try:
            async with self.db.session() as session:
                return await AddressRepository(session).first_for_chain(chain)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read first {chain} record: {e}") from e

    async def count_by_chain(self) -> dict[str, int]:
        try:
            async with self.db.session() as session:
                return await AddressRepository(session).count_by_chain()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count address records: {e}") from e
