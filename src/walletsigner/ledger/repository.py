"""Repository for address record queries."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from walletsigner.ledger.models import AddressRecord


class AddressRepository:
    """Query contract over the generated address table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(
        self, address: str, path: str, index: int, chain_type: str
    ) -> AddressRecord:
        """Insert a new record. Never replaces an existing row."""
        record = AddressRecord(
            address=address,
            path=path,
            index_value=index,
            chain_type=chain_type,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def get_by_address(self, address: str) -> Optional[AddressRecord]:
        """Get a record by its exact address string."""
        stmt = select(AddressRecord).where(AddressRecord.address == address)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_address_ci(self, address: str) -> Optional[AddressRecord]:
        """Case-insensitive lookup, for hex addresses given in another casing."""
        stmt = select(AddressRecord).where(
            func.lower(AddressRecord.address) == address.lower()
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def max_index(self, chain_type: str) -> int:
        """Highest index recorded for a chain, or -1 when there is none."""
        stmt = select(func.max(AddressRecord.index_value)).where(
            AddressRecord.chain_type == chain_type
        )
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return -1 if value is None else int(value)

    async def first_for_chain(self, chain_type: str) -> Optional[AddressRecord]:
        """Lowest-index record for a chain."""
        stmt = (
            select(AddressRecord)
            .where(AddressRecord.chain_type == chain_type)
            .order_by(AddressRecord.index_value.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_chain(self) -> dict[str, int]:
        stmt = select(AddressRecord.chain_type, func.count(AddressRecord.id)).group_by(
            AddressRecord.chain_type
        )
        result = await self.session.execute(stmt)
        return {chain: count for chain, count in result.all()}
