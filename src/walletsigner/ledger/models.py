"""SQLAlchemy models for generated address records."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AddressRecord(Base):
    """An address generated by this signer.

    Write-once: rows are never updated or replaced. The index is unique and
    contiguous per chain type starting at 0; the address is unique across all
    chains. No key material is stored, only the path to re-derive it.
    """

    __tablename__ = "generated_addresses"
    __table_args__ = (
        Index("ix_generated_addresses_chain_index", "chain_type", "index_value", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    path: Mapped[str] = mapped_column(String(100), nullable=False)
    index_value: Mapped[int] = mapped_column(nullable=False)
    chain_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    @property
    def index(self) -> int:
        return self.index_value

    def __repr__(self) -> str:
        return (
            f"AddressRecord(chain_type={self.chain_type!r}, index={self.index_value}, "
            f"address={self.address!r}, path={self.path!r})"
        )
