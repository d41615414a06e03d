"""Address record storage."""

from walletsigner.ledger.database import Database
from walletsigner.ledger.models import AddressRecord, Base
from walletsigner.ledger.registry import AddressIndexRegistry
from walletsigner.ledger.repository import AddressRepository

__all__ = [
    "AddressIndexRegistry",
    "AddressRecord",
    "AddressRepository",
    "Base",
    "Database",
]
