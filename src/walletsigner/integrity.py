"""Startup passphrase integrity check.

The passphrase is never stored, so the only way to detect a wrong one is to
re-derive a known address. The first EVM address (index 0) serves as the
canary: it is created on first start and compared on every start after.
"""

import logging

from walletsigner.chains import ChainType
from walletsigner.errors import DuplicateAddressError, PassphraseMismatchError
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.ledger import AddressIndexRegistry

logger = logging.getLogger(__name__)

CANARY_INDEX = 0


class PasswordIntegrityCheck:
    """Verifies the operator passphrase against the canary address.

    Runs once at startup, after the registry is ready and before any request
    is served.
    """

    def __init__(self, keystore: SeedKeyStore, registry: AddressIndexRegistry):
        self.keystore = keystore
        self.registry = registry

    async def verify(self) -> bool:
        """Return True when the passphrase reproduces the canary address.

        On an empty registry the canary is derived and persisted and the
        passphrase is trusted (first-use bootstrap).
        """
        canary = await self.registry.find_first(ChainType.EVM)

        if canary is None:
            logger.info("First start, creating canary address...")
            await self._create_canary()
            return True

        with self.keystore.derive_account(ChainType.EVM, canary.path) as account:
            if account.matches(canary.address):
                logger.info("Passphrase verified against canary address")
                return True

        logger.error(f"Passphrase verification failed for canary at {canary.path}")
        return False

    async def ensure(self) -> None:
        """Like verify(), but raise PassphraseMismatchError on failure."""
        if not await self.verify():
            raise PassphraseMismatchError(
                "Passphrase does not reproduce the canary address, refusing to start"
            )

    async def _create_canary(self) -> None:
        path = self.keystore.path_for_index(ChainType.EVM, CANARY_INDEX)
        async with self.registry.serialized(ChainType.EVM, operation="canary_bootstrap"):
            with self.keystore.derive_account(ChainType.EVM, path) as account:
                address = account.address
            try:
                await self.registry.record_address(address, path, CANARY_INDEX, ChainType.EVM)
            except DuplicateAddressError:
                # Another process got there first; accept only the same address
                existing = await self.registry.find_first(ChainType.EVM)
                if existing is None or existing.address.lower() != address.lower():
                    raise PassphraseMismatchError(
                        "Canary slot is taken by a different address"
                    ) from None
        logger.info(f"Canary address created: {address}")
