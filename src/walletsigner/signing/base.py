"""Base interfaces for chain transaction signing.

Signing flow:
1. Resolve the sender's address record (only addresses generated here sign)
2. Re-derive the key from the stored path and check it reproduces the address
3. Build the chain-specific transaction from caller-supplied parameters
4. Sign, discard the key, return the serialized transaction and its hash

No network calls are made: nonce, gas and blockhash come from the caller.
"""

import logging
from abc import ABC, abstractmethod

from walletsigner.chains import ChainType
from walletsigner.contracts import SignedTransaction, SignTransactionRequest
from walletsigner.errors import AddressNotFoundError, PassphraseMismatchError
from walletsigner.hdwallet import DerivedAccount, SeedKeyStore
from walletsigner.ledger import AddressIndexRegistry

logger = logging.getLogger(__name__)


class ChainSigner(ABC):
    """Abstract base class for chain signers.

    Implementations never keep key material past a single ``sign`` call.
    """

    chain_type: ChainType

    def __init__(self, keystore: SeedKeyStore, registry: AddressIndexRegistry):
        self.keystore = keystore
        self.registry = registry

    @abstractmethod
    async def sign(self, request: SignTransactionRequest) -> SignedTransaction:
        """Build and sign the transaction described by ``request``.

        Args:
            request: An already authorized signing request

        Returns:
            SignedTransaction with the serialized transaction and its hash
        """
        pass

    async def resolve_account(self, request: SignTransactionRequest) -> DerivedAccount:
        """Re-derive the sender key from its stored path.

        Raises:
            AddressNotFoundError: Address unknown or recorded for another chain
            PassphraseMismatchError: Re-derivation yields a different address
        """
        record = await self.registry.find_by_address(request.address)
        if record is None or record.chain_type != self.chain_type.value:
            raise AddressNotFoundError(request.address)

        logger.debug(f"Derivation path for {request.address}: {record.path}")
        account = self.keystore.derive_account(self.chain_type, record.path)

        if not account.matches(request.address):
            account.discard()
            logger.error(
                f"Address verification failed: derived {account.address}, requested {request.address}"
            )
            raise PassphraseMismatchError(
                "Derived address does not match the requested address, the passphrase may be wrong"
            )
        return account

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain={self.chain_type.value})"
