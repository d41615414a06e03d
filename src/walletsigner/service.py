"""Signer service: address creation and authorized transaction signing."""

import logging
from typing import Optional

from walletsigner.authorization import DualSignatureAuthorizer
from walletsigner.chains import ChainType
from walletsigner.contracts import SignedTransaction, SignTransactionRequest, WalletInfo
from walletsigner.errors import ChainNotImplementedError
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.integrity import PasswordIntegrityCheck
from walletsigner.ledger import AddressIndexRegistry
from walletsigner.signing import ChainSigningEngine

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "signer_device1"


class SignerService:
    """Orchestrates the key store, registry, authorizer and signing engine.

    Usage:
        service = SignerService(keystore, registry, authorizer)
        await service.startup()
        info = await service.create_address("evm")
        signed = await service.sign_transaction(request)
    """

    def __init__(
        self,
        keystore: SeedKeyStore,
        registry: AddressIndexRegistry,
        authorizer: DualSignatureAuthorizer,
        engine: Optional[ChainSigningEngine] = None,
        device: str = DEFAULT_DEVICE,
    ):
        self.keystore = keystore
        self.registry = registry
        self.authorizer = authorizer
        self.engine = engine or ChainSigningEngine(keystore, registry)
        self.device = device

    async def startup(self) -> None:
        """Run the passphrase integrity check; raises PassphraseMismatchError."""
        await PasswordIntegrityCheck(self.keystore, self.registry).ensure()

    async def create_address(self, chain_type: "str | ChainType") -> WalletInfo:
        """Create the next address for a chain.

        Allocation, derivation and recording run under the chain's lock, so
        concurrent calls get consecutive indices.

        Raises:
            UnsupportedChainError: Unknown chain type
            ChainNotImplementedError: BTC
            LockTimeoutError: Chain lock not acquired in time
            DuplicateAddressError: Record conflicts with an existing one
            StorageError: Storage failure (nothing recorded)
        """
        chain = ChainType.parse(chain_type)
        if chain == ChainType.BTC:
            raise ChainNotImplementedError("BTC address creation is not implemented")

        async with self.registry.serialized(chain, operation="create_address"):
            index = await self.registry.allocate_next_index(chain)
            path = self.keystore.path_for_index(chain, index)
            with self.keystore.derive_account(chain, path) as account:
                address = account.address
            record = await self.registry.record_address(address, path, index, chain)

        logger.info(f"Address created: {address}, path: {path}, chain: {chain.value}")
        return WalletInfo(
            address=record.address,
            path=record.path,
            index=record.index_value,
            device=self.device,
            chain_type=chain.value,
            created_at=record.created_at,
        )

    async def sign_transaction(self, request: SignTransactionRequest) -> SignedTransaction:
        """Authorize then sign.

        Authorization runs first and nothing is looked up or derived for a
        rejected request.

        Raises:
            AuthorizationError: Missing, invalid or expired signatures
            UnsupportedChainError / ChainNotImplementedError
            AddressNotFoundError, PassphraseMismatchError, ChainParameterError
        """
        self.authorizer.authorize(request)
        logger.info(
            f"Operation {request.operation_id} authorized: {request.chain_type} "
            f"{request.address} -> {request.to}, amount {request.amount}"
        )
        return await self.engine.sign(request)

    async def health(self) -> dict:
        """Address counts per chain and authorization readiness."""
        return {
            "addresses": await self.registry.count_by_chain(),
            "authorization_configured": self.authorizer.is_configured,
            "supported_chains": self.engine.supported_chains(),
            "device": self.device,
        }
