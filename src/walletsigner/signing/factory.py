"""Chain signing engine.

Dispatches a signing request to the signer for its chain type.
"""

import logging
from typing import Type

from walletsigner.chains import ChainType
from walletsigner.contracts import SignedTransaction, SignTransactionRequest
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.ledger import AddressIndexRegistry
from walletsigner.signing.base import ChainSigner
from walletsigner.signing.btc import BitcoinChainSigner
from walletsigner.signing.evm import EVMChainSigner
from walletsigner.signing.solana import SolanaChainSigner

logger = logging.getLogger(__name__)

SIGNER_CLASSES: dict[ChainType, Type[ChainSigner]] = {
    ChainType.EVM: EVMChainSigner,
    ChainType.SOLANA: SolanaChainSigner,
    ChainType.BTC: BitcoinChainSigner,
}


class ChainSigningEngine:
    """Routes requests to per-chain signers sharing one key store and registry.

    Usage:
        engine = ChainSigningEngine(keystore, registry)
        signed = await engine.sign(request)
    """

    def __init__(self, keystore: SeedKeyStore, registry: AddressIndexRegistry):
        self._signers: dict[ChainType, ChainSigner] = {
            chain: signer_cls(keystore, registry) for chain, signer_cls in SIGNER_CLASSES.items()
        }

    def get_signer(self, chain_type: "str | ChainType") -> ChainSigner:
        """Get the signer for a chain type.

        Raises:
            UnsupportedChainError: Unknown chain type
        """
        return self._signers[ChainType.parse(chain_type)]

    async def sign(self, request: SignTransactionRequest) -> SignedTransaction:
        """Sign an authorized request on its chain."""
        signer = self.get_signer(request.chain_type)
        logger.debug(f"Dispatching operation {request.operation_id} to {signer!r}")
        return await signer.sign(request)

    @staticmethod
    def supported_chains() -> list[str]:
        """Chain types with a working signer."""
        return [chain.value for chain in (ChainType.EVM, ChainType.SOLANA)]
