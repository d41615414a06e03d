"""Transaction signing for supported chains."""

from walletsigner.signing.base import ChainSigner
from walletsigner.signing.btc import BitcoinChainSigner
from walletsigner.signing.evm import EVMChainSigner
from walletsigner.signing.factory import ChainSigningEngine
from walletsigner.signing.solana import SolanaChainSigner, associated_token_address

__all__ = [
    "ChainSigner",
    "ChainSigningEngine",
    "EVMChainSigner",
    "SolanaChainSigner",
    "BitcoinChainSigner",
    "associated_token_address",
]
