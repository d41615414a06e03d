"""Bitcoin signer placeholder.

BTC is a recognized chain type with a reserved derivation path, but neither
address creation nor signing is implemented.
"""

from walletsigner.chains import ChainType
from walletsigner.contracts import SignedTransaction, SignTransactionRequest
from walletsigner.errors import ChainNotImplementedError
from walletsigner.signing.base import ChainSigner


class BitcoinChainSigner(ChainSigner):
    chain_type = ChainType.BTC

    async def sign(self, request: SignTransactionRequest) -> SignedTransaction:
        raise ChainNotImplementedError("BTC transaction signing is not implemented")
