"""EVM transaction signer.

Builds legacy or EIP-1559 (type 2) transactions for native and ERC-20
transfers and signs them with eth_account. Output is the RLP-serialized
signed transaction and its keccak256 hash, both 0x-prefixed hex.
"""

import logging
from typing import Any

from eth_abi import encode as abi_encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address, to_hex

from walletsigner.chains import (
    DEFAULT_GAS_PRICE,
    DEFAULT_MAX_FEE_PER_GAS,
    DEFAULT_MAX_PRIORITY_FEE_PER_GAS,
    DEFAULT_NATIVE_GAS_LIMIT,
    DEFAULT_TOKEN_GAS_LIMIT,
    ERC20_TRANSFER_SELECTOR,
    ChainType,
)
from walletsigner.contracts import SignedTransaction, SignTransactionRequest
from walletsigner.errors import ChainParameterError, MissingChainParameterError
from walletsigner.signing.base import ChainSigner

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


def encode_erc20_transfer(to: str, amount: int) -> bytes:
    """ABI-encode ``transfer(address,uint256)`` call data."""
    if not 0 <= amount <= MAX_UINT256:
        raise ChainParameterError("ERC-20 amount does not fit in uint256")
    return ERC20_TRANSFER_SELECTOR + abi_encode(["address", "uint256"], [to, amount])


def is_eip1559(request: SignTransactionRequest) -> bool:
    """Type 2 when requested explicitly or when any fee-market field is set."""
    if request.tx_type == 2:
        return True
    return bool(request.max_fee_per_gas or request.max_priority_fee_per_gas)


def _checksum(address: str, field: str) -> str:
    try:
        return to_checksum_address(address)
    except ValueError:
        raise ChainParameterError(f"Invalid EVM address in '{field}': {address}") from None


class EVMChainSigner(ChainSigner):
    """Signer for EVM-compatible chains."""

    chain_type = ChainType.EVM

    def build_transaction(self, request: SignTransactionRequest) -> dict[str, Any]:
        """Build the unsigned transaction dict accepted by eth_account."""
        if request.nonce is None:
            raise MissingChainParameterError(self.chain_type.value, "nonce")

        amount = int(request.amount)
        recipient = _checksum(request.to, "to")

        if request.token_address:
            tx: dict[str, Any] = {
                "to": _checksum(request.token_address, "tokenAddress"),
                "value": 0,
                "data": to_hex(encode_erc20_transfer(recipient, amount)),
                "gas": int(request.gas) if request.gas else DEFAULT_TOKEN_GAS_LIMIT,
            }
        else:
            tx = {
                "to": recipient,
                "value": amount,
                "gas": int(request.gas) if request.gas else DEFAULT_NATIVE_GAS_LIMIT,
            }
        tx["nonce"] = request.nonce
        tx["chainId"] = request.chain_id

        if is_eip1559(request):
            tx["type"] = 2
            tx["maxFeePerGas"] = (
                int(request.max_fee_per_gas) if request.max_fee_per_gas else DEFAULT_MAX_FEE_PER_GAS
            )
            tx["maxPriorityFeePerGas"] = (
                int(request.max_priority_fee_per_gas)
                if request.max_priority_fee_per_gas
                else DEFAULT_MAX_PRIORITY_FEE_PER_GAS
            )
        else:
            tx["gasPrice"] = int(request.gas_price) if request.gas_price else DEFAULT_GAS_PRICE

        return tx

    async def sign(self, request: SignTransactionRequest) -> SignedTransaction:
        """Sign an EVM native or ERC-20 transfer."""
        tx = self.build_transaction(request)
        logger.info(
            f"Signing EVM {'EIP-1559' if tx.get('type') == 2 else 'legacy'} transaction: "
            f"chain {request.chain_id}, token {request.token_address or 'native'}, "
            f"amount {request.amount}, nonce {request.nonce}"
        )

        with await self.resolve_account(request) as account:
            signer = Account.from_key(account.secret_bytes())
            try:
                signed_tx = signer.sign_transaction(tx)
            except (TypeError, ValueError) as e:
                raise ChainParameterError(f"Could not sign EVM transaction: {e}") from e
            del signer

        # eth_account >= 0.13 uses raw_transaction, older versions rawTransaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction
        tx_hash = to_hex(keccak(bytes(raw_tx)))
        logger.info(f"EVM transaction signed: {tx_hash}")

        return SignedTransaction(
            signed_transaction=to_hex(bytes(raw_tx)),
            transaction_hash=tx_hash,
            chain_type=self.chain_type.value,
            from_address=request.address,
        )
