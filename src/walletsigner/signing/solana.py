"""Solana transaction signer.

Builds a versioned (v0) transaction with a single instruction:
- native SOL: System Program transfer
- SPL token: Token Program transfer between the associated token accounts
  of sender and recipient (legacy Token Program or Token-2022)

The recipient's associated token account is assumed to exist; it is not
created here. Output is the base64 wire transaction and the base58 fee-payer
signature, which is also the transaction id.

``tokenType`` must be omitted, ``spl-token`` or ``spl-token-2022``; any other
value is rejected instead of falling back to the legacy Token Program.
"""

import base64
import logging

from solders.hash import Hash, ParseHashError
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams as SystemTransferParams
from solders.system_program import transfer as system_transfer
from solders.transaction import VersionedTransaction
from spl.token.instructions import TransferParams as TokenTransferParams
from spl.token.instructions import transfer as token_transfer

from walletsigner.chains import (
    ASSOCIATED_TOKEN_PROGRAM_ADDRESS,
    DEFAULT_LAST_VALID_BLOCK_HEIGHT,
    TOKEN_2022_PROGRAM_ADDRESS,
    TOKEN_PROGRAM_ADDRESS,
    TOKEN_TYPE_SPL,
    TOKEN_TYPE_SPL_2022,
    ChainType,
)
from walletsigner.contracts import SignedTransaction, SignTransactionRequest
from walletsigner.errors import ChainParameterError, MissingChainParameterError
from walletsigner.signing.base import ChainSigner

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = Pubkey.from_string(TOKEN_PROGRAM_ADDRESS)
TOKEN_2022_PROGRAM_ID = Pubkey.from_string(TOKEN_2022_PROGRAM_ADDRESS)
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ADDRESS)

MAX_U64 = 2**64 - 1


def token_program_for(token_type: "str | None") -> Pubkey:
    """Token program for a token type; unset means the legacy program."""
    if token_type is None or token_type == TOKEN_TYPE_SPL:
        return TOKEN_PROGRAM_ID
    if token_type == TOKEN_TYPE_SPL_2022:
        return TOKEN_2022_PROGRAM_ID
    raise ChainParameterError(
        f"Unknown tokenType '{token_type}', expected {TOKEN_TYPE_SPL} or {TOKEN_TYPE_SPL_2022}"
    )


def associated_token_address(owner: Pubkey, mint: Pubkey, token_program: Pubkey = TOKEN_PROGRAM_ID) -> Pubkey:
    """Derive the associated token account of ``owner`` for ``mint``.

    Seeds are (owner, token program, mint), so the same owner and mint give
    different accounts under the legacy program and Token-2022.
    """
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address


def _pubkey(value: str, field: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise ChainParameterError(f"Invalid Solana public key in '{field}': {value}") from None


def _blockhash(value: str) -> Hash:
    try:
        return Hash.from_string(value)
    except (ValueError, ParseHashError):
        raise ChainParameterError(f"Invalid blockhash: {value}") from None


class SolanaChainSigner(ChainSigner):
    """Signer for Solana native and SPL token transfers."""

    chain_type = ChainType.SOLANA

    def build_instruction(self, request: SignTransactionRequest, owner: Pubkey) -> Instruction:
        """Build the transfer instruction for a native or token transfer."""
        amount = int(request.amount)
        if amount > MAX_U64:
            raise ChainParameterError("Solana amount does not fit in u64")

        recipient = _pubkey(request.to, "to")
        mint = request.mint

        if not mint:
            return system_transfer(
                SystemTransferParams(from_pubkey=owner, to_pubkey=recipient, lamports=amount)
            )

        mint_pubkey = _pubkey(mint, "tokenAddress")
        program_id = token_program_for(request.token_type)
        return token_transfer(
            TokenTransferParams(
                program_id=program_id,
                source=associated_token_address(owner, mint_pubkey, program_id),
                dest=associated_token_address(recipient, mint_pubkey, program_id),
                owner=owner,
                amount=amount,
            )
        )

    async def sign(self, request: SignTransactionRequest) -> SignedTransaction:
        """Sign a Solana native or SPL token transfer."""
        if not request.blockhash:
            raise MissingChainParameterError(self.chain_type.value, "blockhash")
        recent_blockhash = _blockhash(request.blockhash)

        last_valid_block_height = (
            int(request.last_valid_block_height)
            if request.last_valid_block_height
            else DEFAULT_LAST_VALID_BLOCK_HEIGHT
        )

        logger.info(
            f"Signing Solana transaction: mint {request.mint or 'native'}, "
            f"amount {request.amount}, to {request.to}"
        )

        with await self.resolve_account(request) as account:
            keypair = Keypair.from_seed(account.secret_bytes()[:32])
            payer = keypair.pubkey()
            instruction = self.build_instruction(request, payer)
            message = MessageV0.try_compile(
                payer=payer,
                instructions=[instruction],
                address_lookup_table_accounts=[],
                recent_blockhash=recent_blockhash,
            )
            tx = VersionedTransaction(message, [keypair])
            del keypair

        signature = str(tx.signatures[0])
        logger.info(f"Solana transaction signed: {signature}")

        return SignedTransaction(
            signed_transaction=base64.b64encode(bytes(tx)).decode("ascii"),
            transaction_hash=signature,
            chain_type=self.chain_type.value,
            from_address=request.address,
            last_valid_block_height=last_valid_block_height,
        )
