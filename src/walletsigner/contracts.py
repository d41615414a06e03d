"""Request and response contracts for the signer.

Field aliases follow the wire format used by the wallet and risk-control
services (camelCase, with ``operation_id`` and the signature fields in
snake_case). Models accept either the alias or the Python field name.
"""

import re
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from walletsigner.chains import CHAINS, ChainType


_UINT_RE = re.compile(r"[0-9]+")


def _is_uint(value: str) -> bool:
    # ASCII digits only; str.isdigit also accepts superscripts and other scripts
    return _UINT_RE.fullmatch(value) is not None


class SignTransactionRequest(BaseModel):
    """Untrusted signing request: a transfer plus its two authorizations.

    ``amount`` and the EVM gas fields are base-unit integers carried as
    strings. Chain-specific fields are optional here; the chain signer
    decides which of them it requires.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    # Common
    address: str = Field(..., description="Sender address generated by this signer")
    to: str = Field(..., description="Destination address")
    amount: str = Field(..., description="Amount in base units (wei, lamports, ...)")
    chain_type: str = Field(..., alias="chainType", description="evm, btc or solana")
    chain_id: int = Field(..., alias="chainId", description="Chain id")

    # Dual-signature authorization
    operation_id: str = Field(..., description="Operation id shared by both counterparties")
    timestamp: int = Field(..., description="Request time in ms since epoch")
    risk_signature: Optional[str] = Field(default=None, description="Risk-control Ed25519 signature (hex)")
    wallet_signature: Optional[str] = Field(default=None, description="Wallet service Ed25519 signature (hex)")

    # EVM
    nonce: Optional[int] = Field(default=None, ge=0, description="Account nonce")
    gas: Optional[str] = Field(default=None, description="Gas limit")
    gas_price: Optional[str] = Field(default=None, alias="gasPrice")
    max_fee_per_gas: Optional[str] = Field(default=None, alias="maxFeePerGas")
    max_priority_fee_per_gas: Optional[str] = Field(default=None, alias="maxPriorityFeePerGas")
    tx_type: Optional[int] = Field(default=None, alias="type", description="0 = legacy, 2 = EIP-1559")
    token_address: Optional[str] = Field(
        default=None, alias="tokenAddress", description="ERC-20 contract or SPL mint"
    )

    # Solana
    token_mint: Optional[str] = Field(default=None, alias="tokenMint")
    token_type: Optional[str] = Field(default=None, alias="tokenType", description="spl-token or spl-token-2022")
    blockhash: Optional[str] = Field(default=None, description="Recent blockhash")
    last_valid_block_height: Optional[str] = Field(default=None, alias="lastValidBlockHeight")
    fee: Optional[str] = Field(default=None, description="Fee in lamports")

    @field_validator("amount")
    @classmethod
    def _amount_is_uint(cls, v: str) -> str:
        if not _is_uint(v):
            raise ValueError("amount must be a non-negative integer string in base units")
        return v

    @field_validator("gas", "gas_price", "max_fee_per_gas", "max_priority_fee_per_gas", "last_valid_block_height")
    @classmethod
    def _optional_uint(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _is_uint(v):
            raise ValueError("must be a non-negative integer string")
        return v

    @field_validator("tx_type")
    @classmethod
    def _known_tx_type(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in (0, 2):
            raise ValueError("type must be 0 (legacy) or 2 (EIP-1559)")
        return v

    @model_validator(mode="after")
    def _addresses_match_chain(self) -> "SignTransactionRequest":
        try:
            config = CHAINS[ChainType(self.chain_type)]
        except ValueError:
            # Unknown chains are rejected by the signing engine
            return self
        for name in ("address", "to"):
            if not config.is_valid_address(getattr(self, name)):
                raise ValueError(f"{name} is not a valid {config.chain_type.value} address")
        return self

    @property
    def mint(self) -> Optional[str]:
        """Solana token mint, from tokenAddress or tokenMint."""
        return self.token_address or self.token_mint


class CreateAddressRequest(BaseModel):
    """Request to create the next address for a chain."""

    model_config = ConfigDict(populate_by_name=True)

    chain_type: str = Field(..., alias="chainType")


class WalletInfo(BaseModel):
    """A newly created address."""

    model_config = ConfigDict(populate_by_name=True)

    address: str
    path: str
    index: int
    device: str
    chain_type: str = Field(..., alias="chainType")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class SignedTransaction(BaseModel):
    """Signed transaction ready for broadcast by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    signed_transaction: str = Field(..., alias="signedTransaction", description="0x RLP hex (EVM) or base64 wire transaction (Solana)")
    transaction_hash: str = Field(..., alias="transactionHash", description="keccak256 hash (EVM) or base58 signature (Solana)")
    chain_type: str = Field(..., alias="chainType")
    from_address: str = Field(..., alias="from")
    last_valid_block_height: Optional[int] = Field(default=None, alias="lastValidBlockHeight")


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every API response."""

    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Optional[Any] = None
