"""Supported chain types and their fixed signing parameters.

Derivation paths carry one variable index segment:
- EVM:    m/44'/60'/0'/0/{i}
- Solana: m/44'/501'/0'/{i}'   (SLIP-0010, every segment hardened)
- BTC:    m/84'/1'/0'/0/{i}    (reserved, signing not implemented)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from walletsigner.errors import UnsupportedChainError


class ChainType(str, Enum):
    """Chain families the signer knows about."""

    EVM = "evm"
    BTC = "btc"
    SOLANA = "solana"

    @classmethod
    def parse(cls, value: "str | ChainType") -> "ChainType":
        """Resolve a raw chain type string, raising UnsupportedChainError."""
        if isinstance(value, ChainType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedChainError(str(value)) from None


@dataclass(frozen=True)
class ChainConfig:
    """Derivation and fee parameters for a chain type."""

    chain_type: ChainType
    path_template: str
    curve: str  # secp256k1 or ed25519
    coin_type: int
    address_pattern: str
    signing_supported: bool = True

    def path_for_index(self, index: int) -> str:
        if index < 0:
            raise ValueError(f"Derivation index must be non-negative, got {index}")
        return self.path_template.format(index=index)

    def index_from_path(self, path: str) -> Optional[int]:
        """Extract the variable index segment from a path built by this template."""
        last = path.rstrip("/").split("/")[-1].rstrip("'")
        return int(last) if last.isdigit() else None

    def is_valid_address(self, address: str) -> bool:
        return bool(address) and re.fullmatch(self.address_pattern, address) is not None


CHAINS: dict[ChainType, ChainConfig] = {
    ChainType.EVM: ChainConfig(
        chain_type=ChainType.EVM,
        path_template="m/44'/60'/0'/0/{index}",
        curve="secp256k1",
        coin_type=60,
        address_pattern=r"0x[a-fA-F0-9]{40}",
    ),
    ChainType.SOLANA: ChainConfig(
        chain_type=ChainType.SOLANA,
        path_template="m/44'/501'/0'/{index}'",
        curve="ed25519",
        coin_type=501,
        address_pattern=r"[1-9A-HJ-NP-Za-km-z]{32,44}",
    ),
    ChainType.BTC: ChainConfig(
        chain_type=ChainType.BTC,
        path_template="m/84'/1'/0'/0/{index}",
        curve="secp256k1",
        coin_type=1,
        address_pattern=r"([13][a-km-zA-HJ-NP-Z1-9]{25,34}|(bc1|tb1)[a-z0-9]{39,59})",
        signing_supported=False,
    ),
}


def get_chain_config(chain_type: "str | ChainType") -> ChainConfig:
    """Get the configuration for a chain type."""
    return CHAINS[ChainType.parse(chain_type)]


def validate_address(address: str, chain_type: "str | ChainType") -> bool:
    """Check an address against the chain's address format."""
    return get_chain_config(chain_type).is_valid_address(address)


# ======================
# EVM fee fallbacks (wei)
# ======================
# Used only when the caller leaves the field unset; no fee-market query is made.

GWEI = 10**9
DEFAULT_GAS_PRICE = 25 * GWEI
DEFAULT_MAX_FEE_PER_GAS = 30 * GWEI
DEFAULT_MAX_PRIORITY_FEE_PER_GAS = 2 * GWEI
DEFAULT_NATIVE_GAS_LIMIT = 21_000
DEFAULT_TOKEN_GAS_LIMIT = 100_000

ERC20_TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")  # transfer(address,uint256)

# ======================
# Solana programs
# ======================

TOKEN_PROGRAM_ADDRESS = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ADDRESS = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
ASSOCIATED_TOKEN_PROGRAM_ADDRESS = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

TOKEN_TYPE_SPL = "spl-token"
TOKEN_TYPE_SPL_2022 = "spl-token-2022"

# Applied when the caller omits lastValidBlockHeight.
DEFAULT_LAST_VALID_BLOCK_HEIGHT = 99_999_999
