"""Derived account type and derivation path parsing.

A DerivedAccount is recomputed for every call that needs key material and is
never cached or stored. Use it as a context manager so the private key buffer
is wiped when the call is done with it.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from walletsigner.chains import ChainType
from walletsigner.errors import DerivationError

HARDENED_OFFSET = 0x80000000

_PATH_RE = re.compile(r"^m(/\d+'?)+$")


@dataclass
class PathSegment:
    """One level of a BIP-32 path."""

    index: int
    hardened: bool

    def __str__(self) -> str:
        return f"{self.index}'" if self.hardened else str(self.index)


def parse_path(path: str) -> list[PathSegment]:
    """Parse ``m/44'/60'/0'/0/1`` into segments.

    Raises:
        DerivationError: If the path is malformed or an index is out of range
    """
    if not path or not _PATH_RE.match(path.strip()):
        raise DerivationError(f"Malformed derivation path: {path!r}")

    segments = []
    for part in path.strip().split("/")[1:]:
        hardened = part.endswith("'")
        index = int(part.rstrip("'"))
        if index >= HARDENED_OFFSET:
            raise DerivationError(f"Derivation index out of range in {path!r}")
        segments.append(PathSegment(index=index, hardened=hardened))
    return segments


@dataclass
class DerivedAccount:
    """Keypair derived for one chain at one path.

    Attributes:
        chain_type: Chain the key was derived for
        path: Full derivation path
        address: Chain address (checksummed 0x... for EVM, base58 for Solana)
        public_key: Raw public key bytes
        private_key: Ephemeral private key material, wiped by ``discard``
    """

    chain_type: ChainType
    path: str
    address: str
    public_key: bytes
    private_key: Optional[bytearray] = field(default=None, repr=False)

    def secret_bytes(self) -> bytes:
        if self.private_key is None:
            raise DerivationError("Private key material has already been discarded")
        return bytes(self.private_key)

    def discard(self) -> None:
        """Zero and drop the private key buffer."""
        if self.private_key is not None:
            for i in range(len(self.private_key)):
                self.private_key[i] = 0
            self.private_key = None

    def matches(self, address: str) -> bool:
        """Compare addresses (case-insensitive for EVM hex addresses)."""
        if self.chain_type == ChainType.EVM:
            return self.address.lower() == address.lower()
        return self.address == address

    def __enter__(self) -> "DerivedAccount":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.discard()
        return False
