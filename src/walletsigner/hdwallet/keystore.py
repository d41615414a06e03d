"""Seed key store: deterministic key derivation from the root secret.

EVM:    BIP-39 seed -> BIP-32 secp256k1 -> keccak256(pubkey)[-20:] address
Solana: BIP-39 seed -> SLIP-0010 ed25519 (hardened only) -> base58(pubkey)

The BIP-39 seed is computed once and held only by this object. Private keys
are derived per call and handed out inside a DerivedAccount.
"""

import logging

from bip_utils import (
    Bip32KeyError,
    Bip32PathError,
    Bip32Secp256k1,
    Bip32Slip10Ed25519,
    Bip39SeedGenerator,
    EthAddrEncoder,
    MnemonicChecksumError,
)
from solders.keypair import Keypair

from walletsigner.chains import ChainType, get_chain_config
from walletsigner.errors import ChainNotImplementedError, DerivationError
from walletsigner.hdwallet.base import DerivedAccount, parse_path

logger = logging.getLogger(__name__)


class SeedKeyStore:
    """Stateless deterministic derivation over one (mnemonic, passphrase) pair.

    Usage:
        keystore = SeedKeyStore(mnemonic, passphrase)
        with keystore.derive_account(ChainType.EVM, "m/44'/60'/0'/0/0") as account:
            ...
    """

    def __init__(self, mnemonic: str, passphrase: str):
        if not mnemonic:
            raise DerivationError("Mnemonic is not configured")
        try:
            self._seed = bytes(
                Bip39SeedGenerator(" ".join(mnemonic.split())).Generate(passphrase or "")
            )
        except (ValueError, MnemonicChecksumError) as e:
            raise DerivationError(f"Invalid mnemonic: {e}") from None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(seed=***)"

    def path_for_index(self, chain_type: "str | ChainType", index: int) -> str:
        """Build the derivation path for a chain at the given index."""
        return get_chain_config(chain_type).path_for_index(index)

    def derive_account(self, chain_type: "str | ChainType", path: str) -> DerivedAccount:
        """Derive the keypair and address at ``path``.

        Raises:
            UnsupportedChainError: Unknown chain type
            ChainNotImplementedError: BTC
            DerivationError: Malformed path or degenerate key
        """
        chain = ChainType.parse(chain_type)
        path = (path or "").strip()
        segments = parse_path(path)

        if chain == ChainType.EVM:
            return self._derive_evm(path)
        if chain == ChainType.SOLANA:
            if not all(segment.hardened for segment in segments):
                raise DerivationError(
                    f"Solana derivation requires every segment hardened: {path!r}"
                )
            return self._derive_solana(path)
        raise ChainNotImplementedError(f"{chain.value} key derivation is not implemented")

    def derive_at_index(self, chain_type: "str | ChainType", index: int) -> DerivedAccount:
        return self.derive_account(chain_type, self.path_for_index(chain_type, index))

    def _derive_evm(self, path: str) -> DerivedAccount:
        try:
            child = Bip32Secp256k1.FromSeed(self._seed).DerivePath(path)
            private_key = bytearray(child.PrivateKey().Raw().ToBytes())
            # ETH uses the uncompressed public key
            public_key = child.PublicKey().RawUncompressed().ToBytes()
        except (Bip32KeyError, Bip32PathError, ValueError) as e:
            raise DerivationError(f"EVM derivation failed at {path}: {e}") from None

        _check_key(private_key, path)
        return DerivedAccount(
            chain_type=ChainType.EVM,
            path=path,
            address=EthAddrEncoder.EncodeKey(public_key),
            public_key=public_key,
            private_key=private_key,
        )

    def _derive_solana(self, path: str) -> DerivedAccount:
        try:
            child = Bip32Slip10Ed25519.FromSeed(self._seed).DerivePath(path)
            private_key = bytearray(child.PrivateKey().Raw().ToBytes())
        except (Bip32KeyError, Bip32PathError, ValueError) as e:
            raise DerivationError(f"Solana derivation failed at {path}: {e}") from None

        _check_key(private_key, path)
        # Solana keypair from 32-byte seed
        keypair = Keypair.from_seed(bytes(private_key[:32]))
        pubkey = keypair.pubkey()
        return DerivedAccount(
            chain_type=ChainType.SOLANA,
            path=path,
            address=str(pubkey),
            public_key=bytes(pubkey),
            private_key=private_key,
        )


def _check_key(private_key: bytearray, path: str) -> None:
    if len(private_key) != 32 or not any(private_key):
        raise DerivationError(f"Degenerate private key derived at {path}")
