"""Deterministic HD key derivation from the root secret.

Keys are re-derived for every call and never stored; the persisted address
records only carry addresses and paths.
"""

from walletsigner.hdwallet.base import DerivedAccount, PathSegment, parse_path
from walletsigner.hdwallet.keystore import SeedKeyStore

__all__ = ["DerivedAccount", "PathSegment", "SeedKeyStore", "parse_path"]
