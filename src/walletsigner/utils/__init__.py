"""Utility modules for the signer."""

from walletsigner.utils.locks import ChainLock, ChainLockRegistry

__all__ = ["ChainLock", "ChainLockRegistry"]
