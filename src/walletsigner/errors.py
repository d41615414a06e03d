"""Exception hierarchy for the signer core.

Every error carries a stable ``code`` that the HTTP layer reports to callers.
"""

from enum import Enum
from typing import Optional


class SignerError(Exception):
    """Base class for all signer failures."""

    code = "signer_error"


class RejectionReason(str, Enum):
    """Why a signing request failed authorization."""

    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MISCONFIGURED = "misconfigured"


class AuthorizationError(SignerError):
    """Raised when the dual-signature check rejects a request."""

    code = "authorization_failed"

    def __init__(self, reason: RejectionReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or f"Request rejected: {reason.value}")


class DerivationError(SignerError):
    """Raised on a malformed derivation path or unusable derived key."""

    code = "derivation_failed"


class AddressNotFoundError(SignerError):
    """Raised when an address was not generated by this signer."""

    code = "address_not_found"

    def __init__(self, address: str, message: Optional[str] = None):
        self.address = address
        super().__init__(
            message
            or f"Address {address} not found, make sure it was generated by this signer"
        )


class PassphraseMismatchError(SignerError):
    """Raised when re-derivation does not reproduce a stored address."""

    code = "passphrase_mismatch"


class UnsupportedChainError(SignerError):
    """Raised for a chain type the signer does not know."""

    code = "unsupported_chain"

    def __init__(self, chain_type: str):
        self.chain_type = chain_type
        super().__init__(
            f"Unsupported chain type '{chain_type}', supported: evm, btc, solana"
        )


class ChainNotImplementedError(SignerError, NotImplementedError):
    """Raised for a known chain whose signing is not implemented (BTC)."""

    code = "not_implemented"


class ChainParameterError(SignerError):
    """Raised when a chain-specific request field is unusable."""

    code = "invalid_chain_parameter"


class MissingChainParameterError(ChainParameterError):
    """Raised when a chain-specific request field is required but absent."""

    code = "missing_chain_parameter"

    def __init__(self, chain_type: str, parameter: str):
        self.chain_type = chain_type
        self.parameter = parameter
        super().__init__(f"{chain_type} transaction requires '{parameter}'")


class StorageError(SignerError):
    """Raised when the address store fails."""

    code = "storage_error"


class DuplicateAddressError(StorageError):
    """Raised when an address record conflicts with an existing one."""

    code = "duplicate_address"


class LockTimeoutError(SignerError):
    """Raised when a chain lock cannot be acquired within the timeout period."""

    code = "lock_timeout"
