"""Dual-signature request authorization.

Every signing request must carry two Ed25519 signatures, one from the
risk-control service and one from the wallet service, both over the same
canonical payload:

    {"operation_id", "chainType", "from", "to", "amount", "tokenAddress",
     "tokenMint", "tokenType", "chainId", "nonce", "blockhash",
     "lastValidBlockHeight", "fee", "timestamp"}

The payload is compact JSON (no whitespace) in exactly this key order, with
absent optional fields serialized as ``null``. Signatures cover its UTF-8
bytes. Verification is pure and runs before any key derivation.

The timestamp window bounds replay but does not prevent it inside the
window; nonce/blockhash uniqueness on chain covers the rest.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from walletsigner.contracts import SignTransactionRequest
from walletsigner.errors import AuthorizationError, RejectionReason

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_MS = 60_000

CANONICAL_FIELDS = (
    "operation_id",
    "chainType",
    "from",
    "to",
    "amount",
    "tokenAddress",
    "tokenMint",
    "tokenType",
    "chainId",
    "nonce",
    "blockhash",
    "lastValidBlockHeight",
    "fee",
    "timestamp",
)


def build_canonical_payload(request: SignTransactionRequest) -> dict:
    """Map a request onto the canonical payload (insertion-ordered dict)."""
    return {
        "operation_id": request.operation_id,
        "chainType": request.chain_type,
        "from": request.address,
        "to": request.to,
        "amount": request.amount,
        "tokenAddress": request.token_address,
        "tokenMint": request.token_mint,
        "tokenType": request.token_type,
        "chainId": request.chain_id,
        "nonce": request.nonce,
        "blockhash": request.blockhash,
        "lastValidBlockHeight": request.last_valid_block_height,
        "fee": request.fee,
        "timestamp": request.timestamp,
    }


def serialize_payload(payload: dict) -> str:
    """Serialize a canonical payload to the exact string both parties sign."""
    ordered = {name: payload.get(name) for name in CANONICAL_FIELDS}
    return json.dumps(ordered, separators=(",", ":"), ensure_ascii=False)


def _from_hex(value: str) -> bytes:
    value = value.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class AuthorizationResult:
    """Outcome of a dual-signature check.

    Attributes:
        authorized: Whether both signatures verified inside the time window
        reason: Rejection reason when not authorized
        message: Human-readable detail for logs and callers
    """

    authorized: bool
    reason: Optional[RejectionReason] = None
    message: str = ""

    @classmethod
    def ok(cls) -> "AuthorizationResult":
        return cls(authorized=True)

    @classmethod
    def rejected(cls, reason: RejectionReason, message: str) -> "AuthorizationResult":
        return cls(authorized=False, reason=reason, message=message)

    def raise_for_rejection(self) -> None:
        if not self.authorized:
            raise AuthorizationError(self.reason, self.message)


class DualSignatureAuthorizer:
    """Verifies risk-control and wallet-service signatures over a payload.

    Public keys are fixed at construction. A missing or malformed key makes
    every request fail with ``misconfigured``.
    """

    def __init__(
        self,
        risk_public_key: str,
        wallet_public_key: str,
        tolerance_ms: int = DEFAULT_TOLERANCE_MS,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.tolerance_ms = tolerance_ms
        self._clock = clock or _now_ms
        self._risk_key = self._load_key(risk_public_key, "risk-control")
        self._wallet_key = self._load_key(wallet_public_key, "wallet service")

    @staticmethod
    def _load_key(public_key_hex: str, label: str) -> Optional[VerifyKey]:
        if not public_key_hex:
            logger.warning(f"No {label} public key configured, all requests will be rejected")
            return None
        try:
            return VerifyKey(_from_hex(public_key_hex))
        except ValueError as e:
            logger.error(f"Invalid {label} public key: {e}")
            return None

    @property
    def is_configured(self) -> bool:
        return self._risk_key is not None and self._wallet_key is not None

    def verify(
        self,
        payload: dict,
        risk_signature: Optional[str],
        wallet_signature: Optional[str],
    ) -> AuthorizationResult:
        """Check freshness and both signatures over ``payload``."""
        if not self.is_configured:
            return AuthorizationResult.rejected(
                RejectionReason.MISCONFIGURED, "Counterparty public keys are not configured"
            )

        if not risk_signature or not wallet_signature:
            missing = "risk_signature" if not risk_signature else "wallet_signature"
            return AuthorizationResult.rejected(
                RejectionReason.MISSING_SIGNATURE, f"Missing {missing}"
            )

        timestamp = payload.get("timestamp")
        if not isinstance(timestamp, int) or abs(self._clock() - timestamp) > self.tolerance_ms:
            return AuthorizationResult.rejected(
                RejectionReason.EXPIRED,
                f"Request timestamp outside the {self.tolerance_ms}ms window",
            )

        message = serialize_payload(payload).encode("utf-8")

        if not self._verify_one(self._risk_key, message, risk_signature):
            return AuthorizationResult.rejected(
                RejectionReason.INVALID_SIGNATURE, "Risk-control signature verification failed"
            )
        if not self._verify_one(self._wallet_key, message, wallet_signature):
            return AuthorizationResult.rejected(
                RejectionReason.INVALID_SIGNATURE, "Wallet service signature verification failed"
            )

        return AuthorizationResult.ok()

    def authorize(self, request: SignTransactionRequest) -> None:
        """Verify a request, raising AuthorizationError when it is rejected."""
        result = self.verify(
            build_canonical_payload(request),
            request.risk_signature,
            request.wallet_signature,
        )
        if not result.authorized:
            logger.warning(
                f"Rejected operation {request.operation_id}: {result.reason.value} ({result.message})"
            )
        result.raise_for_rejection()

    @staticmethod
    def _verify_one(key: VerifyKey, message: bytes, signature_hex: str) -> bool:
        try:
            key.verify(message, _from_hex(signature_hex))
            return True
        except (BadSignatureError, ValueError, TypeError):
            return False


class PayloadSigner:
    """Counterparty-side signer producing the signatures checked above.

    Accepts a 32-byte seed or a 64-byte secret key (seed followed by the
    public key) as hex.
    """

    def __init__(self, private_key_hex: str):
        raw = _from_hex(private_key_hex)
        if len(raw) not in (32, 64):
            raise ValueError("Ed25519 private key must be 32 or 64 bytes")
        self._signing_key = SigningKey(raw[:32])

    @classmethod
    def generate(cls) -> "PayloadSigner":
        return cls(SigningKey.generate().encode().hex())

    @property
    def private_key_hex(self) -> str:
        return self._signing_key.encode().hex()

    @property
    def public_key_hex(self) -> str:
        return self._signing_key.verify_key.encode().hex()

    def sign_message(self, message: str) -> str:
        """Detached signature over a UTF-8 string, as hex."""
        return self._signing_key.sign(message.encode("utf-8")).signature.hex()

    def sign(self, payload: dict) -> str:
        """Detached signature over a canonical payload, as hex."""
        return self.sign_message(serialize_payload(payload))
