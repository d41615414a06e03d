"""Pytest configuration and fixtures."""

import os

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

from walletsigner.authorization import DualSignatureAuthorizer, PayloadSigner, build_canonical_payload
from walletsigner.contracts import SignTransactionRequest
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.ledger import AddressIndexRegistry, Database
from walletsigner.service import SignerService

# BIP-39 test vector mnemonic
TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
TEST_PASSPHRASE = "correct horse battery"

# m/44'/60'/0'/0/0 for TEST_MNEMONIC with an empty passphrase
KNOWN_EVM_ADDRESS = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"

FIXED_NOW_MS = 1_700_000_000_000


@pytest.fixture
def now_ms() -> int:
    return FIXED_NOW_MS


@pytest.fixture
def clock(now_ms):
    """Fixed clock for the authorizer."""
    return lambda: now_ms


@pytest_asyncio.fixture
async def db(tmp_path):
    """File-backed SQLite database (shared across connections)."""
    database = Database.from_url(f"sqlite+aiosqlite:///{tmp_path}/signer.db")
    await database.init()

    yield database

    await database.close()


@pytest.fixture
def registry(db) -> AddressIndexRegistry:
    return AddressIndexRegistry(db, lock_timeout=5.0)


@pytest.fixture(scope="session")
def keystore() -> SeedKeyStore:
    """Key store for the test mnemonic and passphrase."""
    return SeedKeyStore(TEST_MNEMONIC, TEST_PASSPHRASE)


@pytest.fixture(scope="session")
def risk_signer() -> PayloadSigner:
    return PayloadSigner.generate()


@pytest.fixture(scope="session")
def wallet_signer() -> PayloadSigner:
    return PayloadSigner.generate()


@pytest.fixture
def authorizer(risk_signer, wallet_signer, clock) -> DualSignatureAuthorizer:
    return DualSignatureAuthorizer(
        risk_signer.public_key_hex,
        wallet_signer.public_key_hex,
        clock=clock,
    )


@pytest.fixture
def service(keystore, registry, authorizer) -> SignerService:
    return SignerService(keystore, registry, authorizer, device="test_device")


@pytest.fixture
def make_request(risk_signer, wallet_signer, now_ms):
    """Build a SignTransactionRequest signed by both counterparties.

    Keyword arguments are request fields (aliases or names). Pass
    ``sign=False`` to leave the signatures off.
    """

    def _make(sign: bool = True, **fields) -> SignTransactionRequest:
        fields.setdefault("operation_id", "op-1")
        fields.setdefault("timestamp", now_ms)
        request = SignTransactionRequest(**fields)
        if not sign:
            return request
        payload = build_canonical_payload(request)
        return request.model_copy(
            update={
                "risk_signature": risk_signer.sign(payload),
                "wallet_signature": wallet_signer.sign(payload),
            }
        )

    return _make
