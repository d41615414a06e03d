"""Tests for EVM transaction building and signing."""

import pytest
from eth_account import Account
from eth_utils import keccak, to_hex

from walletsigner.chains import (
    DEFAULT_GAS_PRICE,
    DEFAULT_MAX_FEE_PER_GAS,
    DEFAULT_MAX_PRIORITY_FEE_PER_GAS,
    DEFAULT_NATIVE_GAS_LIMIT,
    DEFAULT_TOKEN_GAS_LIMIT,
)
from walletsigner.errors import (
    AddressNotFoundError,
    ChainParameterError,
    MissingChainParameterError,
    PassphraseMismatchError,
)
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.signing import ChainSigningEngine, EVMChainSigner
from walletsigner.signing.evm import encode_erc20_transfer, is_eip1559

RECIPIENT = "0x" + "12" * 20
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


@pytest.fixture
def signer(keystore, registry) -> EVMChainSigner:
    return EVMChainSigner(keystore, registry)


@pytest.fixture
async def sender(service) -> str:
    info = await service.create_address("evm")
    return info.address


def evm_request(make_request, address, **overrides):
    fields = {
        "address": address,
        "to": RECIPIENT,
        "amount": "1000000000000000",
        "chainType": "evm",
        "chainId": 1,
        "nonce": 5,
    }
    fields.update(overrides)
    return make_request(**fields)


class TestTransactionType:

    @pytest.mark.parametrize(
        "overrides,expected",
        [
            ({}, False),
            ({"type": 0}, False),
            ({"type": 2}, True),
            ({"maxFeePerGas": "1"}, True),
            ({"maxPriorityFeePerGas": "1"}, True),
            ({"type": 0, "maxFeePerGas": "1"}, True),
            ({"gasPrice": "1"}, False),
        ],
    )
    def test_eip1559_selection(self, make_request, overrides, expected):
        request = evm_request(make_request, RECIPIENT, **overrides)
        assert is_eip1559(request) is expected


class TestBuildTransaction:

    def test_legacy_native_defaults(self, signer, make_request):
        tx = signer.build_transaction(evm_request(make_request, RECIPIENT))

        assert tx["value"] == 1000000000000000
        assert tx["to"] == RECIPIENT
        assert tx["gas"] == DEFAULT_NATIVE_GAS_LIMIT
        assert tx["gasPrice"] == DEFAULT_GAS_PRICE == 25 * 10**9
        assert tx["nonce"] == 5
        assert tx["chainId"] == 1
        assert "type" not in tx
        assert "data" not in tx

    def test_eip1559_defaults(self, signer, make_request):
        tx = signer.build_transaction(evm_request(make_request, RECIPIENT, type=2))

        assert tx["type"] == 2
        assert tx["maxFeePerGas"] == DEFAULT_MAX_FEE_PER_GAS == 30 * 10**9
        assert tx["maxPriorityFeePerGas"] == DEFAULT_MAX_PRIORITY_FEE_PER_GAS == 2 * 10**9
        assert "gasPrice" not in tx

    def test_fee_market_field_overrides_legacy_type(self, signer, make_request):
        tx = signer.build_transaction(
            evm_request(make_request, RECIPIENT, type=0, maxFeePerGas="40000000000")
        )

        assert tx["type"] == 2
        assert tx["maxFeePerGas"] == 40000000000
        assert "gasPrice" not in tx

    def test_caller_fees_used(self, signer, make_request):
        tx = signer.build_transaction(
            evm_request(
                make_request,
                RECIPIENT,
                gas="50000",
                maxFeePerGas="40000000000",
                maxPriorityFeePerGas="1000000000",
            )
        )

        assert tx["gas"] == 50000
        assert tx["maxFeePerGas"] == 40000000000
        assert tx["maxPriorityFeePerGas"] == 1000000000

    def test_erc20_transfer(self, signer, make_request):
        tx = signer.build_transaction(
            evm_request(make_request, RECIPIENT, amount="2500000", tokenAddress=USDT.lower())
        )

        assert tx["to"] == USDT
        assert tx["value"] == 0
        assert tx["gas"] == DEFAULT_TOKEN_GAS_LIMIT
        assert tx["data"] == "0xa9059cbb" + "0" * 24 + "12" * 20 + format(2500000, "064x")

    def test_missing_nonce(self, signer, make_request):
        request = evm_request(make_request, RECIPIENT, nonce=None)

        with pytest.raises(MissingChainParameterError) as exc_info:
            signer.build_transaction(request)
        assert exc_info.value.parameter == "nonce"

    def test_invalid_token_address(self, signer, make_request):
        with pytest.raises(ChainParameterError):
            signer.build_transaction(evm_request(make_request, RECIPIENT, tokenAddress="0x1234"))


class TestEncodeErc20:

    def test_selector_and_length(self):
        data = encode_erc20_transfer(RECIPIENT, 1)

        assert data[:4].hex() == "a9059cbb"
        assert len(data) == 4 + 32 + 32
        assert data[-1] == 1

    def test_amount_overflow(self):
        with pytest.raises(ChainParameterError):
            encode_erc20_transfer(RECIPIENT, 2**256)


class TestEVMSigning:

    @pytest.mark.asyncio
    async def test_sign_legacy_native(self, signer, make_request, sender):
        signed = await signer.sign(evm_request(make_request, sender))

        assert signed.chain_type == "evm"
        assert signed.from_address == sender
        assert signed.signed_transaction.startswith("0x")
        # Legacy transactions are a bare RLP list
        assert int(signed.signed_transaction[2:4], 16) >= 0xC0
        assert signed.transaction_hash == to_hex(keccak(hexstr=signed.signed_transaction))
        assert Account.recover_transaction(signed.signed_transaction) == sender

    @pytest.mark.asyncio
    async def test_sign_eip1559(self, signer, make_request, sender):
        signed = await signer.sign(evm_request(make_request, sender, type=2, chainId=137))

        assert signed.signed_transaction.startswith("0x02")
        assert Account.recover_transaction(signed.signed_transaction) == sender

    @pytest.mark.asyncio
    async def test_sign_erc20(self, signer, make_request, sender):
        signed = await signer.sign(evm_request(make_request, sender, tokenAddress=USDT))

        assert Account.recover_transaction(signed.signed_transaction) == sender

    @pytest.mark.asyncio
    async def test_signing_is_deterministic(self, signer, make_request, sender):
        request = evm_request(make_request, sender)

        first = await signer.sign(request)
        second = await signer.sign(request)
        assert first.signed_transaction == second.signed_transaction

    @pytest.mark.asyncio
    async def test_lowercase_sender_accepted(self, signer, make_request, sender):
        signed = await signer.sign(evm_request(make_request, sender.lower()))

        assert Account.recover_transaction(signed.signed_transaction) == sender

    @pytest.mark.asyncio
    async def test_unknown_address(self, signer, make_request, sender):
        with pytest.raises(AddressNotFoundError):
            await signer.sign(evm_request(make_request, "0x" + "34" * 20))

    @pytest.mark.asyncio
    async def test_wrong_passphrase_detected(self, registry, make_request, sender):
        wrong = EVMChainSigner(SeedKeyStore(
            "abandon abandon abandon abandon abandon abandon "
            "abandon abandon abandon abandon abandon about",
            "some other passphrase",
        ), registry)

        with pytest.raises(PassphraseMismatchError):
            await wrong.sign(evm_request(make_request, sender))

    @pytest.mark.asyncio
    async def test_engine_dispatches_evm(self, keystore, registry, make_request, sender):
        engine = ChainSigningEngine(keystore, registry)

        assert isinstance(engine.get_signer("evm"), EVMChainSigner)
        signed = await engine.sign(evm_request(make_request, sender))
        assert Account.recover_transaction(signed.signed_transaction) == sender
