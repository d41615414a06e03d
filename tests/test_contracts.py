"""Tests for request contract validation."""

import pytest
from pydantic import ValidationError

from walletsigner.contracts import SignTransactionRequest

RECIPIENT = "0x" + "12" * 20


def evm_fields(**overrides):
    fields = {
        "address": RECIPIENT,
        "to": RECIPIENT,
        "amount": "1000",
        "chainType": "evm",
        "chainId": 1,
        "nonce": 0,
        "operation_id": "op-1",
        "timestamp": 1,
    }
    fields.update(overrides)
    return fields


class TestUintFields:

    def test_ascii_digits_accepted(self):
        request = SignTransactionRequest(**evm_fields(amount="0", gas="21000", gasPrice="1"))

        assert request.amount == "0"
        assert request.gas == "21000"

    # Superscript two, Arabic-Indic three, fullwidth one, Devanagari five
    @pytest.mark.parametrize("value", ["²", "٣", "１", "1५"])
    def test_non_ascii_digits_rejected_in_amount(self, value):
        with pytest.raises(ValidationError):
            SignTransactionRequest(**evm_fields(amount=value))

    @pytest.mark.parametrize(
        "field", ["gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "lastValidBlockHeight"]
    )
    def test_non_ascii_digits_rejected_in_optional_fields(self, field):
        with pytest.raises(ValidationError):
            SignTransactionRequest(**evm_fields(**{field: "٣"}))

    @pytest.mark.parametrize("value", ["", "-1", "1.5", " 1", "1e3", "0x10"])
    def test_malformed_amount_rejected(self, value):
        with pytest.raises(ValidationError):
            SignTransactionRequest(**evm_fields(amount=value))

    def test_unknown_tx_type_rejected(self):
        with pytest.raises(ValidationError):
            SignTransactionRequest(**evm_fields(type=1))
