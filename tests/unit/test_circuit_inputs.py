"""
Unit Tests for the Circuit Input Adapter
========================================

Version: 0.1.0
"""

import pytest

from fundsproof.zk.circuit_inputs import CircuitInputAdapter, public_signal_names
from fundsproof.zk.derivation import derive_circuit_parameters
from fundsproof.zk.errors import ErrorCode, InputError


ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.fixture
def adapter() -> CircuitInputAdapter:
    return CircuitInputAdapter()


class TestPrepare:
    """Tests for the per-type field sets."""

    def test_standard_fields(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "standard")

        inputs = adapter.prepare(params)

        assert set(inputs) == {"address", "amount", "addressBytes", "nonce"}
        assert inputs["amount"] == "100"
        assert inputs["address"] == params.public_inputs.address
        assert inputs["addressBytes"] == list(params.private_inputs.address_bytes)

    def test_threshold_fields(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})

        inputs = adapter.prepare(params)

        assert set(inputs) == {"address", "threshold", "addressBytes", "actualBalance", "nonce"}
        assert inputs["threshold"] == "100"
        assert inputs["actualBalance"] == "150"

    def test_maximum_fields(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "maximum", {"actual_balance": "1"})

        inputs = adapter.prepare(params)

        assert inputs["maximum"] == "100"
        assert inputs["actualBalance"] == "1"
        assert "amount" not in inputs

    def test_signature_is_forwarded(self, adapter, wallet):
        params = derive_circuit_parameters(
            wallet.address, "1", "standard", {"signature": wallet.sign()}
        )

        inputs = adapter.prepare(params)

        assert inputs["signature"] == list(params.private_inputs.signature)

    def test_security_fields_are_not_forwarded(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "1", "standard")
        private = params.private_inputs.model_copy(
            update={"security_nonce": "0x" + "ab" * 16, "commitment": "0x01"}
        )
        params = params.model_copy(update={"private_inputs": private})

        inputs = adapter.prepare(params)

        assert "security_nonce" not in inputs
        assert "commitment" not in inputs

    def test_accepts_json_dict(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})

        assert adapter.prepare(params.model_dump(mode="json")) == adapter.prepare(params)

    def test_missing_balance(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})
        data = params.model_dump(mode="json")
        data["private_inputs"]["actual_balance"] = None

        with pytest.raises(InputError) as exc_info:
            adapter.prepare(data)

        assert exc_info.value.code is ErrorCode.MISSING_REQUIRED
        assert exc_info.value.field == "actualBalance"

    def test_missing_public_amount(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "standard")
        data = params.model_dump(mode="json")
        data["public_inputs"]["amount"] = None

        with pytest.raises(InputError) as exc_info:
            adapter.prepare(data)

        assert exc_info.value.field == "amount"

    def test_standard_amount_mismatch(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "standard")
        data = params.model_dump(mode="json")
        data["private_inputs"]["amount"] = "99"

        with pytest.raises(InputError, match="does not equal"):
            adapter.prepare(data)

    def test_malformed_parameters(self, adapter):
        with pytest.raises(InputError, match="Malformed proof parameters") as exc_info:
            adapter.prepare({"public_inputs": {}})

        assert exc_info.value.details["errors"]


class TestPublicSignals:
    @pytest.mark.parametrize(
        "proof_type,expected",
        [
            ("standard", ["address", "amount"]),
            ("threshold", ["address", "threshold"]),
            (2, ["address", "maximum"]),
        ],
    )
    def test_signal_names(self, proof_type, expected):
        assert public_signal_names(proof_type) == expected

    def test_split_public_signals(self, adapter):
        params = derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})

        signals = adapter.split_public_signals(params)

        assert signals == [params.public_inputs.address, "100"]
        assert "150" not in signals
