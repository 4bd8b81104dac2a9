"""
Unit Tests for Ownership Signature Parameters
=============================================

Version: 0.1.0
"""

from unittest.mock import MagicMock

import pytest
from eth_hash.auto import keccak

from fundsproof.zk.errors import ErrorCode, InputError, SecurityError
from fundsproof.zk.hashing import SECP256K1_N
from fundsproof.zk.signature import SignatureParameterDeriver, split_signature


@pytest.fixture
def deriver() -> SignatureParameterDeriver:
    return SignatureParameterDeriver(enforce_signer_match=True)


class TestSplitSignature:
    """Tests for signature encoding checks."""

    def test_splits_components(self):
        r, s = 5, 7
        raw = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([28])

        assert split_signature("0x" + raw.hex()) == (5, 7, 1)
        assert split_signature(raw) == (5, 7, 1)

    @pytest.mark.parametrize("v,expected", [(0, 0), (1, 1), (27, 0), (28, 1)])
    def test_recovery_byte_forms(self, v, expected):
        raw = (1).to_bytes(32, "big") + (1).to_bytes(32, "big") + bytes([v])

        assert split_signature(raw)[2] == expected

    @pytest.mark.parametrize(
        "signature",
        [
            "0x1234",
            "0x" + "zz" * 65,
            "0x" + "11" * 64,
            b"\x01" * 64,
            12345,
        ],
    )
    def test_malformed_encoding(self, signature):
        with pytest.raises(InputError) as exc_info:
            split_signature(signature)

        assert exc_info.value.code is ErrorCode.INVALID_SIGNATURE_FORMAT
        assert exc_info.value.field == "signature"

    def test_invalid_recovery_byte(self):
        raw = (1).to_bytes(32, "big") + (1).to_bytes(32, "big") + bytes([29])

        with pytest.raises(InputError, match="recovery byte"):
            split_signature(raw)

    @pytest.mark.parametrize(
        "r,s",
        [(0, 1), (1, 0), (SECP256K1_N, 1), (1, SECP256K1_N)],
    )
    def test_components_out_of_range(self, r, s):
        raw = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([27])

        with pytest.raises(InputError, match="out of range"):
            split_signature(raw)


class TestSignatureParameterDeriver:
    """Tests for signer recovery."""

    def test_ownership_message_uses_checksummed_address(self, deriver, wallet):
        message = deriver.ownership_message(wallet.address)

        assert message == f"I confirm ownership of wallet {wallet.address}"
        assert deriver.message_hash(wallet.address) == keccak(message.encode())

    def test_recovers_wallet(self, deriver, wallet):
        params = deriver.derive(wallet.address, wallet.sign())

        assert params.signer_address == wallet.address
        assert params.v in (27, 28)
        assert params.recovery_bit == params.v - 27
        assert params.public_key.startswith("0x04")
        assert len(params.public_key) == 2 + 65 * 2
        assert params.signature_components == (str(int(params.r, 16)), str(int(params.s, 16)))

    def test_lowercase_address_is_accepted(self, deriver, wallet):
        params = deriver.derive(wallet.address.lower(), wallet.sign())

        assert params.signer_address == wallet.address

    def test_raw_and_offset_recovery_bytes_agree(self, deriver, wallet):
        offset = deriver.derive(wallet.address, wallet.sign(add_27=True))
        raw = deriver.derive(wallet.address, wallet.sign(add_27=False))

        assert offset == raw

    def test_signer_mismatch(self, deriver, wallet, other_wallet):
        signature = other_wallet.sign(wallet.address)

        with pytest.raises(SecurityError) as exc_info:
            deriver.derive(wallet.address, signature)

        assert exc_info.value.code is ErrorCode.SIGNER_MISMATCH

    def test_mismatch_allowed_when_not_enforced(self, wallet, other_wallet):
        deriver = SignatureParameterDeriver(enforce_signer_match=False)

        params = deriver.derive(wallet.address, other_wallet.sign(wallet.address))

        assert params.signer_address == other_wallet.address

    def test_recovery_failure(self, wallet):
        recoverer = MagicMock()
        recoverer.recover.side_effect = ValueError("no key")
        deriver = SignatureParameterDeriver(recoverer=recoverer)

        with pytest.raises(SecurityError) as exc_info:
            deriver.derive(wallet.address, wallet.sign())

        assert exc_info.value.code is ErrorCode.RECOVERY_FAILED
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_format_error_is_not_a_security_error(self, deriver, wallet):
        with pytest.raises(InputError):
            deriver.derive(wallet.address, "0xdead")

    def test_custom_message_template(self, wallet):
        deriver = SignatureParameterDeriver(message_template="Prove {address}")

        assert deriver.ownership_message(wallet.address) == f"Prove {wallet.address}"
