"""
Ownership Signature Parameters
==============================

Splits a 65-byte ECDSA ownership signature into circuit components and
recovers the signer's public key.

The signed message is ``"I confirm ownership of wallet {address}"`` with
the checksummed address; its keccak256 digest is what the wallet signed.

Version: 0.1.0
"""

import re

from fundsproof.config import settings
from fundsproof.logging import get_logger
from fundsproof.zk.address import AddressCodec
from fundsproof.zk.errors import ErrorCode, InputError, SecurityError
from fundsproof.zk.hashing import (
    SECP256K1_N,
    Hasher,
    SignatureRecoverer,
    address_from_public_key,
    default_hasher,
    default_recoverer,
    to_hex,
)
from fundsproof.zk.models import AddressParameters, SignatureParameters


logger = get_logger(__name__)

SIGNATURE_LENGTH = 65

_SIGNATURE_HEX = re.compile(r"^[0-9a-fA-F]{130}$")


def _invalid(reason: str) -> InputError:
    return InputError(
        f"Invalid signature format: {reason}",
        code=ErrorCode.INVALID_SIGNATURE_FORMAT,
        field="signature",
    )


def split_signature(signature: str | bytes) -> tuple[int, int, int]:
    """
    Split a signature into ``(r, s, recovery_bit)``.

    Accepts ``r || s || v`` as bytes or hex, with ``v`` in {0, 1, 27, 28}.

    Raises:
        InputError: INVALID_SIGNATURE_FORMAT
    """
    if isinstance(signature, str):
        body = signature.strip()
        if body[:2] in ("0x", "0X"):
            body = body[2:]
        if not _SIGNATURE_HEX.match(body):
            raise _invalid(f"expected {SIGNATURE_LENGTH} bytes of hex")
        raw = bytes.fromhex(body)
    elif isinstance(signature, (bytes, bytearray)):
        raw = bytes(signature)
    else:
        raise _invalid(f"unsupported type {type(signature).__name__}")

    if len(raw) != SIGNATURE_LENGTH:
        raise _invalid(f"expected {SIGNATURE_LENGTH} bytes, got {len(raw)}")

    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]

    if v in (27, 28):
        recovery_bit = v - 27
    elif v in (0, 1):
        recovery_bit = v
    else:
        raise _invalid(f"recovery byte {v} is not one of 0, 1, 27, 28")

    if not 0 < r < SECP256K1_N:
        raise _invalid("r is out of range")
    if not 0 < s < SECP256K1_N:
        raise _invalid("s is out of range")

    return r, s, recovery_bit


class SignatureParameterDeriver:
    """
    Derives SignatureParameters from an ownership signature.

    Usage:
        deriver = SignatureParameterDeriver()
        params = deriver.derive("0x5aAe...BeAed", "0x3f1c...1b")
        params.signature_components  # ("<r>", "<s>")
    """

    def __init__(
        self,
        hasher: Hasher | None = None,
        recoverer: SignatureRecoverer | None = None,
        message_template: str | None = None,
        enforce_signer_match: bool | None = None,
    ) -> None:
        self._hasher = hasher or default_hasher()
        self._recoverer = recoverer or default_recoverer()
        self._codec = AddressCodec(self._hasher)
        self.message_template = message_template or settings.zk.ownership_message
        self.enforce_signer_match = (
            settings.zk.enforce_signer_match
            if enforce_signer_match is None
            else enforce_signer_match
        )

    def ownership_message(self, checksummed_address: str) -> str:
        """The message a wallet signs to attest ownership."""
        return self.message_template.format(address=checksummed_address)

    def message_hash(self, checksummed_address: str) -> bytes:
        message = self.ownership_message(checksummed_address)
        return self._hasher.digest(message.encode("utf-8"))

    def derive(
        self,
        address: AddressParameters | str,
        signature: str | bytes,
    ) -> SignatureParameters:
        """
        Split the signature and recover the signer.

        Raises:
            InputError: malformed address or signature encoding
            SecurityError: RECOVERY_FAILED when no key can be recovered,
                SIGNER_MISMATCH when the signer is not the wallet
            ZKSystemError: hashing primitive unavailable
        """
        if isinstance(address, str):
            address = self._codec.derive_parameters(address)

        r, s, recovery_bit = split_signature(signature)
        message_hash = self.message_hash(address.checksummed)

        compact = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recovery_bit])
        try:
            public_key = self._recoverer.recover(message_hash, compact)
        except (ValueError, TypeError) as e:
            raise SecurityError(
                "Could not recover a public key from the ownership signature",
                code=ErrorCode.RECOVERY_FAILED,
                field="signature",
            ) from e

        signer = self._codec.checksum(
            to_hex(address_from_public_key(self._hasher, public_key))
        )
        if self.enforce_signer_match and signer != address.checksummed:
            logger.warning(
                "ownership_signer_mismatch",
                wallet_address=address.checksummed,
                signer_address=signer,
            )
            raise SecurityError(
                "Ownership signature was not produced by the wallet",
                code=ErrorCode.SIGNER_MISMATCH,
                field="signature",
            )

        return SignatureParameters(
            r=to_hex(r.to_bytes(32, "big")),
            s=to_hex(s.to_bytes(32, "big")),
            v=recovery_bit + 27,
            signature_components=(str(r), str(s)),
            recovery_bit=recovery_bit,
            message_hash=to_hex(message_hash),
            public_key=to_hex(public_key),
            signer_address=signer,
        )
