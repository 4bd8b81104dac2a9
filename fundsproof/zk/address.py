"""
Address Codec
=============

Validation and canonical forms of 20-byte wallet addresses.

Usage:
    codec = AddressCodec()
    params = codec.derive_parameters("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
    params.checksummed  # "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

Version: 0.1.0
"""

import re

from fundsproof.zk.errors import ErrorCode, InputError
from fundsproof.zk.hashing import Hasher, default_hasher, hash_hex
from fundsproof.zk.models import ADDRESS_BYTE_LENGTH, AddressParameters


_HEX_BODY = re.compile(r"^[0-9a-fA-F]{40}$")


def _strip_prefix(address: str) -> str:
    if address[:2] in ("0x", "0X"):
        return address[2:]
    return address


class AddressCodec:
    """Converts wallet addresses to bytes, checksum form and hash."""

    def __init__(self, hasher: Hasher | None = None) -> None:
        self._hasher = hasher or default_hasher()

    def to_bytes(self, address: str) -> bytes:
        """
        Decode an address to its 20 bytes.

        Args:
            address: 40 hex characters, with or without ``0x``

        Raises:
            InputError: INVALID_ADDRESS_FORMAT on wrong length or non-hex input
        """
        if not isinstance(address, str):
            raise InputError(
                f"Address must be a string, got {type(address).__name__}",
                code=ErrorCode.INVALID_ADDRESS_FORMAT,
                field="wallet_address",
            )

        body = _strip_prefix(address.strip())
        if len(body) != ADDRESS_BYTE_LENGTH * 2:
            raise InputError(
                f"Invalid address format: expected 40 hex characters, got {len(body)}",
                code=ErrorCode.INVALID_ADDRESS_FORMAT,
                field="wallet_address",
            )
        if not _HEX_BODY.match(body):
            raise InputError(
                "Invalid address format: non-hex characters",
                code=ErrorCode.INVALID_ADDRESS_FORMAT,
                field="wallet_address",
            )

        return bytes.fromhex(body)

    def checksum(self, address: str) -> str:
        """Return the EIP-55 mixed-case form of an address."""
        body = self.to_bytes(address).hex()
        digest = self._hasher.digest(body.encode("ascii")).hex()

        chars = [
            char.upper() if char.isalpha() and int(digest[i], 16) >= 8 else char
            for i, char in enumerate(body)
        ]
        return "0x" + "".join(chars)

    def is_valid(self, address: str) -> bool:
        """Check format and, for mixed-case input, the checksum."""
        try:
            self._validated_checksum(address)
        except InputError:
            return False
        return True

    def _validated_checksum(self, address: str) -> str:
        checksummed = self.checksum(address)
        body = _strip_prefix(address.strip())

        # All-lower and all-upper bodies carry no checksum information
        if body == body.lower() or body == body.upper():
            return checksummed

        if body != checksummed[2:]:
            raise InputError(
                "Address checksum does not match",
                code=ErrorCode.INVALID_CHECKSUM,
                field="wallet_address",
                details={"expected": checksummed},
            )
        return checksummed

    def derive_parameters(self, address: str) -> AddressParameters:
        """
        Derive every representation of an address used by the circuits.

        The hash is the public-input stand-in for the address, so the
        verifier never sees the address itself.

        Raises:
            InputError: malformed address or checksum mismatch
            ZKSystemError: hashing primitive unavailable
        """
        checksummed = self._validated_checksum(address)
        raw = bytes.fromhex(checksummed[2:])

        return AddressParameters(
            original=address,
            checksummed=checksummed,
            address_bytes=tuple(raw),
            hash=hash_hex(self._hasher, raw),
        )
