"""
Hashing and Signature Primitives
================================

Thin wrappers around keccak256 (eth-hash) and secp256k1 public-key
recovery (coincurve). Both are injected into the derivation pipeline.

There is no fallback hash. A missing keccak backend raises ZKSystemError.

Version: 0.1.0
"""

from typing import Protocol

from coincurve import PublicKey
from eth_hash.auto import keccak

from fundsproof.zk.errors import ErrorCode, ZKSystemError


# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class Hasher(Protocol):
    """A 32-byte digest function."""

    name: str

    def digest(self, data: bytes) -> bytes: ...


class SignatureRecoverer(Protocol):
    """Recovers an uncompressed public key from a 65-byte signature."""

    def recover(self, message_hash: bytes, signature: bytes) -> bytes: ...


class Keccak256Hasher:
    """keccak256 as used by Ethereum."""

    name = "keccak256"

    def digest(self, data: bytes) -> bytes:
        try:
            return keccak(data)
        except ImportError as e:
            # eth-hash resolves its backend lazily on first use
            raise ZKSystemError(
                "keccak256 backend is not installed",
                code=ErrorCode.PRIMITIVE_UNAVAILABLE,
                details={"primitive": self.name},
            ) from e


class Secp256k1Recoverer:
    """
    secp256k1 public-key recovery.

    ``signature`` is ``r || s || recid`` with ``recid`` in {0, 1}.
    Raises ValueError when no key can be recovered.
    """

    def recover(self, message_hash: bytes, signature: bytes) -> bytes:
        public_key = PublicKey.from_signature_and_message(
            signature,
            message_hash,
            hasher=None,
        )
        return public_key.format(compressed=False)


def to_hex(data: bytes) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + data.hex()


def hash_hex(hasher: Hasher, data: bytes) -> str:
    """Digest ``data`` and return it as 0x hex."""
    return to_hex(hasher.digest(data))


def address_from_public_key(hasher: Hasher, public_key: bytes) -> bytes:
    """Ethereum address (20 bytes) of an uncompressed public key."""
    return hasher.digest(public_key[1:])[12:]


_default_hasher = Keccak256Hasher()
_default_recoverer = Secp256k1Recoverer()


def default_hasher() -> Hasher:
    return _default_hasher


def default_recoverer() -> SignatureRecoverer:
    return _default_recoverer
