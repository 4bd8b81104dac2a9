"""
Derived Identifiers
===================

Deterministic nonces and proof ids.

The nonce is a hash of (address, amount, timestamp). It is deterministic
for identical inputs; callers that need unlinkability across repeated
requests must supply a fresh timestamp. Proof ids are tracking labels
only and are never used as storage keys on their own.
"""

import re
import time

from fundsproof.zk.hashing import Hasher, default_hasher, hash_hex
from fundsproof.zk.models import ProofType


PROOF_ID_PREFIX = "pof-"
PROOF_ID_HEX_LENGTH = 16

_HEX_NONCE = re.compile(r"^0[xX][0-9a-fA-F]+$")


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def generate_nonce(
    wallet_address: str,
    amount: str | int,
    timestamp: int | None = None,
    hasher: Hasher | None = None,
) -> str:
    """Nonce for a proof request as 0x hex."""
    hasher = hasher or default_hasher()
    timestamp = now_ms() if timestamp is None else timestamp
    nonce_data = f"{wallet_address}-{amount}-{timestamp}"
    return hash_hex(hasher, nonce_data.encode("utf-8"))


def generate_proof_id(
    wallet_address: str,
    proof_type: ProofType | str,
    amount: str | int,
    hasher: Hasher | None = None,
) -> str:
    """Tracking id ``pof-<16 hex>`` for a (address, type, amount) triple."""
    hasher = hasher or default_hasher()
    type_name = proof_type.value if isinstance(proof_type, ProofType) else str(proof_type)
    base = f"{wallet_address.lower()}-{type_name}-{amount}"
    digest = hasher.digest(base.encode("utf-8")).hex()
    return f"{PROOF_ID_PREFIX}{digest[:PROOF_ID_HEX_LENGTH]}"


def nonce_to_hex(nonce: str) -> str:
    """Hex form of a nonce for metadata; caller-supplied text is hex-encoded."""
    if _HEX_NONCE.match(nonce):
        return nonce.lower()
    return "0x" + nonce.encode("utf-8").hex()
