"""
Proof Parameter Data Models
===========================

Pydantic models for the public/private input split handed to the prover.

All models are frozen: once built, a parameter set is never mutated.
Revising one means constructing a new ProofParameters (``model_copy``).

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from fundsproof.config import SecurityLevel
from fundsproof.zk.errors import ErrorCode, InputError


ADDRESS_BYTE_LENGTH = 20

Byte = Annotated[int, Field(ge=0, le=255)]
AddressBytes = Annotated[
    tuple[Byte, ...],
    Field(min_length=ADDRESS_BYTE_LENGTH, max_length=ADDRESS_BYTE_LENGTH),
]

# Legacy numeric identifiers still sent by older clients
_NUMERIC_PROOF_TYPES = {0: "standard", 1: "threshold", 2: "maximum"}


class ProofType(str, Enum):
    """Which balance fact is being proven."""

    STANDARD = "standard"
    THRESHOLD = "threshold"
    MAXIMUM = "maximum"

    @classmethod
    def parse(cls, value: Any) -> "ProofType":
        """Accept an enum member, a case-insensitive name or a legacy code."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            value = _NUMERIC_PROOF_TYPES.get(value, value)
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InputError(
            f"Unsupported proof type: {value!r}",
            code=ErrorCode.UNSUPPORTED_PROOF_TYPE,
            field="proof_type",
        )

    @property
    def public_amount_field(self) -> str:
        """Name of the public input carrying the compared amount."""
        return {
            ProofType.STANDARD: "amount",
            ProofType.THRESHOLD: "threshold",
            ProofType.MAXIMUM: "maximum",
        }[self]

    @property
    def requires_actual_balance(self) -> bool:
        return self is not ProofType.STANDARD


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AddressParameters(_FrozenModel):
    """Canonical forms of a wallet address."""

    original: str
    checksummed: str
    address_bytes: AddressBytes
    hash: str = Field(..., description="keccak256 of the address bytes (0x hex)")


class SignatureParameters(_FrozenModel):
    """Components of an ownership signature and the recovered signer."""

    r: str
    s: str
    v: int = Field(..., description="Recovery id in 27/28 form")
    signature_components: tuple[str, str] = Field(
        ..., description="(r, s) as decimal strings for the circuit"
    )
    recovery_bit: int = Field(..., ge=0, le=1)
    message_hash: str
    public_key: str = Field(..., description="Uncompressed secp256k1 key (0x04...)")
    signer_address: str


class PublicInputs(_FrozenModel):
    """
    Inputs visible to the verifier.

    Exactly one of amount / threshold / maximum is set, depending on the
    proof type.
    """

    address: str = Field(..., description="Address hash, never the address")
    amount: str | None = None
    threshold: str | None = None
    maximum: str | None = None


class PrivateInputs(_FrozenModel):
    """Inputs known only to the prover."""

    address_bytes: AddressBytes
    nonce: str = Field(..., min_length=1)
    amount: str | None = None
    actual_balance: str | None = None
    signature: tuple[str, str] | None = None

    # Added by SecureInputStore according to the security level
    security_nonce: str | None = None
    security_timestamp: int | None = None
    commitment: str | None = None


class ProofMetadata(_FrozenModel):
    """Informational fields; never fed to the prover."""

    proof_type: ProofType
    wallet_address: str
    amount: str = Field(..., description="Amount as supplied by the caller")
    decimals: int = Field(..., ge=0, le=18)
    timestamp: int = Field(..., description="Milliseconds since the epoch")
    nonce_hex: str
    proof_id: str
    operation_id: str | None = None
    security_level: SecurityLevel | None = None


class ProofParameters(_FrozenModel):
    """Complete parameter set for one proof request."""

    public_inputs: PublicInputs
    private_inputs: PrivateInputs
    metadata: ProofMetadata

    @property
    def proof_type(self) -> ProofType:
        return self.metadata.proof_type


class ValidationResult(BaseModel):
    """Outcome of a complete validation pass."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class SecurityOptions(BaseModel):
    """Policy applied when staging inputs."""

    level: SecurityLevel = SecurityLevel.ENHANCED
    encrypt_inputs: bool = True
    ttl_seconds: int | None = Field(default=None, gt=0)


class StagedInput(BaseModel):
    """Encrypted envelope held by the storage backend."""

    input_id: str
    encrypted_blob: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime
    security_level: SecurityLevel


class StageResult(BaseModel):
    """
    Outcome of staging.

    ``session_password`` is only set when the store generated the password;
    it is returned once and not kept anywhere else.
    """

    input_id: str | None = None
    public_inputs: PublicInputs
    session_password: SecretStr | None = None
    expires_at: datetime | None = None
    security_level: SecurityLevel
    parameters: ProofParameters | None = Field(
        default=None,
        description="Full parameter set, only when inputs were not encrypted",
    )
