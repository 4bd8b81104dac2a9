"""
Proof Parameter Pipeline
========================

Derivation, validation and secure staging of proof-of-funds circuit
inputs.

Usage:
    from fundsproof.zk import (
        CircuitInputAdapter,
        SecureInputStore,
        derive_circuit_parameters,
    )

    params = derive_circuit_parameters(
        "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        "100",
        "threshold",
        {"actual_balance": "150"},
    )
    staged = await SecureInputStore().stage(params)
    circuit_inputs = CircuitInputAdapter().prepare(params)

Version: 0.1.0
"""

from fundsproof.zk.address import AddressCodec
from fundsproof.zk.amounts import compare_amounts, normalize_amount
from fundsproof.zk.capabilities import (
    ClientCapabilityGate,
    ClientSideOptions,
    DeviceCapabilities,
    DeviceCapabilityReport,
    ExecutionTarget,
    HostCapabilities,
    StaticCapabilities,
)
from fundsproof.zk.circuit_inputs import CircuitInputAdapter, public_signal_names
from fundsproof.zk.context import OperationContext
from fundsproof.zk.derivation import (
    DerivationRequest,
    MaximumParameterDeriver,
    ParameterDeriver,
    StandardParameterDeriver,
    ThresholdParameterDeriver,
    aderive_circuit_parameters,
    derive_circuit_parameters,
    get_deriver,
)
from fundsproof.zk.encryption import InputCipher
from fundsproof.zk.errors import (
    ErrorCategory,
    ErrorCode,
    InputError,
    ProofError,
    ProofParameterError,
    SecurityError,
    ZKSystemError,
)
from fundsproof.zk.identifiers import generate_nonce, generate_proof_id
from fundsproof.zk.models import (
    AddressParameters,
    PrivateInputs,
    ProofMetadata,
    ProofParameters,
    ProofType,
    PublicInputs,
    SecurityLevel,
    SecurityOptions,
    SignatureParameters,
    StagedInput,
    StageResult,
    ValidationResult,
)
from fundsproof.zk.registry import CircuitRegistry, ExecutionPhase, MemoryRequirements
from fundsproof.zk.secure_store import SecureInputStore
from fundsproof.zk.signature import SignatureParameterDeriver
from fundsproof.zk.storage import MemoryStorageBackend, StorageBackend, create_storage_backend
from fundsproof.zk.validator import InputValidator


__all__ = [
    # Entry points
    "derive_circuit_parameters",
    "aderive_circuit_parameters",
    "get_deriver",
    "OperationContext",
    # Components
    "AddressCodec",
    "normalize_amount",
    "compare_amounts",
    "generate_nonce",
    "generate_proof_id",
    "SignatureParameterDeriver",
    "ParameterDeriver",
    "StandardParameterDeriver",
    "ThresholdParameterDeriver",
    "MaximumParameterDeriver",
    "DerivationRequest",
    "InputValidator",
    "CircuitInputAdapter",
    "public_signal_names",
    "SecureInputStore",
    "InputCipher",
    "StorageBackend",
    "MemoryStorageBackend",
    "create_storage_backend",
    "CircuitRegistry",
    "ExecutionPhase",
    "MemoryRequirements",
    "ClientCapabilityGate",
    "ClientSideOptions",
    "DeviceCapabilities",
    "DeviceCapabilityReport",
    "HostCapabilities",
    "StaticCapabilities",
    "ExecutionTarget",
    # Models
    "ProofType",
    "SecurityLevel",
    "SecurityOptions",
    "AddressParameters",
    "SignatureParameters",
    "PublicInputs",
    "PrivateInputs",
    "ProofMetadata",
    "ProofParameters",
    "ValidationResult",
    "StagedInput",
    "StageResult",
    # Errors
    "ProofParameterError",
    "InputError",
    "ProofError",
    "SecurityError",
    "ZKSystemError",
    "ErrorCode",
    "ErrorCategory",
]
