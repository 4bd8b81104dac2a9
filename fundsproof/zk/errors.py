"""
Proof Parameter Errors
======================

Error taxonomy for parameter derivation, validation and staging.

- InputError: missing or malformed caller data (user-fixable)
- ProofError: a proof-type invariant does not hold (user-fixable)
- SecurityError: signature recovery or decryption failed
- ZKSystemError: a dependency failed (hashing primitive, storage, probe)

Errors raised by deeper layers are chained with ``raise ... from`` so the
root cause stays inspectable.

Version: 0.1.0
"""

from enum import Enum, IntEnum
from typing import Any, ClassVar


class ErrorCategory(str, Enum):
    """Category labels used in logs and API responses."""

    INPUT = "input"
    PROOF = "proof"
    SECURITY = "security"
    SYSTEM = "system"


class ErrorCode(IntEnum):
    """Numeric error codes, grouped by category."""

    # Proof invariants (2000-2999)
    CONDITION_NOT_MET = 2001

    # Security (6000-6999)
    RECOVERY_FAILED = 6001
    SIGNER_MISMATCH = 6002
    DECRYPTION_FAILED = 6003

    # Input (7000-7999)
    INPUT_VALIDATION_FAILED = 7001
    MISSING_REQUIRED = 7002
    INVALID_ADDRESS_FORMAT = 7003
    INVALID_CHECKSUM = 7004
    INVALID_AMOUNT_FORMAT = 7005
    INVALID_SIGNATURE_FORMAT = 7006
    UNSUPPORTED_PROOF_TYPE = 7007
    UNKNOWN_CIRCUIT_TYPE = 7008
    INPUT_NOT_FOUND = 7009

    # System (8000-8999)
    PRIMITIVE_UNAVAILABLE = 8001
    STORAGE_UNAVAILABLE = 8002
    STAGE_TIMEOUT = 8003
    RESOURCE_UNAVAILABLE = 8004
    STORAGE_WRITE_UNCONFIRMED = 8005


class ProofParameterError(Exception):
    """Base class for every error raised by the parameter pipeline."""

    category: ClassVar[ErrorCategory] = ErrorCategory.SYSTEM
    default_code: ClassVar[ErrorCode] = ErrorCode.INPUT_VALIDATION_FAILED
    user_fixable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
        operation_id: str | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field
        self.details = dict(details or {})
        self.operation_id = operation_id
        self.recoverable = recoverable

    def with_operation(self, operation_id: str | None) -> "ProofParameterError":
        """Attach an operation id unless one is already set."""
        if self.operation_id is None:
            self.operation_id = operation_id
        return self

    @property
    def root_cause(self) -> BaseException:
        """Deepest exception in the ``__cause__`` chain."""
        current: BaseException = self
        while current.__cause__ is not None:
            current = current.__cause__
        return current

    def user_message(self) -> str:
        """Message safe to show to an end user."""
        return self.message

    def to_log_dict(self) -> dict[str, Any]:
        """Structured representation for operator logs."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "error_code": int(self.code),
            "error_category": self.category.value,
            "operation_id": self.operation_id,
            "recoverable": self.recoverable,
        }
        if self.field:
            data["field"] = self.field
        if self.__cause__ is not None:
            data["cause"] = type(self.__cause__).__name__
        return data

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


class InputError(ProofParameterError):
    """Missing or malformed caller-supplied data."""

    category = ErrorCategory.INPUT
    default_code = ErrorCode.INPUT_VALIDATION_FAILED
    user_fixable = True

    def to_log_dict(self) -> dict[str, Any]:
        data = super().to_log_dict()
        data["message"] = self.message
        return data


class ProofError(ProofParameterError):
    """
    A proof-type invariant does not hold.

    ``details`` carries the required and actual canonical values, e.g.
    ``{"threshold": "100", "actual_balance": "50"}``.
    """

    category = ErrorCategory.PROOF
    default_code = ErrorCode.CONDITION_NOT_MET
    user_fixable = True

    def user_message(self) -> str:
        if not self.details:
            return self.message
        values = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({values})"


class SecurityError(ProofParameterError):
    """Signature recovery, signer binding or decryption failed."""

    category = ErrorCategory.SECURITY
    default_code = ErrorCode.RECOVERY_FAILED

    def user_message(self) -> str:
        return (
            "The request could not be verified. "
            f"Reference: {self.operation_id or 'unavailable'}"
        )


class ZKSystemError(ProofParameterError):
    """
    A dependency failed.

    Named to avoid shadowing Python's builtin ``SystemError``.
    """

    category = ErrorCategory.SYSTEM
    default_code = ErrorCode.RESOURCE_UNAVAILABLE

    def user_message(self) -> str:
        return (
            "A required service is temporarily unavailable. "
            f"Reference: {self.operation_id or 'unavailable'}"
        )
