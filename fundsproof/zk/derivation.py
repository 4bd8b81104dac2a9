"""
Proof Parameter Derivation
==========================

Builds the public/private input split for each proof type and enforces
the arithmetic invariant the type requires:

- standard:  private amount == public amount
- threshold: actual balance >= threshold
- maximum:   actual balance <= maximum

Derivation is fail-fast. Every error raised from here carries the
operation id of the call that produced it.

Version: 0.1.0
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar

from fundsproof.config import settings
from fundsproof.logging import bind_context, get_logger, unbind_context
from fundsproof.zk.address import AddressCodec
from fundsproof.zk.amounts import compare_amounts, normalize_amount
from fundsproof.zk.context import OperationContext
from fundsproof.zk.errors import (
    ErrorCode,
    InputError,
    ProofError,
    ProofParameterError,
    ZKSystemError,
)
from fundsproof.zk.hashing import Hasher, SignatureRecoverer, default_hasher
from fundsproof.zk.identifiers import (
    generate_nonce,
    generate_proof_id,
    nonce_to_hex,
    now_ms,
)
from fundsproof.zk.models import (
    PrivateInputs,
    ProofMetadata,
    ProofParameters,
    ProofType,
    PublicInputs,
)
from fundsproof.zk.signature import SignatureParameterDeriver


logger = get_logger(__name__)


@dataclass(frozen=True)
class DerivationRequest:
    """Raw caller data for one derivation."""

    wallet_address: str | None
    amount: str | int | float | None
    actual_balance: str | int | float | None = None
    signature: str | bytes | None = None
    nonce: str | None = None
    decimals: int | None = None
    timestamp: int | None = None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ParameterDeriver(ABC):
    """
    Base class for the per-type derivers.

    Subclasses set ``proof_type`` and implement ``check_invariant``.
    """

    proof_type: ClassVar[ProofType]
    required_fields: ClassVar[tuple[str, ...]] = ("wallet_address", "amount")

    def __init__(
        self,
        hasher: Hasher | None = None,
        recoverer: SignatureRecoverer | None = None,
        signature_deriver: SignatureParameterDeriver | None = None,
    ) -> None:
        self._hasher = hasher or default_hasher()
        self._codec = AddressCodec(self._hasher)
        self._signatures = signature_deriver or SignatureParameterDeriver(
            self._hasher, recoverer
        )

    @abstractmethod
    def check_invariant(self, amount: str, actual_balance: str | None) -> None:
        """Raise ProofError when the canonical values violate the type's rule."""

    def derive(
        self,
        request: DerivationRequest,
        context: OperationContext | None = None,
    ) -> ProofParameters:
        """
        Derive the parameter set for ``request``.

        Args:
            request: Raw caller data
            context: Operation context; a fresh one is created if omitted

        Returns:
            ProofParameters: Immutable public/private split with metadata

        Raises:
            InputError: missing or malformed fields
            ProofError: the proof type's invariant does not hold
            SecurityError: the ownership signature could not be attributed
            ZKSystemError: a hashing or recovery primitive failed
        """
        context = OperationContext.ensure(context, f"derive_{self.proof_type.value}")
        try:
            return self._derive(request, context)
        except ZKSystemError as e:
            raise ZKSystemError(
                f"{self.proof_type.value} parameter derivation failed: {e.message}",
                code=e.code,
                details={**e.details, "proof_type": self.proof_type.value},
                operation_id=context.operation_id,
                recoverable=e.recoverable,
            ) from e
        except ProofParameterError as e:
            e.with_operation(context.operation_id)
            raise

    def _check_required(self, request: DerivationRequest) -> None:
        for name in self.required_fields:
            if _is_missing(getattr(request, name)):
                raise InputError(
                    f"Missing required field: {name}",
                    code=ErrorCode.MISSING_REQUIRED,
                    field=name,
                )

    def _derive(
        self,
        request: DerivationRequest,
        context: OperationContext,
    ) -> ProofParameters:
        self._check_required(request)

        decimals = (
            settings.zk.default_decimals if request.decimals is None else request.decimals
        )
        amount_field = self.proof_type.public_amount_field

        address = self._codec.derive_parameters(request.wallet_address)
        amount = normalize_amount(request.amount, decimals, field=amount_field)
        actual_balance = None
        if not _is_missing(request.actual_balance):
            actual_balance = normalize_amount(
                request.actual_balance, decimals, field="actual_balance"
            )

        self.check_invariant(amount, actual_balance)

        signature = None
        if not _is_missing(request.signature):
            signature = self._signatures.derive(address, request.signature)

        timestamp = now_ms() if request.timestamp is None else request.timestamp
        nonce = request.nonce
        if _is_missing(nonce):
            nonce = generate_nonce(address.checksummed, amount, timestamp, self._hasher)

        public_inputs = PublicInputs(address=address.hash, **{amount_field: amount})
        private_inputs = PrivateInputs(
            address_bytes=address.address_bytes,
            nonce=nonce,
            amount=None if self.proof_type.requires_actual_balance else amount,
            actual_balance=actual_balance if self.proof_type.requires_actual_balance else None,
            signature=signature.signature_components if signature else None,
        )
        metadata = ProofMetadata(
            proof_type=self.proof_type,
            wallet_address=address.checksummed,
            amount=str(request.amount),
            decimals=decimals,
            timestamp=timestamp,
            nonce_hex=nonce_to_hex(nonce),
            proof_id=generate_proof_id(
                address.checksummed, self.proof_type, amount, self._hasher
            ),
            operation_id=context.operation_id,
        )

        logger.debug(
            "proof_parameters_derived",
            proof_type=self.proof_type.value,
            proof_id=metadata.proof_id,
            signed=signature is not None,
        )

        return ProofParameters(
            public_inputs=public_inputs,
            private_inputs=private_inputs,
            metadata=metadata,
        )


class StandardParameterDeriver(ParameterDeriver):
    """Proves the balance equals an exact amount."""

    proof_type = ProofType.STANDARD

    def check_invariant(self, amount: str, actual_balance: str | None) -> None:
        # The amount is both public and private; a supplied balance must match it
        if actual_balance is not None and compare_amounts(actual_balance, amount) != 0:
            raise ProofError(
                "Actual balance does not equal the amount",
                field="actual_balance",
                details={"amount": amount, "actual_balance": actual_balance},
            )


class ThresholdParameterDeriver(ParameterDeriver):
    """Proves the balance is at least a threshold."""

    proof_type = ProofType.THRESHOLD
    required_fields = ("wallet_address", "amount", "actual_balance")

    def check_invariant(self, amount: str, actual_balance: str | None) -> None:
        if compare_amounts(actual_balance, amount) < 0:
            raise ProofError(
                "Actual balance is below the threshold",
                field="actual_balance",
                details={"threshold": amount, "actual_balance": actual_balance},
            )


class MaximumParameterDeriver(ParameterDeriver):
    """Proves the balance is at most a cap."""

    proof_type = ProofType.MAXIMUM
    required_fields = ("wallet_address", "amount", "actual_balance")

    def check_invariant(self, amount: str, actual_balance: str | None) -> None:
        if compare_amounts(actual_balance, amount) > 0:
            raise ProofError(
                "Actual balance exceeds the maximum",
                field="actual_balance",
                details={"maximum": amount, "actual_balance": actual_balance},
            )


DERIVERS: dict[ProofType, type[ParameterDeriver]] = {
    ProofType.STANDARD: StandardParameterDeriver,
    ProofType.THRESHOLD: ThresholdParameterDeriver,
    ProofType.MAXIMUM: MaximumParameterDeriver,
}


def get_deriver(
    proof_type: ProofType | str | int,
    hasher: Hasher | None = None,
    recoverer: SignatureRecoverer | None = None,
) -> ParameterDeriver:
    """Instantiate the deriver for a proof type."""
    return DERIVERS[ProofType.parse(proof_type)](hasher=hasher, recoverer=recoverer)


# Option names accepted from JSON-shaped callers
_OPTION_ALIASES = {"actualBalance": "actual_balance"}
_OPTION_NAMES = {f.name for f in fields(DerivationRequest)} - {"wallet_address", "amount"}


def _request_from_options(
    wallet_address: str | None,
    amount: str | int | float | None,
    options: Mapping[str, Any] | None,
) -> DerivationRequest:
    values: dict[str, Any] = {}
    for key, value in (options or {}).items():
        name = _OPTION_ALIASES.get(key, key)
        if name not in _OPTION_NAMES:
            raise InputError(f"Unknown derivation option: {key}", field=key)
        values[name] = value
    return DerivationRequest(wallet_address=wallet_address, amount=amount, **values)


def derive_circuit_parameters(
    wallet_address: str | None,
    amount: str | int | float | None,
    proof_type: ProofType | str | int,
    options: Mapping[str, Any] | None = None,
    *,
    context: OperationContext | None = None,
    hasher: Hasher | None = None,
    recoverer: SignatureRecoverer | None = None,
) -> ProofParameters:
    """
    Derive circuit parameters for a wallet.

    Args:
        wallet_address: 20-byte address as hex
        amount: Amount, threshold or maximum depending on ``proof_type``
        proof_type: ProofType, its name, or a legacy numeric code
        options: ``actual_balance``, ``signature``, ``nonce``, ``decimals``,
            ``timestamp`` (camelCase ``actualBalance`` is accepted)
        context: Operation context to correlate with an outer call

    Returns:
        ProofParameters for the requested type

    Raises:
        InputError, ProofError, SecurityError, ZKSystemError. Each carries
        the operation id of this call.
    """
    context = OperationContext.ensure(context, "derive_circuit_parameters")
    bind_context(operation_id=context.operation_id)
    try:
        deriver = get_deriver(proof_type, hasher=hasher, recoverer=recoverer)
        request = _request_from_options(wallet_address, amount, options)
        parameters = deriver.derive(request, context)
    except ProofParameterError as e:
        e.with_operation(context.operation_id)
        if e.user_fixable:
            logger.warning("proof_parameter_derivation_rejected", **e.to_log_dict())
        else:
            logger.error("proof_parameter_derivation_failed", **e.to_log_dict())
        raise
    finally:
        unbind_context("operation_id")

    logger.info(
        "proof_parameters_ready",
        proof_type=parameters.proof_type.value,
        proof_id=parameters.metadata.proof_id,
        operation_id=context.operation_id,
    )
    return parameters


async def aderive_circuit_parameters(
    wallet_address: str | None,
    amount: str | int | float | None,
    proof_type: ProofType | str | int,
    options: Mapping[str, Any] | None = None,
    *,
    context: OperationContext | None = None,
    hasher: Hasher | None = None,
    recoverer: SignatureRecoverer | None = None,
) -> ProofParameters:
    """Run ``derive_circuit_parameters`` in a worker thread."""
    return await asyncio.to_thread(
        derive_circuit_parameters,
        wallet_address,
        amount,
        proof_type,
        options,
        context=context,
        hasher=hasher,
        recoverer=recoverer,
    )
