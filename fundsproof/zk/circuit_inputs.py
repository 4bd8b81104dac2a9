"""
Circuit Input Adapter
=====================

Maps a parameter set onto the exact field set the prover expects:

    standard   address, amount,    addressBytes, amount,        nonce, [signature]
    threshold  address, threshold, addressBytes, actualBalance, nonce, [signature]
    maximum    address, maximum,   addressBytes, actualBalance, nonce, [signature]

Security-level fields (security nonce, timestamp, commitment) stay with
the staged inputs and are never forwarded to the circuit.

Version: 0.1.0
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from fundsproof.zk.errors import ErrorCode, InputError
from fundsproof.zk.models import ProofParameters, ProofType


def _missing(field: str) -> InputError:
    return InputError(
        f"Missing required circuit input: {field}",
        code=ErrorCode.MISSING_REQUIRED,
        field=field,
    )


def _coerce(parameters: ProofParameters | Mapping[str, Any]) -> ProofParameters:
    if isinstance(parameters, ProofParameters):
        return parameters
    try:
        return ProofParameters.model_validate(parameters)
    except ValidationError as e:
        raise InputError(
            f"Malformed proof parameters: {e.error_count()} validation error(s)",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def public_signal_names(proof_type: ProofType | str | int) -> list[str]:
    """Ordered public signal names for a proof type."""
    return ["address", ProofType.parse(proof_type).public_amount_field]


class CircuitInputAdapter:
    """Last gate before parameters cross into the prover."""

    def prepare(self, parameters: ProofParameters | Mapping[str, Any]) -> dict[str, Any]:
        """
        Build the circuit input map.

        Raises:
            InputError: MISSING_REQUIRED when a field for the type is absent
        """
        parameters = _coerce(parameters)
        proof_type = parameters.proof_type
        public = parameters.public_inputs
        private = parameters.private_inputs
        amount_field = proof_type.public_amount_field

        public_amount = getattr(public, amount_field)
        if not public_amount:
            raise _missing(amount_field)

        inputs: dict[str, Any] = {
            "address": public.address,
            amount_field: public_amount,
            "addressBytes": list(private.address_bytes),
            "nonce": private.nonce,
        }

        if proof_type.requires_actual_balance:
            if not private.actual_balance:
                raise _missing("actualBalance")
            inputs["actualBalance"] = private.actual_balance
        else:
            if not private.amount:
                raise _missing("amount")
            if private.amount != public_amount:
                raise InputError(
                    "Private amount does not equal the public amount",
                    field="amount",
                )

        if private.signature is not None:
            inputs["signature"] = list(private.signature)

        return inputs

    def split_public_signals(
        self,
        parameters: ProofParameters | Mapping[str, Any],
    ) -> list[str]:
        """Public signal values in circuit order."""
        parameters = _coerce(parameters)
        signals = []
        for name in public_signal_names(parameters.proof_type):
            value = getattr(parameters.public_inputs, name)
            if not value:
                raise _missing(name)
            signals.append(value)
        return signals
