"""
Parameter Set Validation
========================

Re-validates a complete parameter set, including one built outside the
derivers (e.g. received over the API). Unlike derivation this pass does
not stop at the first problem; every violation is reported.

Version: 0.1.0
"""

from collections.abc import Mapping
from typing import Any

from fundsproof.zk.errors import InputError
from fundsproof.zk.models import (
    ADDRESS_BYTE_LENGTH,
    ProofParameters,
    ProofType,
    ValidationResult,
)


# camelCase spellings used by JSON clients
_KEY_ALIASES = {
    "public_inputs": "publicInputs",
    "private_inputs": "privateInputs",
    "proof_type": "proofType",
    "address_bytes": "addressBytes",
    "actual_balance": "actualBalance",
}


def _lookup(section: Mapping[str, Any], key: str) -> Any:
    if key in section:
        return section[key]
    return section.get(_KEY_ALIASES.get(key, key))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return None


class InputValidator:
    """
    Complete, non-fail-fast validation of ProofParameters.

    Usage:
        result = InputValidator().validate(parameters)
        if not result.valid:
            print(result.errors)
    """

    def validate(self, parameters: ProofParameters | Mapping[str, Any]) -> ValidationResult:
        """
        Check structure and invariants of a parameter set.

        Args:
            parameters: A ProofParameters model or a mapping with snake_case
                or camelCase keys

        Returns:
            ValidationResult with every violation found
        """
        if isinstance(parameters, ProofParameters):
            data: Mapping[str, Any] = parameters.model_dump()
        elif isinstance(parameters, Mapping):
            data = parameters
        else:
            return ValidationResult(
                valid=False,
                errors=[f"Parameters must be a mapping, got {type(parameters).__name__}"],
            )

        errors: list[str] = []

        sections = {}
        for name in ("public_inputs", "private_inputs", "metadata"):
            section = _lookup(data, name)
            if section is None:
                errors.append(f"Missing {name}")
            elif not isinstance(section, Mapping):
                errors.append(f"{name} must be an object")
            else:
                sections[name] = section

        public = sections.get("public_inputs", {})
        private = sections.get("private_inputs", {})
        metadata = sections.get("metadata", {})

        proof_type = None
        if "metadata" in sections:
            raw_type = _lookup(metadata, "proof_type")
            if _is_blank(raw_type):
                errors.append("Missing metadata.proof_type")
            else:
                try:
                    proof_type = ProofType.parse(raw_type)
                except InputError:
                    errors.append(f"Unknown proof type: {raw_type!r}")

        if "public_inputs" in sections and _is_blank(_lookup(public, "address")):
            errors.append("Missing public_inputs.address")

        if "private_inputs" in sections:
            errors.extend(self._check_private_common(private))

        if proof_type is not None:
            errors.extend(self._check_type_fields(proof_type, public, private, sections))

        return ValidationResult(valid=not errors, errors=errors)

    def _check_private_common(self, private: Mapping[str, Any]) -> list[str]:
        errors = []

        address_bytes = _lookup(private, "address_bytes")
        if address_bytes is None:
            errors.append("Missing private_inputs.address_bytes")
        elif not isinstance(address_bytes, (list, tuple)):
            errors.append("private_inputs.address_bytes must be an array")
        else:
            if len(address_bytes) != ADDRESS_BYTE_LENGTH:
                errors.append(
                    f"private_inputs.address_bytes must have {ADDRESS_BYTE_LENGTH} "
                    f"entries, got {len(address_bytes)}"
                )
            if not all(
                isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255
                for b in address_bytes
            ):
                errors.append("private_inputs.address_bytes entries must be integers 0..255")

        nonce = _lookup(private, "nonce")
        if _is_blank(nonce):
            errors.append("Missing private_inputs.nonce")
        elif not isinstance(nonce, str):
            errors.append("private_inputs.nonce must be a string")

        return errors

    def _check_type_fields(
        self,
        proof_type: ProofType,
        public: Mapping[str, Any],
        private: Mapping[str, Any],
        sections: Mapping[str, Any],
    ) -> list[str]:
        errors = []
        amount_field = proof_type.public_amount_field
        private_field = "actual_balance" if proof_type.requires_actual_balance else "amount"

        public_value = None
        if "public_inputs" in sections:
            raw = _lookup(public, amount_field)
            if _is_blank(raw):
                errors.append(f"Missing public_inputs.{amount_field}")
            else:
                public_value = _parse_integer(raw)
                if public_value is None:
                    errors.append(f"public_inputs.{amount_field} is not a base-unit integer")

        private_value = None
        if "private_inputs" in sections:
            raw = _lookup(private, private_field)
            if _is_blank(raw):
                errors.append(f"Missing private_inputs.{private_field}")
            else:
                private_value = _parse_integer(raw)
                if private_value is None:
                    errors.append(f"private_inputs.{private_field} is not a base-unit integer")

        if public_value is None or private_value is None:
            return errors

        if proof_type is ProofType.STANDARD and private_value != public_value:
            errors.append("private_inputs.amount does not equal public_inputs.amount")
        elif proof_type is ProofType.THRESHOLD and private_value < public_value:
            errors.append("private_inputs.actual_balance is below public_inputs.threshold")
        elif proof_type is ProofType.MAXIMUM and private_value > public_value:
            errors.append("private_inputs.actual_balance exceeds public_inputs.maximum")

        return errors
