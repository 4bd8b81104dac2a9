"""
Circuit Registry
================

Memory requirements of the proof circuits.

Requirements come from an optional ``circuit-registry.json`` written by
the circuit build:

    {
        "buildTimestamp": "2025-01-01T00:00:00Z",
        "circuits": [
            {"type": "threshold", "version": "v1.2.0", "constraints": 42000}
        ]
    }

Circuits with a constraint count get an estimate derived from it; the
rest fall back to per-type defaults.

Version: 0.1.0
"""

import json
import math
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fundsproof.config import settings
from fundsproof.logging import LogOnce, get_logger
from fundsproof.zk.errors import ErrorCode, InputError, ZKSystemError
from fundsproof.zk.models import ProofType


logger = get_logger(__name__)


class ExecutionPhase(str, Enum):
    PROVING = "proving"
    VERIFICATION = "verification"


class MemoryRequirements(BaseModel):
    """Memory needed per phase, in MB."""

    model_config = ConfigDict(frozen=True)

    proving: int = Field(..., gt=0)
    verification: int = Field(..., gt=0)
    phase: ExecutionPhase = ExecutionPhase.PROVING

    @property
    def required_mb(self) -> int:
        """Requirement for the phase that was asked about."""
        if self.phase is ExecutionPhase.VERIFICATION:
            return self.verification
        return self.proving


class CircuitEntry(BaseModel):
    """One built circuit version."""

    type: str
    version: str = "v0.0.0"
    constraints: int | None = Field(default=None, ge=0)

    @property
    def version_key(self) -> tuple[int, ...]:
        parts = self.version.lstrip("vV").split(".")
        return tuple(int(p) if p.isdigit() else 0 for p in parts)


class RegistryFile(BaseModel):
    build_timestamp: str | None = Field(default=None, alias="buildTimestamp")
    circuits: list[CircuitEntry] = Field(default_factory=list)


# (proving, verification) in MB when no constraint count is known
DEFAULT_REQUIREMENTS: dict[ProofType, tuple[int, int]] = {
    ProofType.STANDARD: (300, 80),
    ProofType.THRESHOLD: (400, 90),
    ProofType.MAXIMUM: (400, 90),
}


def estimate_from_constraints(constraints: int) -> tuple[int, int]:
    """Rough (proving, verification) estimate in MB for a constraint count."""
    proving = max(200, math.ceil(constraints / 1000) * 50)
    verification = max(50, math.ceil(constraints / 5000) * 50)
    return proving, verification


def parse_circuit_type(circuit_type: Any) -> ProofType:
    """Resolve a circuit type name; unknown names raise UNKNOWN_CIRCUIT_TYPE."""
    try:
        return ProofType.parse(circuit_type)
    except InputError as e:
        raise InputError(
            f"Unknown circuit type: {circuit_type!r}",
            code=ErrorCode.UNKNOWN_CIRCUIT_TYPE,
            field="circuit_type",
        ) from e


class CircuitRegistry:
    """
    Looks up circuit memory requirements.

    Usage:
        registry = CircuitRegistry(Path("circuits/build/circuit-registry.json"))
        req = registry.get_memory_requirements("threshold", ExecutionPhase.PROVING)
        req.required_mb  # 400
    """

    def __init__(self, registry_path: Path | str | None = None) -> None:
        if registry_path is None:
            registry_path = settings.zk.registry_path
        self.registry_path = Path(registry_path) if registry_path else None
        self._entries: list[CircuitEntry] | None = None
        self._log_once = LogOnce(logger)

    def _load(self) -> list[CircuitEntry]:
        if self._entries is not None:
            return self._entries

        if self.registry_path is None or not self.registry_path.exists():
            self._log_once.warning(
                "registry_missing",
                "circuit_registry_not_found",
                path=str(self.registry_path) if self.registry_path else None,
            )
            self._entries = []
            return self._entries

        try:
            raw = json.loads(self.registry_path.read_text(encoding="utf-8"))
            self._entries = RegistryFile.model_validate(raw).circuits
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(
                "circuit_registry_unreadable",
                path=str(self.registry_path),
                error=type(e).__name__,
            )
            raise ZKSystemError(
                "Circuit registry could not be read",
                code=ErrorCode.RESOURCE_UNAVAILABLE,
                details={"path": str(self.registry_path)},
                recoverable=True,
            ) from e

        logger.debug("circuit_registry_loaded", circuits=len(self._entries))
        return self._entries

    def reload(self) -> None:
        """Drop the cached registry so the next lookup reads the file again."""
        self._entries = None

    def latest(self, proof_type: ProofType) -> CircuitEntry | None:
        """Newest registered version of a circuit type."""
        candidates = [e for e in self._load() if e.type.lower() == proof_type.value]
        if not candidates:
            return None
        return max(candidates, key=lambda e: e.version_key)

    def get_memory_requirements(
        self,
        proof_type: ProofType | str | int,
        phase: ExecutionPhase | str = ExecutionPhase.PROVING,
    ) -> MemoryRequirements:
        """
        Memory requirements of a circuit.

        Args:
            proof_type: Circuit type
            phase: Phase the caller is planning for; selects ``required_mb``

        Raises:
            InputError: UNKNOWN_CIRCUIT_TYPE
            ZKSystemError: RESOURCE_UNAVAILABLE if the registry file is unreadable
        """
        circuit_type = parse_circuit_type(proof_type)
        try:
            phase = ExecutionPhase(phase)
        except ValueError as e:
            raise InputError(f"Unknown execution phase: {phase!r}", field="phase") from e

        entry = self.latest(circuit_type)
        if entry is not None and entry.constraints:
            proving, verification = estimate_from_constraints(entry.constraints)
        else:
            proving, verification = DEFAULT_REQUIREMENTS[circuit_type]

        return MemoryRequirements(proving=proving, verification=verification, phase=phase)
