"""
Client-Side Capability Gate
===========================

Decides whether a proof can be generated on the caller's device or has to
fall back to server-side generation.

The decision combines:
- available memory against the circuit's requirement (unknown memory is
  not a blocker)
- hardware-backed crypto support
- parallel execution support, required by the threshold and maximum
  circuits
- an explicit ``prefer_server_side`` override

Version: 0.1.0
"""

from enum import Enum
from typing import Protocol

import psutil
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, Field

from fundsproof.logging import get_logger
from fundsproof.zk.errors import ErrorCode, ProofParameterError, ZKSystemError
from fundsproof.zk.models import ProofType
from fundsproof.zk.registry import CircuitRegistry, ExecutionPhase, parse_circuit_type


logger = get_logger(__name__)

BYTES_PER_MB = 1024 * 1024


class DeviceCapabilityReport(BaseModel):
    """What a device reports about itself."""

    available_memory_mb: int | None = Field(default=None, ge=0)
    supports_hardware_crypto: bool = False
    supports_parallel_execution: bool = False
    cpu_count: int | None = None


class DeviceCapabilities(Protocol):
    def detect_capabilities(self) -> DeviceCapabilityReport: ...


class StaticCapabilities:
    """A fixed report, e.g. one sent by a browser client."""

    def __init__(self, report: DeviceCapabilityReport) -> None:
        self.report = report

    def detect_capabilities(self) -> DeviceCapabilityReport:
        return self.report


class HostCapabilities:
    """Probes the current host with psutil."""

    def _crypto_available(self) -> bool:
        key = AESGCM.generate_key(bit_length=128)
        nonce = b"\x00" * 12
        sealed = AESGCM(key).encrypt(nonce, b"probe", None)
        return AESGCM(key).decrypt(nonce, sealed, None) == b"probe"

    def detect_capabilities(self) -> DeviceCapabilityReport:
        memory = psutil.virtual_memory()
        cpu_count = psutil.cpu_count(logical=True) or 1
        return DeviceCapabilityReport(
            available_memory_mb=memory.available // BYTES_PER_MB,
            supports_hardware_crypto=self._crypto_available(),
            supports_parallel_execution=cpu_count > 1,
            cpu_count=cpu_count,
        )


class ClientSideOptions(BaseModel):
    prefer_server_side: bool = False
    phase: ExecutionPhase = ExecutionPhase.PROVING


class ExecutionTarget(str, Enum):
    CLIENT = "client"
    SERVER = "server"


class ClientCapabilityGate:
    """
    Client-side vs server-side policy.

    Usage:
        gate = ClientCapabilityGate(StaticCapabilities(report))
        if gate.can_run_client_side("threshold"):
            ...
    """

    def __init__(
        self,
        capabilities: DeviceCapabilities | None = None,
        registry: CircuitRegistry | None = None,
    ) -> None:
        self.capabilities = capabilities or HostCapabilities()
        self.registry = registry or CircuitRegistry()

    def _detect(self) -> DeviceCapabilityReport:
        try:
            return self.capabilities.detect_capabilities()
        except ProofParameterError:
            raise
        except Exception as e:
            raise ZKSystemError(
                "Device capabilities could not be detected",
                code=ErrorCode.RESOURCE_UNAVAILABLE,
                details={"source": "device_capabilities"},
                recoverable=True,
            ) from e

    def can_run_client_side(
        self,
        circuit_type: ProofType | str | int,
        options: ClientSideOptions | None = None,
    ) -> bool:
        """
        Whether ``circuit_type`` can be proven on the device.

        Raises:
            InputError: UNKNOWN_CIRCUIT_TYPE
            ZKSystemError: RESOURCE_UNAVAILABLE (recoverable) when capability
                or requirement data cannot be obtained
        """
        options = options or ClientSideOptions()
        proof_type = parse_circuit_type(circuit_type)

        if options.prefer_server_side:
            return False

        requirements = self.registry.get_memory_requirements(proof_type, options.phase)
        report = self._detect()

        reasons = []
        if (
            report.available_memory_mb is not None
            and report.available_memory_mb < requirements.required_mb
        ):
            reasons.append("insufficient_memory")
        if not report.supports_hardware_crypto:
            reasons.append("no_hardware_crypto")
        if proof_type.requires_actual_balance and not report.supports_parallel_execution:
            reasons.append("no_parallel_execution")

        if reasons:
            logger.info(
                "client_side_proving_unavailable",
                circuit_type=proof_type.value,
                reasons=reasons,
                required_mb=requirements.required_mb,
                available_mb=report.available_memory_mb,
            )
            return False
        return True

    def choose_execution_target(
        self,
        circuit_type: ProofType | str | int,
        options: ClientSideOptions | None = None,
    ) -> ExecutionTarget:
        """Pick client or server; recoverable system errors fall back to server."""
        try:
            client = self.can_run_client_side(circuit_type, options)
        except ZKSystemError as e:
            if not e.recoverable:
                raise
            logger.warning("execution_target_fallback", **e.to_log_dict())
            return ExecutionTarget.SERVER
        return ExecutionTarget.CLIENT if client else ExecutionTarget.SERVER
