"""
Capability Routes
=================

API endpoint deciding between client-side and server-side proving.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fundsproof.logging import get_logger
from fundsproof.zk import (
    CircuitRegistry,
    ClientCapabilityGate,
    ClientSideOptions,
    DeviceCapabilityReport,
    ExecutionPhase,
    ExecutionTarget,
    OperationContext,
    StaticCapabilities,
)
from fundsproof.zk.errors import ProofParameterError, ZKSystemError
from fundsproof.zk.registry import parse_circuit_type
from services.parameters.dependencies import get_circuit_registry


logger = get_logger(__name__)
router = APIRouter()


class ClientSideRequest(BaseModel):
    """Capabilities reported by a client device."""

    circuit_type: str | int = Field(..., description="standard, threshold or maximum")
    device: DeviceCapabilityReport
    prefer_server_side: bool = False
    phase: ExecutionPhase = ExecutionPhase.PROVING


class ClientSideResponse(BaseModel):
    circuit_type: str
    can_run_client_side: bool
    target: ExecutionTarget
    # None when the circuit registry could not be read
    required_memory_mb: int | None = None


@router.post("/client-side", response_model=ClientSideResponse)
async def client_side_decision(
    request: ClientSideRequest,
    registry: CircuitRegistry = Depends(get_circuit_registry),
) -> ClientSideResponse:
    """
    Whether the reporting device should generate the proof itself.

    An unreadable registry is not an error here: the device is sent to
    the server and the memory requirement is left empty.
    """
    context = OperationContext.new("api_client_side")
    gate = ClientCapabilityGate(StaticCapabilities(request.device), registry)
    options = ClientSideOptions(
        prefer_server_side=request.prefer_server_side,
        phase=request.phase,
    )

    try:
        circuit_type = parse_circuit_type(request.circuit_type)
        target = gate.choose_execution_target(circuit_type, options)

        required_mb = None
        try:
            required_mb = registry.get_memory_requirements(circuit_type, request.phase).required_mb
        except ZKSystemError as e:
            if not e.recoverable:
                raise
            logger.warning(
                "memory_requirements_unavailable",
                operation_id=context.operation_id,
                error_code=int(e.code),
            )
    except ProofParameterError as e:
        e.with_operation(context.operation_id)
        raise

    return ClientSideResponse(
        circuit_type=circuit_type.value,
        can_run_client_side=target is ExecutionTarget.CLIENT,
        target=target,
        required_memory_mb=required_mb,
    )
