"""
Parameter Derivation Routes
===========================

API endpoints for deriving, validating and preparing circuit parameters.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fundsproof.config import settings
from fundsproof.logging import get_logger
from fundsproof.zk import (
    CircuitInputAdapter,
    InputValidator,
    OperationContext,
    ProofParameters,
    ProofType,
    ValidationResult,
    aderive_circuit_parameters,
    generate_proof_id,
    normalize_amount,
)
from fundsproof.zk.address import AddressCodec
from fundsproof.zk.errors import ProofParameterError
from services.parameters.dependencies import get_adapter, get_validator


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class DeriveRequest(BaseModel):
    """Request to derive circuit parameters."""

    wallet_address: str = Field(..., description="20-byte wallet address as hex")
    amount: str | int = Field(..., description="Amount, threshold or maximum")
    proof_type: str | int = Field(..., description="standard, threshold or maximum")
    actual_balance: str | int | None = Field(None, description="Required for threshold/maximum")
    signature: str | None = Field(None, description="65-byte ownership signature as hex")
    nonce: str | None = None
    decimals: int | None = Field(None, ge=0, le=18)
    timestamp: int | None = Field(None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "wallet_address": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
                    "amount": "100",
                    "proof_type": "threshold",
                    "actual_balance": "150",
                }
            ]
        }
    }

    def options(self) -> dict[str, Any]:
        return self.model_dump(
            include={"actual_balance", "signature", "nonce", "decimals", "timestamp"},
            exclude_none=True,
        )


class CircuitInputsResponse(BaseModel):
    """Circuit-ready inputs for the prover."""

    proof_type: ProofType
    circuit_inputs: dict[str, Any]
    public_signals: list[str]


class ProofIdRequest(BaseModel):
    """Request for a proof tracking id."""

    wallet_address: str
    proof_type: str | int
    amount: str | int
    decimals: int | None = Field(None, ge=0, le=18)


class ProofIdResponse(BaseModel):
    proof_id: str


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/derive", response_model=ProofParameters)
async def derive_parameters(request: DeriveRequest) -> ProofParameters:
    """
    Derive the public/private input split for a proof request.

    The CPU-bound hashing and signature recovery run in a worker thread.
    """
    context = OperationContext.new("api_derive")
    logger.info(
        "deriving_parameters",
        proof_type=str(request.proof_type),
        operation_id=context.operation_id,
    )

    return await aderive_circuit_parameters(
        request.wallet_address,
        request.amount,
        request.proof_type,
        request.options(),
        context=context,
    )


@router.post("/validate", response_model=ValidationResult)
async def validate_parameters(
    parameters: dict[str, Any],
    validator: InputValidator = Depends(get_validator),
) -> ValidationResult:
    """
    Validate a parameter set and report every violation.

    Accepts snake_case or camelCase keys.
    """
    context = OperationContext.new("api_validate")
    result = validator.validate(parameters)
    if not result.valid:
        logger.info(
            "parameters_invalid",
            error_count=len(result.errors),
            operation_id=context.operation_id,
        )
    return result


@router.post("/circuit-inputs", response_model=CircuitInputsResponse)
async def prepare_circuit_inputs(
    parameters: ProofParameters,
    adapter: CircuitInputAdapter = Depends(get_adapter),
) -> CircuitInputsResponse:
    """Map a parameter set onto the prover's field set."""
    context = OperationContext.new("api_circuit_inputs")
    try:
        return CircuitInputsResponse(
            proof_type=parameters.proof_type,
            circuit_inputs=adapter.prepare(parameters),
            public_signals=adapter.split_public_signals(parameters),
        )
    except ProofParameterError as e:
        e.with_operation(context.operation_id)
        raise


@router.post("/proof-id", response_model=ProofIdResponse)
async def proof_id(request: ProofIdRequest) -> ProofIdResponse:
    """Tracking id for an (address, type, amount) triple."""
    context = OperationContext.new("api_proof_id")
    codec = AddressCodec()
    try:
        proof_type = ProofType.parse(request.proof_type)
        address = codec.derive_parameters(request.wallet_address)
        decimals = settings.zk.default_decimals if request.decimals is None else request.decimals
        amount = normalize_amount(request.amount, decimals, field=proof_type.public_amount_field)
    except ProofParameterError as e:
        e.with_operation(context.operation_id)
        raise

    return ProofIdResponse(
        proof_id=generate_proof_id(address.checksummed, proof_type, amount),
    )
