"""
Staged Input Routes
===================

API endpoints for encrypted staging of proof parameters.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, SecretStr

from fundsproof.logging import get_logger
from fundsproof.zk import (
    OperationContext,
    ProofParameters,
    PublicInputs,
    SecureInputStore,
    SecurityLevel,
    SecurityOptions,
)
from fundsproof.zk.secure_store import default_security_options
from services.parameters.dependencies import get_secure_store


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class StageRequest(BaseModel):
    """Request to stage a parameter set."""

    parameters: ProofParameters
    security_level: SecurityLevel | None = None
    encrypt_inputs: bool = True
    ttl_seconds: int | None = Field(None, gt=0)
    password: SecretStr | None = Field(
        None, description="Encryption password; generated and returned once if omitted"
    )

    def security_options(self) -> SecurityOptions:
        level = self.security_level or default_security_options().level
        return SecurityOptions(
            level=level,
            encrypt_inputs=self.encrypt_inputs,
            ttl_seconds=self.ttl_seconds,
        )


class StageResponse(BaseModel):
    """
    Outcome of staging.

    ``session_password`` is present only when the service generated it.
    """

    input_id: str | None = None
    public_inputs: PublicInputs
    session_password: str | None = None
    expires_at: datetime | None = None
    security_level: SecurityLevel
    parameters: ProofParameters | None = None


class RetrieveRequest(BaseModel):
    password: SecretStr


class CleanupResponse(BaseModel):
    input_id: str
    removed: bool


# ============================================================================
# Endpoints
# ============================================================================


@router.post("", response_model=StageResponse, status_code=status.HTTP_201_CREATED)
async def stage_inputs(
    request: StageRequest,
    store: SecureInputStore = Depends(get_secure_store),
) -> StageResponse:
    """Apply the security level, encrypt and stage a parameter set."""
    context = OperationContext.new("api_stage")
    result = await store.stage(
        request.parameters,
        request.security_options(),
        request.password,
        context=context,
    )

    return StageResponse(
        input_id=result.input_id,
        public_inputs=result.public_inputs,
        session_password=(
            result.session_password.get_secret_value() if result.session_password else None
        ),
        expires_at=result.expires_at,
        security_level=result.security_level,
        parameters=result.parameters,
    )


@router.post("/{input_id}/retrieve", response_model=ProofParameters)
async def retrieve_inputs(
    input_id: str,
    request: RetrieveRequest,
    store: SecureInputStore = Depends(get_secure_store),
) -> ProofParameters:
    """Decrypt a staged parameter set."""
    return await store.retrieve(
        input_id,
        request.password,
        context=OperationContext.new("api_retrieve"),
    )


@router.delete("/{input_id}", response_model=CleanupResponse)
async def cleanup_inputs(
    input_id: str,
    store: SecureInputStore = Depends(get_secure_store),
) -> CleanupResponse:
    """Delete a staged input. Deleting an unknown id is not an error."""
    removed = await store.cleanup(input_id, context=OperationContext.new("api_cleanup"))
    return CleanupResponse(input_id=input_id, removed=removed)
