"""
Parameters Service - Main Application
=====================================

FastAPI application for proof parameter derivation and input staging.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fundsproof.config import StorageBackendKind, settings
from fundsproof.database.redis import RedisClient
from fundsproof.logging import get_logger, setup_logging
from fundsproof.models.common import ErrorResponse, HealthResponse
from fundsproof.zk.context import OperationContext
from fundsproof.zk.errors import (
    InputError,
    ProofError,
    ProofParameterError,
    SecurityError,
    ZKSystemError,
)
from services.parameters.routes import capabilities, inputs, parameters


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="parameters",
)

logger = get_logger(__name__)

SERVICE_NAME = "parameters"
SERVICE_VERSION = "0.1.0"


def _uses_redis() -> bool:
    return settings.zk.storage_backend is StorageBackendKind.REDIS


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "parameters_service_starting",
        environment=settings.environment.value,
        port=settings.ports.parameters,
        storage_backend=settings.zk.storage_backend.value,
    )

    if _uses_redis():
        RedisClient.get_client()
        logger.info("redis_connected")

    yield

    logger.info("parameters_service_shutting_down")
    if _uses_redis():
        await RedisClient.close()


app = FastAPI(
    title="Fundsproof Parameters Service",
    description="Proof-of-funds circuit parameter derivation and secure input staging",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Reports the staging backend; Redis is only checked when it is in use.
    """
    components: dict[str, dict[str, Any]] = {}

    if _uses_redis():
        components["redis"] = await RedisClient.health_check()
    else:
        components["storage"] = {"status": "healthy", "backend": "memory"}

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Fundsproof Parameters Service",
        "version": SERVICE_VERSION,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    parameters.router,
    prefix="/api/v1/parameters",
    tags=["Parameters"],
)

app.include_router(
    inputs.router,
    prefix="/api/v1/inputs",
    tags=["Staged Inputs"],
)

app.include_router(
    capabilities.router,
    prefix="/api/v1/capabilities",
    tags=["Capabilities"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def status_for(exc: ProofParameterError) -> int:
    """HTTP status for a pipeline error."""
    if isinstance(exc, InputError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ProofError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, SecurityError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, ZKSystemError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(ProofParameterError)
async def proof_parameter_exception_handler(
    request: Request,
    exc: ProofParameterError,
) -> JSONResponse:
    """Map the pipeline error taxonomy onto HTTP responses."""
    if exc.operation_id is None:
        exc.with_operation(OperationContext.new("api_request").operation_id)
    status_code = status_for(exc)
    log = logger.warning if exc.user_fixable else logger.error
    log("request_rejected", status_code=status_code, path=request.url.path, **exc.to_log_dict())

    body = ErrorResponse(
        error=exc.user_message(),
        error_code=exc.code.name,
        error_category=exc.category.value,
        field=exc.field if exc.user_fixable else None,
        operation_id=exc.operation_id,
        details=exc.details if exc.user_fixable and exc.details else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    body = ErrorResponse(error="Internal server error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.parameters.main:app",
        host="0.0.0.0",
        port=settings.ports.parameters,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
