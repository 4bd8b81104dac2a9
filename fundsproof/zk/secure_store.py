"""
Secure Input Store
==================

Encrypts and stages a parameter set for later retrieval by a prover.

Security levels:
- standard: parameters are staged as derived
- enhanced: adds a random 16-byte security nonce and a timestamp
- maximum:  additionally adds a commitment binding the address bytes,
            the private amount, the address hash and the security nonce

Staged entries are keyed by a random input id, never by the proof id.
A stage that times out, is cancelled or is not confirmed by the backend
returns no id.

Version: 0.1.0
"""

import asyncio
import secrets
import uuid
from datetime import UTC, datetime, timedelta

from pydantic import SecretStr, ValidationError

from fundsproof.config import settings
from fundsproof.logging import get_logger
from fundsproof.zk.context import OperationContext
from fundsproof.zk.encryption import InputCipher, generate_password
from fundsproof.zk.errors import (
    ErrorCode,
    InputError,
    ProofParameterError,
    SecurityError,
    ZKSystemError,
)
from fundsproof.zk.hashing import Hasher, default_hasher, hash_hex
from fundsproof.zk.identifiers import now_ms
from fundsproof.zk.models import (
    ProofParameters,
    SecurityLevel,
    SecurityOptions,
    StagedInput,
    StageResult,
)
from fundsproof.zk.storage import StorageBackend, create_storage_backend
from fundsproof.zk.validator import InputValidator


logger = get_logger(__name__)

INPUT_ID_PREFIX = "zkin-"
SECURITY_NONCE_BYTES = 16
UINT256_MAX = 2**256 - 1


def new_input_id() -> str:
    """Random opaque id for a staged input."""
    return f"{INPUT_ID_PREFIX}{uuid.uuid4().hex}"


def _reveal(password: str | SecretStr) -> str:
    if isinstance(password, SecretStr):
        return password.get_secret_value()
    return password


def default_security_options() -> SecurityOptions:
    return SecurityOptions(level=settings.zk.default_security_level)


class SecureInputStore:
    """
    Stage, retrieve and clean up encrypted parameter sets.

    Usage:
        store = SecureInputStore()
        staged = await store.stage(parameters)
        params = await store.retrieve(staged.input_id, staged.session_password)
        await store.cleanup(staged.input_id)
    """

    def __init__(
        self,
        backend: StorageBackend | None = None,
        cipher: InputCipher | None = None,
        hasher: Hasher | None = None,
        ttl_seconds: int | None = None,
        timeout_seconds: float | None = None,
        key_prefix: str | None = None,
    ) -> None:
        self.backend = backend or create_storage_backend()
        self.cipher = cipher or InputCipher()
        self._hasher = hasher or default_hasher()
        self.ttl_seconds = ttl_seconds or settings.zk.staging_ttl_seconds
        self.timeout_seconds = timeout_seconds or settings.zk.staging_timeout_seconds
        self.key_prefix = key_prefix or settings.zk.storage_key_prefix

    def storage_key(self, input_id: str) -> str:
        return f"{self.key_prefix}{input_id}"

    # =========================================================================
    # Security levels
    # =========================================================================

    def commitment(self, parameters: ProofParameters, security_nonce: str) -> str:
        """keccak256(address bytes || uint256 amount || address hash || nonce)."""
        private = parameters.private_inputs
        field = "actual_balance" if private.actual_balance else "amount"
        value = private.actual_balance or private.amount or "0"
        try:
            amount = int(value)
        except ValueError as e:
            raise InputError(
                "Amount must be an integer in base units",
                code=ErrorCode.INVALID_AMOUNT_FORMAT,
                field=field,
            ) from e
        if amount < 0 or amount > UINT256_MAX:
            raise InputError(
                "Amount does not fit in 256 bits",
                code=ErrorCode.INVALID_AMOUNT_FORMAT,
                field=field,
            )

        try:
            address_hash = bytes.fromhex(parameters.public_inputs.address.removeprefix("0x"))
        except ValueError as e:
            raise InputError(
                "Address hash must be hex encoded",
                code=ErrorCode.INVALID_ADDRESS_FORMAT,
                field="public_inputs.address",
            ) from e

        data = (
            bytes(private.address_bytes)
            + amount.to_bytes(32, "big")
            + address_hash
            + bytes.fromhex(security_nonce.removeprefix("0x"))
        )
        return hash_hex(self._hasher, data)

    def apply_security_level(
        self,
        parameters: ProofParameters,
        level: SecurityLevel,
    ) -> ProofParameters:
        """Return a new parameter set carrying the level's extra private fields."""
        if level is SecurityLevel.STANDARD:
            return parameters

        security_nonce = "0x" + secrets.token_hex(SECURITY_NONCE_BYTES)
        private_update = {
            "security_nonce": security_nonce,
            "security_timestamp": now_ms(),
        }
        if level is SecurityLevel.MAXIMUM:
            private_update["commitment"] = self.commitment(parameters, security_nonce)

        # model_copy skips validation; the update values are already well-formed
        return parameters.model_copy(
            update={
                "private_inputs": parameters.private_inputs.model_copy(update=private_update),
                "metadata": parameters.metadata.model_copy(update={"security_level": level}),
            }
        )

    # =========================================================================
    # Staging
    # =========================================================================

    async def _discard(self, key: str, context: OperationContext) -> None:
        try:
            await self.backend.delete(key)
        except ZKSystemError as e:
            logger.warning(
                "staged_input_discard_failed",
                operation_id=context.operation_id,
                error_code=int(e.code),
            )

    async def stage(
        self,
        parameters: ProofParameters,
        options: SecurityOptions | None = None,
        password: str | SecretStr | None = None,
        *,
        context: OperationContext | None = None,
    ) -> StageResult:
        """
        Apply the security level, encrypt and stage a parameter set.

        Args:
            parameters: Derived parameters
            options: Security level, whether to encrypt, TTL override
            password: Encryption password; generated and returned once if omitted
            context: Operation context for correlation

        Returns:
            StageResult with the input id and the public inputs. When
            ``encrypt_inputs`` is False nothing is stored and the augmented
            parameters are returned instead.

        Raises:
            InputError: The parameter set fails validation or cannot be
                augmented for the requested level
            ZKSystemError: STAGE_TIMEOUT, STORAGE_WRITE_UNCONFIRMED or
                STORAGE_UNAVAILABLE. No input id is valid in these cases.
        """
        context = OperationContext.ensure(context, "stage")
        options = options or default_security_options()

        result = InputValidator().validate(parameters)
        if not result.valid:
            logger.warning(
                "stage_rejected_invalid_parameters",
                operation_id=context.operation_id,
                error_count=len(result.errors),
            )
            raise InputError(
                "Parameter set failed validation",
                code=ErrorCode.INPUT_VALIDATION_FAILED,
                details={"errors": result.errors},
                operation_id=context.operation_id,
            )

        try:
            augmented = self.apply_security_level(parameters, options.level)
        except ProofParameterError as e:
            e.with_operation(context.operation_id)
            raise

        if not options.encrypt_inputs:
            logger.info(
                "inputs_prepared_unencrypted",
                operation_id=context.operation_id,
                security_level=options.level.value,
            )
            return StageResult(
                public_inputs=augmented.public_inputs,
                security_level=options.level,
                parameters=augmented,
            )

        generated = password is None
        secret = generate_password() if generated else _reveal(password)
        input_id = new_input_id()
        key = self.storage_key(input_id)
        ttl = options.ttl_seconds or self.ttl_seconds

        blob = await asyncio.to_thread(
            self.cipher.encrypt,
            augmented.model_dump_json().encode("utf-8"),
            secret,
            input_id.encode("utf-8"),
        )
        created_at = datetime.now(UTC)
        envelope = StagedInput(
            input_id=input_id,
            encrypted_blob=blob,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl),
            security_level=options.level,
        )

        try:
            written = await asyncio.wait_for(
                self.backend.put(key, envelope.model_dump_json(), ttl),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            await self._discard(key, context)
            logger.error(
                "input_stage_timeout",
                operation_id=context.operation_id,
                timeout_seconds=self.timeout_seconds,
            )
            raise ZKSystemError(
                "Staging did not complete in time",
                code=ErrorCode.STAGE_TIMEOUT,
                operation_id=context.operation_id,
                recoverable=True,
            ) from e
        except asyncio.CancelledError:
            await self._discard(key, context)
            logger.warning("input_stage_cancelled", operation_id=context.operation_id)
            raise
        except ProofParameterError as e:
            e.with_operation(context.operation_id)
            logger.error("input_stage_failed", **e.to_log_dict())
            raise

        if not written:
            logger.error("input_stage_unconfirmed", operation_id=context.operation_id)
            raise ZKSystemError(
                "Staging storage did not confirm the write",
                code=ErrorCode.STORAGE_WRITE_UNCONFIRMED,
                operation_id=context.operation_id,
                recoverable=True,
            )

        logger.info(
            "input_staged",
            input_id=input_id,
            operation_id=context.operation_id,
            security_level=options.level.value,
            ttl_seconds=ttl,
        )

        return StageResult(
            input_id=input_id,
            public_inputs=augmented.public_inputs,
            session_password=SecretStr(secret) if generated else None,
            expires_at=envelope.expires_at,
            security_level=options.level,
        )

    async def retrieve(
        self,
        input_id: str,
        password: str | SecretStr,
        *,
        context: OperationContext | None = None,
    ) -> ProofParameters:
        """
        Decrypt a staged parameter set.

        Raises:
            InputError: INPUT_NOT_FOUND for an absent or expired id
            SecurityError: DECRYPTION_FAILED for a wrong password or a
                tampered entry
            ZKSystemError: STORAGE_UNAVAILABLE
        """
        context = OperationContext.ensure(context, "retrieve")
        try:
            return await self._retrieve(input_id, password)
        except ProofParameterError as e:
            e.with_operation(context.operation_id)
            if e.user_fixable:
                logger.warning("staged_input_retrieve_rejected", **e.to_log_dict())
            else:
                logger.error("staged_input_retrieve_failed", **e.to_log_dict())
            raise

    async def _retrieve(self, input_id: str, password: str | SecretStr) -> ProofParameters:
        if not input_id:
            raise InputError(
                "Missing required field: input_id",
                code=ErrorCode.MISSING_REQUIRED,
                field="input_id",
            )
        if password is None or not _reveal(password):
            raise InputError(
                "Missing required field: password",
                code=ErrorCode.MISSING_REQUIRED,
                field="password",
            )

        raw = await self.backend.get(self.storage_key(input_id))
        if raw is None:
            raise InputError(
                "Staged input not found or expired",
                code=ErrorCode.INPUT_NOT_FOUND,
                field="input_id",
            )

        try:
            envelope = StagedInput.model_validate_json(raw)
        except ValidationError as e:
            raise SecurityError(
                "Staged input envelope is corrupted",
                code=ErrorCode.DECRYPTION_FAILED,
            ) from e

        plaintext = await asyncio.to_thread(
            self.cipher.decrypt,
            envelope.encrypted_blob,
            _reveal(password),
            input_id.encode("utf-8"),
        )

        try:
            return ProofParameters.model_validate_json(plaintext)
        except ValidationError as e:
            raise SecurityError(
                "Decrypted staged input is not a parameter set",
                code=ErrorCode.DECRYPTION_FAILED,
            ) from e

    async def cleanup(
        self,
        input_id: str,
        *,
        context: OperationContext | None = None,
    ) -> bool:
        """
        Delete a staged input.

        Idempotent: an absent id returns False and is not an error.
        """
        context = OperationContext.ensure(context, "cleanup")
        try:
            removed = await self.backend.delete(self.storage_key(input_id))
        except ProofParameterError as e:
            e.with_operation(context.operation_id)
            logger.error("staged_input_cleanup_failed", **e.to_log_dict())
            raise

        logger.info(
            "staged_input_cleanup",
            input_id=input_id,
            removed=removed,
            operation_id=context.operation_id,
        )
        return removed
