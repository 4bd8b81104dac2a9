"""
Unit Tests for the Secure Input Store
=====================================

Version: 0.1.0
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_hash.auto import keccak
from pydantic import SecretStr

from fundsproof.zk.derivation import derive_circuit_parameters
from fundsproof.zk.errors import (
    ErrorCode,
    InputError,
    SecurityError,
    ZKSystemError,
)
from fundsproof.zk.models import SecurityLevel, SecurityOptions
from fundsproof.zk.secure_store import INPUT_ID_PREFIX
from fundsproof.zk.storage import MemoryStorageBackend


ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.fixture
def threshold_params():
    return derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})


class SlowBackend(MemoryStorageBackend):
    async def put(self, key, value, ttl_seconds):
        await asyncio.sleep(10)
        return await super().put(key, value, ttl_seconds)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestSecurityLevels:
    """Tests for level-specific private fields."""

    def test_standard_leaves_parameters_unchanged(self, secure_store, threshold_params):
        result = secure_store.apply_security_level(threshold_params, SecurityLevel.STANDARD)

        assert result == threshold_params

    def test_enhanced_adds_nonce_and_timestamp(self, secure_store, threshold_params):
        result = secure_store.apply_security_level(threshold_params, SecurityLevel.ENHANCED)

        private = result.private_inputs
        assert private.security_nonce.startswith("0x")
        assert len(private.security_nonce) == 2 + 32
        assert private.security_timestamp > 0
        assert private.commitment is None
        assert result.metadata.security_level is SecurityLevel.ENHANCED
        # the original is untouched
        assert threshold_params.private_inputs.security_nonce is None

    def test_security_nonce_is_fresh(self, secure_store, threshold_params):
        first = secure_store.apply_security_level(threshold_params, SecurityLevel.ENHANCED)
        second = secure_store.apply_security_level(threshold_params, SecurityLevel.ENHANCED)

        assert first.private_inputs.security_nonce != second.private_inputs.security_nonce

    def test_maximum_adds_commitment(self, secure_store, threshold_params):
        result = secure_store.apply_security_level(threshold_params, SecurityLevel.MAXIMUM)
        private = result.private_inputs

        expected = keccak(
            bytes(private.address_bytes)
            + (150).to_bytes(32, "big")
            + bytes.fromhex(result.public_inputs.address[2:])
            + bytes.fromhex(private.security_nonce[2:])
        )
        assert private.commitment == "0x" + expected.hex()

    def test_commitment_rejects_oversized_amount(self, secure_store):
        params = derive_circuit_parameters(ADDRESS, str(2**256), "standard")

        with pytest.raises(InputError):
            secure_store.apply_security_level(params, SecurityLevel.MAXIMUM)

    def test_commitment_rejects_non_hex_address_hash(self, secure_store, threshold_params):
        params = threshold_params.model_copy(
            update={
                "public_inputs": threshold_params.public_inputs.model_copy(
                    update={"address": "not-a-hash"}
                )
            }
        )

        with pytest.raises(InputError) as exc_info:
            secure_store.apply_security_level(params, SecurityLevel.MAXIMUM)

        assert exc_info.value.code is ErrorCode.INVALID_ADDRESS_FORMAT
        assert exc_info.value.field == "public_inputs.address"
        assert isinstance(exc_info.value.__cause__, ValueError)


class TestStageAndRetrieve:
    """Tests for the encrypted staging round trip."""

    @pytest.mark.asyncio
    async def test_generated_password_round_trip(self, secure_store, memory_backend):
        params = derive_circuit_parameters(ADDRESS, "100", "threshold", {"actual_balance": "150"})

        staged = await secure_store.stage(params)

        assert staged.input_id.startswith(INPUT_ID_PREFIX)
        assert isinstance(staged.session_password, SecretStr)
        assert staged.public_inputs == params.public_inputs
        assert staged.security_level is SecurityLevel.ENHANCED
        assert len(memory_backend) == 1

        restored = await secure_store.retrieve(staged.input_id, staged.session_password)

        assert restored.public_inputs == params.public_inputs
        assert restored.private_inputs.actual_balance == "150"
        assert restored.private_inputs.security_nonce is not None

    @pytest.mark.asyncio
    async def test_standard_level_round_trip_is_exact(self, secure_store, threshold_params):
        options = SecurityOptions(level=SecurityLevel.STANDARD)

        staged = await secure_store.stage(threshold_params, options, password="pw")
        restored = await secure_store.retrieve(staged.input_id, "pw")

        assert restored == threshold_params

    @pytest.mark.asyncio
    async def test_caller_password_is_not_echoed(self, secure_store, threshold_params):
        staged = await secure_store.stage(threshold_params, password="pw")

        assert staged.session_password is None

    @pytest.mark.asyncio
    async def test_stored_entry_hides_private_inputs(
        self, secure_store, memory_backend, threshold_params
    ):
        staged = await secure_store.stage(threshold_params, password="pw")

        raw = await memory_backend.get(secure_store.storage_key(staged.input_id))
        envelope = json.loads(raw)
        assert envelope["input_id"] == staged.input_id
        assert "actual_balance" not in raw

    @pytest.mark.asyncio
    async def test_wrong_password(self, secure_store, threshold_params):
        staged = await secure_store.stage(threshold_params, password="pw")

        with pytest.raises(SecurityError) as exc_info:
            await secure_store.retrieve(staged.input_id, "wrong")

        assert exc_info.value.code is ErrorCode.DECRYPTION_FAILED
        assert exc_info.value.operation_id is not None

    @pytest.mark.asyncio
    async def test_blob_is_bound_to_its_input_id(
        self, secure_store, memory_backend, threshold_params
    ):
        first = await secure_store.stage(threshold_params, password="pw")
        second = await secure_store.stage(threshold_params, password="pw")

        # copy the first entry under the second id
        raw = await memory_backend.get(secure_store.storage_key(first.input_id))
        await memory_backend.delete(secure_store.storage_key(second.input_id))
        await memory_backend.put(secure_store.storage_key(second.input_id), raw, 60)

        with pytest.raises(SecurityError):
            await secure_store.retrieve(second.input_id, "pw")

    @pytest.mark.asyncio
    async def test_input_ids_are_distinct(self, secure_store, threshold_params):
        ids = {(await secure_store.stage(threshold_params, password="pw")).input_id for _ in range(5)}

        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_unencrypted_returns_parameters(self, secure_store, memory_backend, threshold_params):
        options = SecurityOptions(level=SecurityLevel.MAXIMUM, encrypt_inputs=False)

        staged = await secure_store.stage(threshold_params, options)

        assert staged.input_id is None
        assert staged.session_password is None
        assert staged.parameters.private_inputs.commitment is not None
        assert len(memory_backend) == 0


class TestRetrieveErrors:
    @pytest.mark.asyncio
    async def test_unknown_id(self, secure_store):
        with pytest.raises(InputError) as exc_info:
            await secure_store.retrieve("zkin-missing", "pw")

        assert exc_info.value.code is ErrorCode.INPUT_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("input_id,password", [("", "pw"), ("zkin-1", ""), ("zkin-1", None)])
    async def test_missing_arguments(self, secure_store, input_id, password):
        with pytest.raises(InputError) as exc_info:
            await secure_store.retrieve(input_id, password)

        assert exc_info.value.code is ErrorCode.MISSING_REQUIRED

    @pytest.mark.asyncio
    async def test_expired_entry(self, make_store, threshold_params):
        clock = FakeClock()
        store = make_store(MemoryStorageBackend(clock=clock))
        staged = await store.stage(
            threshold_params, SecurityOptions(ttl_seconds=30), password="pw"
        )

        clock.now += 31

        with pytest.raises(InputError) as exc_info:
            await store.retrieve(staged.input_id, "pw")

        assert exc_info.value.code is ErrorCode.INPUT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_corrupted_envelope(self, secure_store, memory_backend):
        await memory_backend.put(secure_store.storage_key("zkin-bad"), "{}", 60)

        with pytest.raises(SecurityError):
            await secure_store.retrieve("zkin-bad", "pw")


class TestStageValidation:
    """Tests for parameter sets rejected before staging."""

    @pytest.mark.asyncio
    async def test_balance_below_threshold_is_rejected(
        self, secure_store, memory_backend, threshold_params
    ):
        params = threshold_params.model_copy(
            update={
                "private_inputs": threshold_params.private_inputs.model_copy(
                    update={"actual_balance": "5"}
                )
            }
        )

        with pytest.raises(InputError) as exc_info:
            await secure_store.stage(params, password="pw")

        error = exc_info.value
        assert error.code is ErrorCode.INPUT_VALIDATION_FAILED
        assert error.details == {
            "errors": ["private_inputs.actual_balance is below public_inputs.threshold"]
        }
        assert error.operation_id is not None
        assert len(memory_backend) == 0

    @pytest.mark.asyncio
    async def test_unencrypted_stage_is_also_validated(self, secure_store, threshold_params):
        params = threshold_params.model_copy(
            update={
                "private_inputs": threshold_params.private_inputs.model_copy(
                    update={"nonce": ""}
                )
            }
        )

        with pytest.raises(InputError) as exc_info:
            await secure_store.stage(
                params, SecurityOptions(level=SecurityLevel.STANDARD, encrypt_inputs=False)
            )

        assert exc_info.value.details["errors"] == ["Missing private_inputs.nonce"]

    @pytest.mark.asyncio
    async def test_non_integer_balance_at_maximum(self, secure_store, threshold_params):
        params = threshold_params.model_copy(
            update={
                "private_inputs": threshold_params.private_inputs.model_copy(
                    update={"actual_balance": "1.5"}
                )
            }
        )

        with pytest.raises(InputError) as exc_info:
            await secure_store.stage(params, SecurityOptions(level=SecurityLevel.MAXIMUM))

        assert exc_info.value.code is ErrorCode.INPUT_VALIDATION_FAILED


class TestStageFailures:
    """Tests for failed writes."""

    @pytest.mark.asyncio
    async def test_timeout_leaves_nothing_behind(self, make_store, threshold_params):
        backend = SlowBackend()
        store = make_store(backend, timeout_seconds=0.05)

        with pytest.raises(ZKSystemError) as exc_info:
            await store.stage(threshold_params, password="pw")

        error = exc_info.value
        assert error.code is ErrorCode.STAGE_TIMEOUT
        assert error.recoverable
        assert error.operation_id is not None
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_unconfirmed_write(self, make_store, threshold_params):
        backend = MagicMock()
        backend.put = AsyncMock(return_value=False)
        store = make_store(backend)

        with pytest.raises(ZKSystemError) as exc_info:
            await store.stage(threshold_params, password="pw")

        assert exc_info.value.code is ErrorCode.STORAGE_WRITE_UNCONFIRMED

    @pytest.mark.asyncio
    async def test_storage_error_carries_operation_id(self, make_store, threshold_params):
        backend = MagicMock()
        backend.put = AsyncMock(
            side_effect=ZKSystemError("down", code=ErrorCode.STORAGE_UNAVAILABLE)
        )
        store = make_store(backend)

        with pytest.raises(ZKSystemError) as exc_info:
            await store.stage(threshold_params, password="pw")

        assert exc_info.value.code is ErrorCode.STORAGE_UNAVAILABLE
        assert exc_info.value.operation_id is not None

    @pytest.mark.asyncio
    async def test_cancellation_discards_entry(self, make_store, threshold_params):
        backend = SlowBackend()
        backend.delete = AsyncMock(return_value=False)
        store = make_store(backend, timeout_seconds=30)

        task = asyncio.create_task(store.stage(threshold_params, password="pw"))
        await asyncio.sleep(0.2)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        backend.delete.assert_awaited_once()


class TestCleanup:
    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, secure_store, threshold_params):
        staged = await secure_store.stage(threshold_params, password="pw")

        assert await secure_store.cleanup(staged.input_id)
        assert not await secure_store.cleanup(staged.input_id)

        with pytest.raises(InputError):
            await secure_store.retrieve(staged.input_id, "pw")

    @pytest.mark.asyncio
    async def test_cleanup_unknown_id(self, secure_store):
        assert not await secure_store.cleanup("zkin-never-staged")
