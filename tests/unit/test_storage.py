"""
Unit Tests for Staging Storage Backends
=======================================

Version: 0.1.0
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from fundsproof.config import StorageBackendKind
from fundsproof.database.redis import RedisStorageBackend
from fundsproof.zk.errors import ErrorCode, ZKSystemError
from fundsproof.zk.storage import MemoryStorageBackend, create_storage_backend


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryStorageBackend:
    """Tests for the in-process backend."""

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        backend = MemoryStorageBackend()

        assert await backend.put("k", "v", 60)
        assert await backend.get("k") == "v"
        assert await backend.delete("k")
        assert await backend.get("k") is None

    @pytest.mark.asyncio
    async def test_put_never_overwrites(self):
        backend = MemoryStorageBackend()

        assert await backend.put("k", "first", 60)
        assert not await backend.put("k", "second", 60)
        assert await backend.get("k") == "first"

    @pytest.mark.asyncio
    async def test_delete_absent_key(self):
        assert not await MemoryStorageBackend().delete("missing")

    @pytest.mark.asyncio
    async def test_entries_expire(self):
        clock = FakeClock()
        backend = MemoryStorageBackend(clock=clock)
        await backend.put("k", "v", 10)

        clock.now += 9
        assert await backend.get("k") == "v"

        clock.now += 1
        assert await backend.get("k") is None

    @pytest.mark.asyncio
    async def test_expired_key_can_be_reused(self):
        clock = FakeClock()
        backend = MemoryStorageBackend(clock=clock)
        await backend.put("k", "old", 10)
        clock.now += 11

        assert await backend.put("k", "new", 10)
        assert await backend.get("k") == "new"

    @pytest.mark.asyncio
    async def test_purge_expired(self):
        clock = FakeClock()
        backend = MemoryStorageBackend(clock=clock)
        await backend.put("short", "v", 5)
        await backend.put("long", "v", 50)
        clock.now += 10

        assert backend.purge_expired() == 1
        assert len(backend) == 1


class TestCreateStorageBackend:
    def test_memory(self):
        assert isinstance(create_storage_backend(StorageBackendKind.MEMORY), MemoryStorageBackend)

    def test_redis(self):
        backend = create_storage_backend(StorageBackendKind.REDIS)

        assert isinstance(backend, RedisStorageBackend)


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.set = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.delete = AsyncMock(return_value=1)
    return client


class TestRedisStorageBackend:
    """Tests for the Redis backend with a mocked client."""

    @pytest.mark.asyncio
    async def test_put_uses_set_nx_with_ttl(self, redis_client):
        backend = RedisStorageBackend(client=redis_client)

        assert await backend.put("zk-input:zkin-1", "blob", 900)

        redis_client.set.assert_awaited_once_with("zk-input:zkin-1", "blob", nx=True, ex=900)

    @pytest.mark.asyncio
    async def test_put_on_existing_key(self, redis_client):
        redis_client.set.return_value = None
        backend = RedisStorageBackend(client=redis_client)

        assert not await backend.put("k", "v", 60)

    @pytest.mark.asyncio
    async def test_get_and_delete(self, redis_client):
        redis_client.get.return_value = "blob"
        backend = RedisStorageBackend(client=redis_client)

        assert await backend.get("k") == "blob"
        assert await backend.delete("k")

        redis_client.delete.return_value = 0
        assert not await backend.delete("k")

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self, redis_client):
        redis_client.get.side_effect = [RedisConnectionError("reset"), "blob"]
        backend = RedisStorageBackend(client=redis_client)

        assert await backend.get("k") == "blob"
        assert redis_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, redis_client):
        redis_client.get.side_effect = RedisConnectionError("down")
        backend = RedisStorageBackend(client=redis_client, max_retries=3)

        with pytest.raises(ZKSystemError) as exc_info:
            await backend.get("k")

        error = exc_info.value
        assert error.code is ErrorCode.STORAGE_UNAVAILABLE
        assert error.recoverable
        assert error.details == {"backend": "redis", "operation": "get"}
        assert isinstance(error.__cause__, RedisConnectionError)
        assert redis_client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_non_transient_error_fails_immediately(self, redis_client):
        redis_client.set.side_effect = ResponseError("WRONGTYPE")
        backend = RedisStorageBackend(client=redis_client)

        with pytest.raises(ZKSystemError) as exc_info:
            await backend.put("k", "v", 60)

        assert isinstance(exc_info.value.__cause__, ResponseError)
        assert redis_client.set.await_count == 1
