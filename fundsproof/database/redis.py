"""
Redis Client
============

Async Redis client and the Redis-backed staging storage.

Version: 0.1.0
"""

import time
from typing import Any

import redis.asyncio as aioredis
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fundsproof.config import settings
from fundsproof.logging import get_logger
from fundsproof.zk.errors import ErrorCode, ZKSystemError


logger = get_logger(__name__)


class RedisClient:
    """
    Async Redis client wrapper.

    Holds one shared connection pool per process.
    """

    _client: Redis | None = None  # type: ignore[type-arg]

    @classmethod
    def get_client(cls) -> Redis:  # type: ignore[type-arg]
        """Get or create the async client."""
        if cls._client is None:
            cls._client = aioredis.from_url(
                settings.redis.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=settings.redis.max_connections,
            )
            logger.info(
                "redis_client_created",
                host=settings.redis.host,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the client and release all connections."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None
            logger.info("redis_client_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Check Redis health.

        Returns:
            dict with status and server info
        """
        try:
            start = time.perf_counter()
            client = cls.get_client()
            pong = await client.ping()
            latency_ms = (time.perf_counter() - start) * 1000

            info = await client.info("server")

            return {
                "status": "healthy" if pong else "unhealthy",
                "latency_ms": round(latency_ms, 2),
                "redis_version": info.get("redis_version", "unknown"),
            }
        except RedisError as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }


# Errors worth another attempt; anything else fails immediately
TRANSIENT_ERRORS = (RedisConnectionError, RedisTimeoutError)


class RedisStorageBackend:
    """
    Staging storage on Redis.

    ``put`` uses ``SET NX EX`` so an existing key is never overwritten and
    the entry expires on its own. Transient connection errors are retried;
    the final failure surfaces as ZKSystemError(STORAGE_UNAVAILABLE).
    """

    def __init__(
        self,
        client: Redis | None = None,  # type: ignore[type-arg]
        max_retries: int | None = None,
    ) -> None:
        self._client = client
        self.max_retries = max_retries or settings.zk.storage_max_retries

    @property
    def client(self) -> Redis:  # type: ignore[type-arg]
        if self._client is None:
            self._client = RedisClient.get_client()
        return self._client

    async def _call(self, operation: str, func, *args: Any, **kwargs: Any) -> Any:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            before_sleep=lambda retry_state: logger.warning(
                "redis_storage_retry",
                operation=operation,
                attempt=retry_state.attempt_number,
            ),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await func(*args, **kwargs)
        except (RetryError, RedisError) as e:
            cause = e.last_attempt.exception() if isinstance(e, RetryError) else e
            logger.error(
                "redis_storage_unavailable",
                operation=operation,
                error=type(cause).__name__,
            )
            raise ZKSystemError(
                f"Staging storage unavailable during {operation}",
                code=ErrorCode.STORAGE_UNAVAILABLE,
                details={"backend": "redis", "operation": operation},
                recoverable=True,
            ) from cause

    async def put(self, key: str, value: str, ttl_seconds: int) -> bool:
        written = await self._call(
            "put", self.client.set, key, value, nx=True, ex=ttl_seconds
        )
        return bool(written)

    async def get(self, key: str) -> str | None:
        return await self._call("get", self.client.get, key)

    async def delete(self, key: str) -> bool:
        removed = await self._call("delete", self.client.delete, key)
        return removed > 0
