"""
Database Module
===============

Async storage clients.

Clients:
- Redis (redis.asyncio), also used as the staging storage backend

Usage:
    from fundsproof.database import RedisClient, RedisStorageBackend

    backend = RedisStorageBackend()
    await backend.put("zk-input:zkin-...", blob, ttl_seconds=900)
"""

from fundsproof.database.redis import (
    RedisClient,
    RedisStorageBackend,
)


__all__ = [
    "RedisClient",
    "RedisStorageBackend",
]
