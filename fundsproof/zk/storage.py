"""
Staging Storage Backends
========================

Key/value backends for encrypted staged inputs.

A backend stores opaque strings with a TTL. ``put`` is set-if-absent and
returns False when the key already exists, so two sessions can never
overwrite each other's staged input.

Version: 0.1.0
"""

import time
from typing import Protocol

from fundsproof.config import StorageBackendKind, settings


class StorageBackend(Protocol):
    """Key/value collaborator used by SecureInputStore."""

    async def put(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store ``value`` unless ``key`` exists. Returns whether it was written."""
        ...

    async def get(self, key: str) -> str | None:
        """Value for ``key``, or None when absent or expired."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns whether anything was removed."""
        ...


class MemoryStorageBackend:
    """
    In-process backend.

    Suitable for a single worker and for tests. Entries expire lazily on
    access; ``purge_expired`` sweeps the rest.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


def create_storage_backend(kind: StorageBackendKind | None = None) -> StorageBackend:
    """Backend selected by ``ZK_STORAGE_BACKEND``."""
    kind = kind or settings.zk.storage_backend
    if kind is StorageBackendKind.REDIS:
        from fundsproof.database.redis import RedisStorageBackend

        return RedisStorageBackend()
    return MemoryStorageBackend()
