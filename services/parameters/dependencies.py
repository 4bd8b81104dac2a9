"""
Service Dependencies
====================

Shared pipeline components injected into route handlers.
"""

from functools import lru_cache

from fundsproof.zk import CircuitInputAdapter, CircuitRegistry, InputValidator, SecureInputStore


@lru_cache
def get_secure_store() -> SecureInputStore:
    """Process-wide store; the backend is chosen by ZK_STORAGE_BACKEND."""
    return SecureInputStore()


@lru_cache
def get_circuit_registry() -> CircuitRegistry:
    return CircuitRegistry()


def get_validator() -> InputValidator:
    return InputValidator()


def get_adapter() -> CircuitInputAdapter:
    return CircuitInputAdapter()
