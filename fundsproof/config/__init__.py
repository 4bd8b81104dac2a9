"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from fundsproof.config import settings

    print(settings.environment)
    print(settings.zk.default_decimals)
"""

from fundsproof.config.settings import (
    Environment,
    LogLevel,
    SecurityLevel,
    Settings,
    StorageBackendKind,
    ZKSettings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "ZKSettings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "SecurityLevel",
    "StorageBackendKind",
]
