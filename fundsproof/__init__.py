"""
FUNDSPROOF Library
==================

Proof-of-funds parameter derivation and secure input staging.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - database: Redis client and staging storage backend
    - zk: Parameter derivation, validation, circuit inputs and staging
    - models: Shared API response models

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Fundsproof Team"

from fundsproof.config import settings
from fundsproof.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
