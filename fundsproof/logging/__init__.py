"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from fundsproof.logging import get_logger, setup_logging

    # Setup at application start
    setup_logging()

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("parameters_derived", proof_type="standard", operation_id="op-1")
    logger.error("staging_failed", error_code=8002, operation_id="op-1")
"""

from fundsproof.logging.logger import (
    LogOnce,
    bind_context,
    censor_secrets,
    clear_context,
    get_logger,
    setup_logging,
    unbind_context,
)


__all__ = [
    "LogOnce",
    "bind_context",
    "censor_secrets",
    "clear_context",
    "get_logger",
    "setup_logging",
    "unbind_context",
]
