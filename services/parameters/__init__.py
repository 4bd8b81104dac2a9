"""
Parameters Service
==================

HTTP surface of the proof parameter pipeline.

This service provides:
- Circuit parameter derivation for standard, threshold and maximum proofs
- Parameter set validation and circuit input preparation
- Encrypted staging of private inputs
- Client-side proving capability decisions

Version: 0.1.0
"""

__version__ = "0.1.0"
