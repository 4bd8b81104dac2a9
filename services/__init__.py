"""
FUNDSPROOF Services
===================

HTTP services for the proof parameter pipeline.

Services:
- parameters: derivation, validation, circuit inputs, staging and the
  client-side capability check
"""

__all__ = [
    "parameters",
]
