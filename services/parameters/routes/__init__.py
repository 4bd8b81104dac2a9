"""
Parameters Service Routes
=========================

API route handlers for the parameters service.
"""

from services.parameters.routes import capabilities, inputs, parameters


__all__ = ["capabilities", "inputs", "parameters"]
