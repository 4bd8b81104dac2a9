"""
Operation Context
=================

One operation id is created at the public entry point and threaded
through every call so that logs and errors can be correlated.
"""

import uuid
from dataclasses import dataclass, field


def _new_operation_id() -> str:
    return f"op-{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class OperationContext:
    """Correlation data for a single pipeline call."""

    operation_id: str = field(default_factory=_new_operation_id)
    operation: str = "derive"

    @classmethod
    def new(cls, operation: str = "derive") -> "OperationContext":
        return cls(operation=operation)

    @classmethod
    def ensure(
        cls,
        context: "OperationContext | None",
        operation: str = "derive",
    ) -> "OperationContext":
        """Return ``context`` or a fresh one when the caller passed none."""
        return context if context is not None else cls.new(operation)
