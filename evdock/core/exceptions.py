"""
Workflow error taxonomy.

Every failed operation in the deposit workflow is raised as one of these
typed errors. The HTTP layer maps them to status codes (see evdock.main);
direct callers catch them by class.

    NotFound            -> no record with that id
    PreconditionFailed  -> record is in the wrong state for the transition
    InvalidArgument     -> bad input value (e.g. unsupported installment term)
    InvalidOperation    -> transition does not apply to this deposit type
    InvalidTransition   -> pre-order task step is not the adjacent status
    Forbidden           -> actor role may not perform the transition
"""
from typing import Any, Dict, Iterable, Optional


class WorkflowError(Exception):
    """Base exception for deposit workflow errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFound(WorkflowError):
    """Raised when a deposit, task or plan does not exist."""
    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(
            f"{entity} '{record_id}' not found",
            {"entity": entity, "id": record_id},
        )


class PreconditionFailed(WorkflowError):
    """Raised when the freshly loaded record is not in the expected state."""
    def __init__(self, message: str, field: str, expected: Any, actual: Any):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            message,
            {"field": field, "expected": expected, "actual": actual},
        )


class InvalidArgument(WorkflowError):
    """Raised for input values outside the accepted domain."""
    def __init__(self, message: str, argument: str, value: Any = None):
        self.argument = argument
        self.value = value
        super().__init__(message, {"argument": argument, "value": value})


class InvalidOperation(WorkflowError):
    """Raised when a transition is not applicable to the deposit type."""
    def __init__(self, message: str, deposit_type: Any, required_type: Any):
        self.deposit_type = deposit_type
        self.required_type = required_type
        super().__init__(
            message,
            {"deposit_type": deposit_type, "required_type": required_type},
        )


class InvalidTransition(WorkflowError):
    """Raised when a pre-order task is advanced out of sequence."""
    def __init__(self, current: Any, requested: Any, allowed: Iterable[Any] = ()):
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        if self.allowed:
            message = (
                f"Cannot move task from '{current}' to '{requested}'. "
                f"Allowed transitions: {', '.join(self.allowed)}"
            )
        else:
            message = f"Task in '{current}' status is terminal and cannot be advanced"
        super().__init__(
            message,
            {"current": current, "requested": requested, "allowed": self.allowed},
        )


class Forbidden(WorkflowError):
    """Raised when the actor's role is not authorized for the operation."""
    def __init__(self, operation: str, required_roles: Iterable[Any], actual_role: Any):
        self.operation = operation
        self.required_roles = list(required_roles)
        self.actual_role = actual_role
        super().__init__(
            f"Role '{actual_role}' may not {operation}. "
            f"Required: {', '.join(self.required_roles)}",
            {
                "operation": operation,
                "required_roles": self.required_roles,
                "actual_role": actual_role,
            },
        )


class RecordStoreError(WorkflowError):
    """Raised when a record store backend call fails."""
    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message, {"key": key})
