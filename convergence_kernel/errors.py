"""
Convergence Kernel errors.

The core only raises; callers (engine, API) decide how to surface them.
Every error is terminal for the current convergence cycle. No message built
here may contain the value of a sensitive property.
"""

from typing import List, Optional


class ConvergenceError(Exception):
    """Base class for all kernel errors."""
    pass


class SchemaDefinitionError(ConvergenceError):
    """A resource kind declared an inconsistent property table."""
    pass


# --- Validation (caller's fault, fix the input and retry) ---

class ValidationError(ConvergenceError):
    """Raw resource input could not be turned into a ResourceModel."""

    reason_code = "validation_error"

    def to_dict(self) -> dict:
        return {"type": type(self).__name__, "reason": self.reason_code, "message": str(self)}


class MissingRequiredProperty(ValidationError):
    reason_code = "missing_required_property"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required property '{name}' was not provided.")


class ConstraintViolation(ValidationError):
    reason_code = "constraint_violation"

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Property '{name}' is invalid: {reason}")


class UnknownProperty(ValidationError):
    reason_code = "unknown_property"

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(f"Resource kind '{kind}' has no property '{name}'.")


class InvalidAction(ValidationError):
    reason_code = "invalid_action"

    def __init__(self, action: str, kind: str, allowed: List[str]):
        self.action = action
        self.kind = kind
        self.allowed = list(allowed)
        super().__init__(
            f"Action '{action}' is not supported by '{kind}'. "
            f"Supported actions: {', '.join(self.allowed)}."
        )


class UnknownResourceKind(ValidationError):
    reason_code = "unknown_resource_kind"

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"No resource kind registered as '{kind}'.")


# --- Cycle failures ---

class ProbeError(ConvergenceError):
    """Current system state could not be determined. Nothing was mutated."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message)


class CommandFailed(ConvergenceError):
    """A command exited non-zero. Earlier steps of the plan stay applied."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)
