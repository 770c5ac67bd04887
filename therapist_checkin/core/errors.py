"""
Scheduling error taxonomy.

Every failure leaving the core is one of these kinds. Callers map the
``kind`` to their own transport; the message is safe to show to users.
"""


class SchedulingError(Exception):
    """Base class for all core failures."""

    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(SchedulingError):
    """Malformed or missing required input."""

    kind = "validation_error"


class NotFoundError(SchedulingError):
    """Referenced entity does not exist."""

    kind = "not_found"


class ConflictError(SchedulingError):
    """Duplicate therapist name or unavailable time slot."""

    kind = "conflict"


class DependencyError(SchedulingError):
    """Storage or notification transport failure.

    The underlying exception is kept as ``__cause__`` (raise ... from e)
    so it can be logged without being shown to the caller.
    """

    kind = "dependency_error"
