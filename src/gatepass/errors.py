"""
Error taxonomy for the visit desk.
Each class maps to one failure kind; the HTTP layer turns them into responses.
"""

from typing import List, Optional


class GatepassError(Exception):
    """Base class for every failure surfaced by the visit desk."""
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(GatepassError):
    """Malformed or missing input; correctable by the caller."""
    kind = "validation_error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


# PUBLIC_INTERFACE
class InvalidStateTransition(GatepassError):
    """The visit is not in the state the operation starts from."""
    kind = "invalid_state_transition"

    def __init__(self, visit_id: int, current: str, expected: str):
        super().__init__(
            f"Visit {visit_id} is {current}; operation requires {expected}"
        )
        self.visit_id = visit_id
        self.current = current
        self.expected = expected


# PUBLIC_INTERFACE
class ConflictError(GatepassError):
    """Another actor changed the visit between our read and our write."""
    kind = "conflict"


# PUBLIC_INTERFACE
class NotFound(GatepassError):
    kind = "not_found"


# PUBLIC_INTERFACE
class PermissionDenied(GatepassError):
    """Authenticated, but the role lacks the capability."""
    kind = "permission_denied"


# PUBLIC_INTERFACE
class Unauthenticated(GatepassError):
    kind = "unauthenticated"


# PUBLIC_INTERFACE
class UnavailableError(GatepassError):
    """The database could not be reached or timed out."""
    kind = "unavailable"
