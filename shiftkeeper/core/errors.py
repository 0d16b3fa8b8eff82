"""
Domain errors raised by the services.

The HTTP layer maps them to status codes in ``shiftkeeper.main``; the response
body has the same ``{"detail": ...}`` shape as FastAPI's HTTPException.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(DomainError):
    """Malformed input detected before any mutation (date ranges, deltas, ...)."""
    status_code = 400


class StateConflict(DomainError):
    """A transition precondition does not hold for the current stored state."""
    status_code = 400


class NotFound(DomainError):
    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
