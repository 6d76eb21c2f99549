"""
Service error taxonomy.

Every service raises one of these; the API layer maps ``status_code`` onto
the HTTP response and ``message`` onto the failure envelope.
"""


class ServiceError(Exception):
    """Base exception for service errors."""

    status_code = 500

    def __init__(self, message: str = "Server error", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing, malformed, or out-of-range input."""
    status_code = 400


class AuthenticationError(ServiceError):
    """Missing, invalid, or expired credential."""
    status_code = 401


class AuthorizationError(ServiceError):
    """Role or ownership mismatch."""
    status_code = 403


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """Duplicate action or entity already in a terminal state."""
    status_code = 400
