"""
Juni — Domain error taxonomy.

Every error carries an HTTP status and a stable machine-readable ``code`` so
the API layer can render it without leaking storage internals.
"""

from __future__ import annotations


class JuniError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(JuniError):
    """A referenced entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class AuthorizationError(JuniError):
    """The caller does not own the resource."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)


class InvalidStateError(JuniError):
    """The requested transition is not legal from the current state."""

    status_code = 409
    code = "INVALID_STATE"


class PreconditionError(JuniError):
    """A required prior step is missing."""

    status_code = 422
    code = "PRECONDITION_FAILED"


class ExternalServiceError(JuniError):
    """A payment or other third-party collaborator failed."""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, message: str, *, service: str = "external") -> None:
        super().__init__(message)
        self.service = service
