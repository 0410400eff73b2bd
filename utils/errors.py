"""Error taxonomy shared by services and mapped to HTTP responses by the app factory."""
from __future__ import annotations

from typing import List, Optional


class GrievanceServiceError(Exception):
    """Base class for failures a caller can act on."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors else [message]


class InputValidationError(GrievanceServiceError):
    """Raised when input is malformed or outside a fixed taxonomy."""

    status_code = 400


class NotFoundError(GrievanceServiceError):
    """Raised when a referenced user or grievance does not exist."""

    status_code = 404


class AuthorizationError(GrievanceServiceError):
    """Raised when the actor lacks the role or ownership an operation needs."""

    status_code = 403


class AuthenticationError(AuthorizationError):
    """Raised when credentials are wrong or a bearer token is unusable."""

    status_code = 401


class StateConflictError(GrievanceServiceError):
    """Raised when the resource's lifecycle state forbids an otherwise permitted operation."""

    status_code = 409
