"""
Domain error types.

Services raise these at the point of detection; the error handlers in
``core.middleware.error_handling`` turn them into ``{status, code, message}``
JSON bodies.
"""

from typing import Any, Optional

from fastapi import status


class ApiError(Exception):
    """Base class for errors that carry an HTTP status and a client-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "API_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotFoundError(ApiError):
    """Referenced entity is absent or soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ForbiddenError(ApiError):
    """Caller lacks ownership or membership."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class InvalidStateError(ApiError):
    """Request is well-formed but not allowed in the current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_STATE"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class AuthenticationRequiredError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_REQUIRED"


def error_body(
    status_code: int,
    code: str,
    message: str,
    path: Optional[str] = None,
    method: Optional[str] = None,
    details: Any = None,
) -> dict[str, Any]:
    """Build the JSON error body shared by every error response."""
    body: dict[str, Any] = {
        "status": status_code,
        "code": code,
        "message": message,
    }
    if path is not None:
        body["path"] = path
    if method is not None:
        body["method"] = method
    if details is not None:
        body["details"] = details
    return body
