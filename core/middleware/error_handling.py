"""
Error handling middleware with security-compliant error sanitization.
Prevents sensitive data leakage while providing useful error information.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import ApiError, error_body

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'bearer\s+[A-Za-z0-9\-_.]+', re.IGNORECASE),
]

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
}

# serialization_failure, deadlock_detected
TRANSACTION_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception) -> dict[str, Any]:
    """Type, sanitized message and traceback; only returned in debug mode."""
    return {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
        "traceback": traceback.format_exc(),
    }


def is_transaction_conflict(exc: Exception) -> bool:
    """
    True when the database aborted the transaction because a concurrent one
    won (serialization failure or deadlock).

    asyncpg surfaces these as a plain ``DBAPIError`` whose driver error
    carries ``sqlstate``; psycopg uses ``pgcode``.
    """
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in TRANSACTION_CONFLICT_SQLSTATES


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message, type}`` entries."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        # Drop the "body"/"query"/"path" prefix FastAPI adds
        if len(loc) > 1 and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append({
            "field": ".".join(loc),
            "message": sanitize_error_message(error.get("msg", "")),
            "type": error.get("type", "value_error"),
        })
    return errors


def classify_exception(
    exc: Exception,
    method: str = "unknown",
    path: str = "unknown",
    debug: bool = False,
) -> tuple[int, str, str, Optional[Any]]:
    """
    Map an exception to ``(status_code, code, message, details)`` and log it
    at the matching severity.
    """
    details = None

    if isinstance(exc, ApiError):
        status_code = exc.status_code
        code = exc.code
        message = sanitize_error_message(exc.message)
        logger.info(f"{type(exc).__name__}: {method} {path} - {message}")

    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        code = HTTP_ERROR_CODES.get(status_code, "HTTP_EXCEPTION")
        if status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = "Not found"
        else:
            message = sanitize_error_message(exc.detail)
        logger.warning(
            f"HTTP exception: {method} {path} - Status: {status_code}, Message: {message}"
        )

    elif isinstance(exc, RequestValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        code = "VALIDATION_ERROR"
        message = "Request validation failed"
        details = format_validation_errors(exc)
        logger.warning(f"Validation error: {method} {path} - Errors: {details}")

    elif is_transaction_conflict(exc):
        status_code = status.HTTP_409_CONFLICT
        code = "TRANSACTION_CONFLICT"
        message = "The request conflicted with a concurrent update, please retry"
        logger.warning(f"Transaction conflict: {method} {path} - {type(exc.orig).__name__}")

    elif isinstance(exc, IntegrityError):
        status_code = status.HTTP_409_CONFLICT
        code = "INTEGRITY_ERROR"
        message = "Database integrity constraint violated"
        if debug:
            details = get_safe_error_details(exc)
        logger.error(f"Database integrity error: {method} {path}", exc_info=not debug)

    elif isinstance(exc, OperationalError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        code = "DATABASE_ERROR"
        message = "Database service temporarily unavailable"
        logger.error(f"Database operational error: {method} {path}", exc_info=True)

    elif isinstance(exc, SQLAlchemyError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        code = "DATABASE_ERROR"
        message = "A database error occurred"
        if debug:
            details = get_safe_error_details(exc)
        logger.error(f"SQLAlchemy error: {method} {path}", exc_info=not debug)

    elif isinstance(exc, RedisError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        code = "CACHE_ERROR"
        message = "Cache service temporarily unavailable"
        logger.error(f"Redis error: {method} {path}", exc_info=True)

    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"
        if debug:
            details = get_safe_error_details(exc)
        logger.error(
            f"Unhandled exception: {method} {path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )

    return status_code, code, message, details


def build_error_response(
    exc: Exception,
    method: str,
    path: str,
    debug: bool = False,
) -> JSONResponse:
    status_code, code, message, details = classify_exception(exc, method, path, debug)
    headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, code, message, path, method, details),
        headers=headers,
    )


class ErrorHandlingMiddleware:
    """
    Outermost safety net for errors raised outside the routers
    (other middleware, dependency teardown).

    Features:
    - Sanitizes error messages to prevent sensitive data leakage
    - Returns the same error body as the FastAPI exception handlers
    - Re-raises when the response has already started
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = build_error_response(
                exc,
                scope.get("method", "unknown"),
                scope.get("path", "unknown"),
                self.debug,
            )
            await response(scope, receive, send)


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether to include exception details in 500 bodies
    """

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return build_error_response(exc, request.method, str(request.url.path), debug)

    for exc_class in (
        ApiError,
        StarletteHTTPException,
        RequestValidationError,
        IntegrityError,
        OperationalError,
        SQLAlchemyError,
        Exception,
    ):
        app.add_exception_handler(exc_class, handle)
