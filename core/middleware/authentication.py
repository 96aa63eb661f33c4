"""
Authentication middleware for verifying bearer tokens.

This middleware:
1. Extracts the JWT from the Authorization header
2. Validates signature, expiry and token type
3. Stores an ``AuthContext`` in the request scope for the route dependencies
4. Rejects bad tokens on protected routes, ignores them on public routes and
   treats them as anonymous on optional-auth routes

Whether an authenticated user is *required* is decided per route by the
``require_auth`` dependency, not here.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse

from core.errors import error_body
from core.security import verify_jwt_token

logger = logging.getLogger(__name__)

# Public endpoints (relative to the API prefix) that never look at the token
PUBLIC_ENDPOINTS = [
    "/auth/login",
    "/auth/register",
    "/auth/refresh",
]

# Endpoints served outside the API prefix
PUBLIC_PREFIXES = ["/health", "/ready", "/version.json", "/docs", "/redoc", "/openapi"]

# GET routes readable anonymously; a bad token downgrades to anonymous
OPTIONAL_AUTH_PATTERNS = [
    re.compile(r"^/openings(/\d+)?/?$"),
    re.compile(r"^/users/\d+/?$"),
]


class AuthenticationError(Exception):
    """Base exception for authentication errors."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""
    pass


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is invalid."""
    pass


@dataclass(frozen=True)
class AuthContext:
    """Identity derived from a verified access token."""

    user_id: int
    token_id: Optional[str]
    expires_at: datetime


class AuthenticationMiddleware:
    """
    Pure-ASGI authentication middleware.

    Features:
    - JWT access-token validation (refresh tokens are refused as bearer)
    - Request context injection via ``scope["auth"]``
    - Public and optional-auth route handling
    """

    def __init__(
        self,
        app: Callable,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        api_prefix: str = "",
    ):
        self.app = app
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.api_prefix = api_prefix.rstrip("/")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        path = request.url.path
        scope["auth"] = None

        if self._is_public_endpoint(path):
            await self.app(scope, receive, send)
            return

        token = self._extract_token(request)
        if not token:
            await self.app(scope, receive, send)
            return

        try:
            scope["auth"] = self._authenticate(token)
        except AuthenticationError as e:
            if request.method == "GET" and self._is_optional_auth_endpoint(path):
                logger.debug(f"Ignoring bad token on optional-auth route {path}: {e}")
                await self.app(scope, receive, send)
                return

            if isinstance(e, TokenExpiredError):
                code = "TOKEN_EXPIRED"
                message = "Authentication token has expired. Please refresh your token."
            else:
                logger.warning(f"Invalid token: {e}")
                code = "TOKEN_INVALID"
                message = "Invalid authentication token."
            await self._send_error_response(scope, receive, send, code, message)
            return

        await self.app(scope, receive, send)

    def _authenticate(self, token: str) -> AuthContext:
        """
        Raises:
            TokenExpiredError: Token has expired
            TokenInvalidError: Token is malformed, badly signed or not an access token
        """
        try:
            payload = verify_jwt_token(
                token, self.jwt_secret, self.jwt_algorithm, expected_type="access"
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise TokenInvalidError("Token missing user_id")

        return AuthContext(
            user_id=user_id,
            token_id=payload.get("jti"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def _relative_path(self, path: str) -> Optional[str]:
        if not self.api_prefix:
            return path
        if path == self.api_prefix or path.startswith(self.api_prefix + "/"):
            return path[len(self.api_prefix):] or "/"
        return None

    def _is_public_endpoint(self, path: str) -> bool:
        if any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES):
            return True
        relative = self._relative_path(path)
        return relative is not None and relative.rstrip("/") in PUBLIC_ENDPOINTS

    def _is_optional_auth_endpoint(self, path: str) -> bool:
        relative = self._relative_path(path)
        if relative is None:
            return False
        return any(pattern.match(relative) for pattern in OPTIONAL_AUTH_PATTERNS)

    def _extract_token(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:].strip() or None
        return None

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        code: str,
        message: str,
    ) -> None:
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_body(
                status.HTTP_401_UNAUTHORIZED,
                code,
                message,
                scope.get("path"),
                scope.get("method"),
            ),
            headers={"WWW-Authenticate": "Bearer"},
        )
        await response(scope, receive, send)


def get_auth_context(request: Request) -> Optional[AuthContext]:
    """Return the request's ``AuthContext`` or None for anonymous callers."""
    return request.scope.get("auth")
