"""
Security utilities.

Provides password hashing, JWT issuance/verification and structured audit
logging with PII masking for domain mutations.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set, TypedDict

import bcrypt
import jwt

from core.config import settings

logger = logging.getLogger("security.audit")


# ==================== Passwords ==================== #

def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash or a password bcrypt refuses (over 72 bytes)
        return False


# ==================== JWT ==================== #

class JWTPayload(TypedDict, total=False):
    user_id: int
    type: str
    iat: int
    exp: int
    jti: str


def _create_token(
    user_id: int,
    token_type: str,
    expires_delta: timedelta,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(
        payload,
        secret_key or settings.jwt_secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Create a short-lived access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _create_token(user_id, "access", expires_delta, secret_key)


def create_refresh_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Create a long-lived refresh token."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    return _create_token(user_id, "refresh", expires_delta, secret_key)


def create_token_pair(user_id: int) -> Dict[str, Any]:
    """
    Create an access/refresh token pair.

    Returns:
        Dictionary with access_token, refresh_token, token_type, expires_in
    """
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
        "token_type": "Bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
    }


def verify_jwt_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    expected_type: Optional[str] = None,
) -> JWTPayload:
    """
    Decode and validate a JWT.

    Raises:
        jwt.ExpiredSignatureError: Token has expired
        jwt.InvalidTokenError: Signature, claims or token type are invalid
    """
    payload = jwt.decode(
        token,
        secret_key or settings.jwt_secret_key,
        algorithms=[algorithm or settings.jwt_algorithm],
        options={"require": ["exp", "iat", "user_id", "type"]},
    )
    if expected_type and payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token")
    return payload


# ==================== Audit ==================== #

class AuditAction(str, Enum):
    """Audit log action types."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPLY = "APPLY"
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    REGISTER = "REGISTER"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    USER = "USER"
    OPENING = "OPENING"
    APPLICATION = "APPLICATION"
    TEAM = "TEAM"


# PII fields that should be masked in audit details
PII_FIELDS: Set[str] = {
    "email", "name", "bio", "phone", "password", "cover_letter", "text",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    String values keep their first character and length, e.g. ``j***[8]``.
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in PII_FIELDS:
                if isinstance(value, str) and value:
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    if isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]
    return data


async def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[int] = None,
    user_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
) -> None:
    """Emit one structured audit record on the ``security.audit`` logger."""
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "user_id": user_id,
        "contains_pii": contains_pii,
        "details": mask_pii(details) if details and contains_pii else details,
    }
    logger.info(json.dumps(event, default=str))
