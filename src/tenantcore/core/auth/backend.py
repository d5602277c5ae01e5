"""Password hashing and session token handling.

This module provides:
- Password hashing with bcrypt
- JWT creation and verification for the bearer/cookie strategy
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from tenantcore.config import settings
from tenantcore.core.auth.schemas import TokenData
from tenantcore.core.constants import ACCESS_TOKEN_JTI_LENGTH, BCRYPT_ROUNDS


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


# ============================================================
# Password Utilities
# ============================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================
# JWT Token Utilities
# ============================================================


def create_access_token(
    user_id: UUID,
    tenant_id: UUID | None,
    roles: list[str],
    email: str | None = None,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a session JWT.

    The ``tenant_id`` claim is omitted entirely for users without a
    tenant; the resolver treats such principals as super-admins.

    Args:
        user_id: The user's UUID
        tenant_id: The user's home tenant, or None
        roles: Role names for the ``roles`` claim
        email: The user's email
        name: The user's display name
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT
    """
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "roles": list(roles),
        "exp": expire,
        "iat": now,
        "type": "access",
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    if tenant_id is not None:
        to_encode["tenant_id"] = str(tenant_id)
    if email:
        to_encode["email"] = email
    if name:
        to_encode["name"] = name

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a JWT.

    Returns:
        TokenData if valid, None if invalid, expired or incomplete
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    subject = payload.get("sub")
    exp = payload.get("exp")
    if not subject or exp is None:
        return None

    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        return None

    return TokenData(
        subject=subject,
        tenant_id=payload.get("tenant_id"),
        email=payload.get("email"),
        name=payload.get("name"),
        roles=[str(role) for role in roles],
        exp=datetime.fromtimestamp(exp, tz=UTC),
        type=payload.get("type", "access"),
        jti=payload.get("jti"),
    )
