"""Authentication schemas for tokens and login."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TokenData(BaseModel):
    """Claims extracted from a session JWT.

    Attributes:
        subject: The user's id (``sub``)
        tenant_id: Raw tenant claim; None for super-admins
        email: The user's email
        roles: Role names
        exp: Token expiration time
        type: Token type
        jti: Unique token id
    """

    subject: str
    tenant_id: str | None = None
    email: str | None = None
    name: str | None = None
    roles: list[str] = Field(default_factory=list)
    exp: datetime
    type: str = "access"
    jti: str | None = None


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Issued session token. The same JWT is also set as a cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class PrincipalResponse(BaseModel):
    """The caller as seen by the authorization layer."""

    subject: str
    authentication_type: str
    name: str | None = None
    email: str | None = None
    roles: list[str]
    tenant_id: UUID | None = None
    tenant_domain: str | None = None
    is_super_admin: bool
