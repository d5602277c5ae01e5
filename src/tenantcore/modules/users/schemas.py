"""Pydantic schemas for user operations."""

import re
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tenantcore.core.constants import (
    MAX_PASSWORD_LENGTH,
    MAX_PERSON_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MIN_PASSWORD_LENGTH,
)


# ============================================================
# Password Validation
# ============================================================

# Password complexity rules: (regex pattern, human-readable name)
PASSWORD_COMPLEXITY_RULES: list[tuple[str, str]] = [
    (r"[A-Z]", "uppercase letter"),
    (r"[a-z]", "lowercase letter"),
    (r"\d", "digit"),
]


def validate_password_complexity(password: str) -> str:
    """Require an uppercase letter, a lowercase letter and a digit.

    Raises:
        ValueError: If any rule is not met
    """
    missing = [
        name
        for pattern, name in PASSWORD_COMPLEXITY_RULES
        if not re.search(pattern, password)
    ]

    if missing:
        if len(missing) == 1:
            raise ValueError(f"Password must contain at least one {missing[0]}")
        raise ValueError(f"Password must contain at least one: {', '.join(missing)}")

    return password


# ============================================================
# User Schemas
# ============================================================


class UserCreate(BaseModel):
    """Tenant admin adds a user to their tenant."""

    email: EmailStr
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    first_name: str = Field(..., min_length=1, max_length=MAX_PERSON_NAME_LENGTH)
    last_name: str = Field(..., min_length=1, max_length=MAX_PERSON_NAME_LENGTH)
    phone_number: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    role: Literal["TenantAdmin", "TenantUser"] = "TenantUser"
    tenant_id: UUID | None = Field(
        None,
        description="Target tenant; only super-admins may set it",
    )


class UserResponse(BaseModel):
    """User as returned by the API."""

    id: UUID
    tenant_id: UUID | None
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone_number: str | None = None
    role: str
    is_active: bool
    is_super_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    """A user's membership in a tenant."""

    tenant_id: UUID
    tenant_name: str
    tenant_domain: str
    role: str
    is_active: bool
    is_default: bool
