"""Pydantic schemas for tenant operations."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from tenantcore.core.constants import (
    DOMAIN_PATTERN,
    MAX_BILLING_ADDRESS_LENGTH,
    MAX_DOMAIN_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_PERSON_NAME_LENGTH,
    MAX_TENANT_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from tenantcore.modules.subscriptions.schemas import SubscriptionResponse
from tenantcore.modules.users.schemas import validate_password_complexity


def normalize_domain(value: str) -> str:
    """Lowercase and check a domain slug.

    Raises:
        ValueError: If the slug has characters other than a-z, 0-9 and hyphen
    """
    value = value.strip().lower()
    if not re.fullmatch(DOMAIN_PATTERN, value):
        raise ValueError(
            "Domain may only contain lowercase letters, digits and hyphens"
        )
    return value


class TenantCreate(BaseModel):
    """Provision a tenant with its first admin and a trial."""

    name: str = Field(..., min_length=1, max_length=MAX_TENANT_NAME_LENGTH)
    domain: str = Field(..., min_length=1, max_length=MAX_DOMAIN_LENGTH)
    billing_email: EmailStr
    billing_address: str | None = Field(None, max_length=MAX_BILLING_ADDRESS_LENGTH)
    admin_email: EmailStr
    admin_first_name: str = Field(..., min_length=1, max_length=MAX_PERSON_NAME_LENGTH)
    admin_last_name: str = Field(..., min_length=1, max_length=MAX_PERSON_NAME_LENGTH)
    admin_password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    plan_id: UUID | None = Field(
        None,
        description="Plan for the initial trial; omit to provision without one",
    )

    @field_validator("domain")
    @classmethod
    def check_domain(cls, v: str) -> str:
        return normalize_domain(v)


class TenantRegister(TenantCreate):
    """Self-service signup. Requires a plan and a confirmed, complex password."""

    plan_id: UUID  # type: ignore[assignment]
    confirm_password: str

    @field_validator("admin_password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_complexity(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "TenantRegister":
        if self.admin_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class TenantUpdate(BaseModel):
    """Partial update of tenant details."""

    name: str | None = Field(None, min_length=1, max_length=MAX_TENANT_NAME_LENGTH)
    domain: str | None = Field(None, min_length=1, max_length=MAX_DOMAIN_LENGTH)
    billing_email: EmailStr | None = None
    billing_address: str | None = Field(None, max_length=MAX_BILLING_ADDRESS_LENGTH)
    api_rate_limit_per_hour: int | None = Field(None, ge=1)

    @field_validator("domain")
    @classmethod
    def check_domain(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return normalize_domain(v)


class TenantPublicResponse(BaseModel):
    """What anyone may learn about a tenant from its domain."""

    id: UUID
    name: str
    domain: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TenantResponse(TenantPublicResponse):
    """Full tenant view. Never includes key material beyond the prefix."""

    billing_email: str
    billing_address: str | None = None
    api_key_prefix: str | None = None
    api_key_created_at: datetime | None = None
    api_key_last_used_at: datetime | None = None
    api_key_expires_at: datetime | None = None
    is_api_key_revoked: bool
    api_rate_limit_per_hour: int
    created_at: datetime
    updated_at: datetime | None = None
    user_count: int = 0
    current_subscription: SubscriptionResponse | None = None


class TenantCreatedResponse(BaseModel):
    """Provisioning result. ``api_key`` is shown here and nowhere else."""

    tenant: TenantResponse
    admin_user_id: UUID
    api_key: str


class ApiKeyRegenerate(BaseModel):
    expires_at: datetime | None = Field(
        None,
        description="Optional expiry for the new key",
    )


class ApiKeyResponse(BaseModel):
    """A freshly minted key. Store it now; it cannot be shown again."""

    tenant_id: UUID
    api_key: str
    api_key_prefix: str
    api_key_created_at: datetime
    api_key_expires_at: datetime | None = None
