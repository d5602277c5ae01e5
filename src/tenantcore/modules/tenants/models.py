"""Tenant database models."""

from datetime import datetime

from sqlalchemy import Boolean, Integer, String, true
from sqlalchemy.orm import Mapped, mapped_column

from tenantcore.core.constants import (
    API_KEY_PREFIX_MAX_LENGTH,
    DEFAULT_API_RATE_LIMIT_PER_HOUR,
    MAX_BILLING_ADDRESS_LENGTH,
    MAX_DOMAIN_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_TENANT_NAME_LENGTH,
    SHA256_HEX_LENGTH,
)
from tenantcore.core.database.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    TZDateTime,
    UUIDMixin,
)


class Tenant(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """An isolated customer organization.

    Tenants are the unit of data partitioning. The tenant row itself is
    filtered only by soft-delete state; it has no parent tenant.

    Attributes:
        name: Display name
        domain: Unique lowercase slug
        is_active: Deactivated tenants cannot authenticate with API keys
        billing_email: Billing contact
        billing_address: Optional postal address
        api_key_hash: SHA-256 hex of the current API key (never the key)
        api_key_prefix: Key class prefix (``tc_live_`` or ``tc_test_``)
        api_key_created_at: When the current key was minted
        api_key_last_used_at: Last successful API key authentication
        api_key_expires_at: Optional expiry for the current key
        is_api_key_revoked: Revoked keys are rejected even if the hash matches
        api_rate_limit_per_hour: Per-hour request ceiling for API clients
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(MAX_TENANT_NAME_LENGTH),
        nullable=False,
    )
    domain: Mapped[str] = mapped_column(
        String(MAX_DOMAIN_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )
    billing_email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
    )
    billing_address: Mapped[str | None] = mapped_column(
        String(MAX_BILLING_ADDRESS_LENGTH),
        nullable=True,
    )

    # API key security state
    api_key_hash: Mapped[str | None] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=True,
        unique=True,
        index=True,
    )
    api_key_prefix: Mapped[str | None] = mapped_column(
        String(API_KEY_PREFIX_MAX_LENGTH),
        nullable=True,
    )
    api_key_created_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
    )
    api_key_last_used_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
    )
    api_key_expires_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
    )
    is_api_key_revoked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    api_rate_limit_per_hour: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_API_RATE_LIMIT_PER_HOUR,
        server_default=str(DEFAULT_API_RATE_LIMIT_PER_HOUR),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, domain={self.domain})>"
