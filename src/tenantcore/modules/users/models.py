"""User and tenant membership database models."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantcore.core.auth.principal import Role
from tenantcore.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_PERSON_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from tenantcore.core.database.base import (
    Base,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
    UUIDMixin,
)
from tenantcore.modules.tenants.models import Tenant


class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A person who signs in with email and password.

    ``tenant_id`` is the user's home tenant. A user without one is a
    platform super-admin. The reference is RESTRICT: a tenant cannot be
    removed while users still call it home.

    Attributes:
        tenant_id: Home tenant, or None for super-admins
        email: Login email, unique among non-deleted users
        password_hash: Bcrypt hash
        first_name: Given name
        last_name: Family name
        phone_number: Optional contact number
        role: Primary role name
        is_active: Whether the user can sign in
    """

    __tablename__ = "users"
    __tenant_scoped__ = True

    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(MAX_PERSON_NAME_LENGTH),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(MAX_PERSON_NAME_LENGTH),
        nullable=False,
    )
    phone_number: Mapped[str | None] = mapped_column(
        String(MAX_PHONE_LENGTH),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        default=Role.TENANT_USER.value,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_super_admin(self) -> bool:
        return self.tenant_id is None

    @property
    def roles(self) -> list[str]:
        if self.is_super_admin:
            return [Role.SUPER_ADMIN.value]
        return [self.role]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tenant_id={self.tenant_id})>"


class UserTenant(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Membership of a user in a tenant.

    A user may belong to several tenants. At most one membership per user
    should be marked default; the service keeps that true.

    Attributes:
        user_id: The member
        tenant_id: The tenant joined
        role: Role within this tenant
        is_active: Whether the membership is in effect
        is_default: The tenant selected when the user signs in
    """

    __tablename__ = "user_tenants"
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_user_tenants_user_tenant"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        default=Role.TENANT_USER.value,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    tenant: Mapped[Tenant] = relationship(
        Tenant,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<UserTenant(user_id={self.user_id}, tenant_id={self.tenant_id}, "
            f"role={self.role})>"
        )
