"""SQLAlchemy declarative base and shared entity capabilities."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, false, func
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tenantcore.core.constants import MAX_ACTOR_LENGTH


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class TZDateTime(TypeDecorator[datetime]):
    """Timezone-aware DateTime that always hands back UTC.

    Backends without native timezone support (SQLite) return naive
    values; those are read back as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDMixin:
    """Mixin that adds a UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        index=True,
    )


class TimestampMixin:
    """Creation and modification stamps.

    Values are written by the ``before_flush`` hook in
    ``tenantcore.core.database.hooks``; entity code never sets them.
    """

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime,
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(
        String(MAX_ACTOR_LENGTH),
        nullable=True,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
    )
    updated_by: Mapped[str | None] = mapped_column(
        String(MAX_ACTOR_LENGTH),
        nullable=True,
    )


class SoftDeleteMixin:
    """Rows are hidden instead of removed.

    Flip ``is_deleted`` via :meth:`soft_delete`; the flush hook stamps
    ``deleted_at`` and ``deleted_by``.
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        index=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
    )
    deleted_by: Mapped[str | None] = mapped_column(
        String(MAX_ACTOR_LENGTH),
        nullable=True,
    )

    def soft_delete(self) -> None:
        self.is_deleted = True


class TenantMixin:
    """Required tenant ownership.

    Models carrying this mixin are tenant-scoped: the isolation filter
    restricts them to the caller's tenant.
    """

    __tenant_scoped__ = True

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
