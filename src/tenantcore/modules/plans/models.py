"""Subscription plan database models."""

from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from tenantcore.core.constants import MAX_DESCRIPTION_LENGTH, MAX_PLAN_NAME_LENGTH
from tenantcore.core.database.base import Base, TimestampMixin, UUIDMixin


class SubscriptionPlan(Base, UUIDMixin, TimestampMixin):
    """A catalogue entry tenants subscribe to.

    Plans are global. Deactivating a plan hides it from new selection
    but leaves existing subscriptions on it untouched.
    """

    __tablename__ = "subscription_plans"

    name: Mapped[str] = mapped_column(
        String(MAX_PLAN_NAME_LENGTH),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )
    price_per_month: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )
    max_users: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    max_storage_gb: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    has_api_access: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    has_advanced_reporting: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SubscriptionPlan(id={self.id}, name={self.name})>"
