"""Tenant subscription database models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantcore.core.constants import MAX_EXTERNAL_REF_LENGTH
from tenantcore.core.database.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    TZDateTime,
    UUIDMixin,
    utcnow,
)
from tenantcore.modules.plans.models import SubscriptionPlan


class SubscriptionStatus(StrEnum):
    """Lifecycle states. ``CANCELLED`` is terminal."""

    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# Statuses the renewal sweep picks up once their end date has passed
SWEEPABLE_STATUSES: tuple[SubscriptionStatus, ...] = (
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIAL,
)

# Statuses that still count as the tenant's current subscription
CURRENT_STATUSES: tuple[SubscriptionStatus, ...] = (
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIAL,
    SubscriptionStatus.PAST_DUE,
)


class TenantSubscription(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """A tenant's subscription to a plan for a period.

    At most one subscription per tenant is ``ACTIVE``; the service cancels
    the previous one before activating another.

    Attributes:
        plan_id: Subscribed plan (RESTRICT)
        start_date: Period start
        end_date: Period end
        status: Current lifecycle state
        auto_renew: Whether the renewal sweep charges at period end
        stripe_customer_id: Payment provider customer reference
        stripe_subscription_id: Payment provider subscription reference
        stripe_payment_method_id: Payment method used for renewals
    """

    __tablename__ = "tenant_subscriptions"

    plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("subscription_plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[datetime] = mapped_column(
        TZDateTime,
        nullable=False,
    )
    end_date: Mapped[datetime] = mapped_column(
        TZDateTime,
        nullable=False,
        index=True,
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(
            SubscriptionStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        index=True,
    )
    auto_renew: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_REF_LENGTH),
        nullable=True,
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_REF_LENGTH),
        nullable=True,
    )
    stripe_payment_method_id: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_REF_LENGTH),
        nullable=True,
    )

    plan: Mapped[SubscriptionPlan] = relationship(
        SubscriptionPlan,
        lazy="selectin",
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        """End date has passed and the subscription was not cancelled."""
        now = now or utcnow()
        return self.end_date < now and self.status != SubscriptionStatus.CANCELLED

    def is_currently_active(self, now: datetime | None = None) -> bool:
        """Status is ACTIVE and the period has not ended."""
        now = now or utcnow()
        return self.status == SubscriptionStatus.ACTIVE and self.end_date > now

    def days_until_expiration(self, now: datetime | None = None) -> int:
        """Whole days until ``end_date``; negative once past."""
        now = now or utcnow()
        return int((self.end_date - now).total_seconds() / 86400)

    def __repr__(self) -> str:
        return (
            f"<TenantSubscription(id={self.id}, tenant_id={self.tenant_id}, "
            f"status={self.status})>"
        )
