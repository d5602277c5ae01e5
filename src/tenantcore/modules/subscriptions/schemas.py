"""Pydantic schemas for subscription operations."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from tenantcore.core.constants import MAX_EXTERNAL_REF_LENGTH
from tenantcore.core.database.base import utcnow
from tenantcore.modules.subscriptions.models import SubscriptionStatus, TenantSubscription


class UpgradeSubscriptionRequest(BaseModel):
    """Switch the caller's tenant to another plan."""

    plan_id: UUID
    payment_method_id: str | None = Field(None, max_length=MAX_EXTERNAL_REF_LENGTH)
    tenant_id: UUID | None = Field(
        None,
        description="Target tenant; required for super-admins",
    )


class SubscriptionResponse(BaseModel):
    """Subscription with plan details and derived state."""

    id: UUID
    tenant_id: UUID
    plan_id: UUID
    plan_name: str
    plan_price_per_month: Decimal
    max_users: int
    max_storage_gb: int
    has_api_access: bool
    has_advanced_reporting: bool
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    auto_renew: bool
    days_until_expiration: int
    is_active: bool
    is_expired: bool
    created_at: datetime

    @classmethod
    def from_subscription(
        cls, subscription: TenantSubscription, now: datetime | None = None
    ) -> "SubscriptionResponse":
        now = now or utcnow()
        plan = subscription.plan
        return cls(
            id=subscription.id,
            tenant_id=subscription.tenant_id,
            plan_id=subscription.plan_id,
            plan_name=plan.name,
            plan_price_per_month=plan.price_per_month,
            max_users=plan.max_users,
            max_storage_gb=plan.max_storage_gb,
            has_api_access=plan.has_api_access,
            has_advanced_reporting=plan.has_advanced_reporting,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            status=subscription.status,
            auto_renew=subscription.auto_renew,
            days_until_expiration=subscription.days_until_expiration(now),
            is_active=subscription.is_currently_active(now),
            is_expired=subscription.is_expired(now),
            created_at=subscription.created_at,
        )
