"""Subscription lifecycle service.

States and the transitions this service performs:

- create_trial: new TRIAL for ``trial_days``, auto-renew off
- create_active / upgrade: cancel any ACTIVE subscription of the tenant,
  then create a new ACTIVE one starting now, auto-renew on
- cancel: CANCELLED and auto-renew off (terminal)
- update_status: direct transition, used by the renewal sweep
- renew: restart the period from now for one month and force ACTIVE

Activation paths lock the tenant row first, so concurrent upgrades for
the same tenant are serialized and cannot leave two ACTIVE rows.
"""

from datetime import timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tenantcore.config import settings
from tenantcore.core.database.base import utcnow
from tenantcore.core.errors import NotFoundError, ValidationError
from tenantcore.core.utils.dates import add_months
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.plans.repos import PlanRepo
from tenantcore.modules.subscriptions.models import SubscriptionStatus, TenantSubscription
from tenantcore.modules.subscriptions.repos import SubscriptionRepo
from tenantcore.modules.tenants.repos import TenantRepo


logger = structlog.get_logger()


class SubscriptionService:
    """Service for subscription state transitions and queries."""

    def __init__(
        self,
        repo: SubscriptionRepo,
        plans: PlanRepo,
        tenants: TenantRepo,
    ) -> None:
        self.repo = repo
        self.plans = plans
        self.tenants = tenants

    # ============================================================
    # Queries
    # ============================================================

    async def get_by_id(self, subscription_id: UUID) -> TenantSubscription:
        """Raises NotFoundError if absent or outside the caller's tenant."""
        subscription = await self.repo.get_by_id(subscription_id)
        if subscription is None:
            raise NotFoundError(
                "Subscription not found",
                resource="subscription",
                resource_id=str(subscription_id),
            )
        return subscription

    async def get_current(self, tenant_id: UUID) -> TenantSubscription:
        """The tenant's ACTIVE, TRIAL or PAST_DUE subscription.

        Raises:
            NotFoundError: If the tenant has none
        """
        subscription = await self.repo.get_current_for_tenant(tenant_id)
        if subscription is None:
            raise NotFoundError(
                "No current subscription",
                resource="subscription",
                resource_id=str(tenant_id),
            )
        return subscription

    async def list_for_tenant(self, tenant_id: UUID) -> list[TenantSubscription]:
        return await self.repo.list_for_tenant(tenant_id)

    async def list_expired(self) -> list[TenantSubscription]:
        return await self.repo.list_expired()

    # ============================================================
    # Transitions
    # ============================================================

    async def _get_selectable_plan(self, plan_id: UUID) -> SubscriptionPlan:
        plan = await self.plans.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(
                "Subscription plan not found",
                resource="plan",
                resource_id=str(plan_id),
            )
        if not plan.is_active:
            raise ValidationError(
                "Subscription plan is not available",
                errors=[{"field": "plan_id", "message": "Plan is inactive"}],
            )
        return plan

    async def _lock_tenant(self, tenant_id: UUID) -> None:
        tenant = await self.tenants.get_by_id_for_update(tenant_id)
        if tenant is None:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )

    async def create_trial(self, tenant_id: UUID, plan_id: UUID) -> TenantSubscription:
        """Start a trial on ``plan_id`` for ``trial_days`` days."""
        plan = await self._get_selectable_plan(plan_id)
        now = utcnow()
        subscription = TenantSubscription(
            tenant_id=tenant_id,
            plan_id=plan.id,
            start_date=now,
            end_date=now + timedelta(days=settings.trial_days),
            status=SubscriptionStatus.TRIAL,
            auto_renew=False,
        )
        subscription.plan = plan
        await self.repo.create(subscription)

        logger.info(
            "subscription_trial_created",
            subscription_id=str(subscription.id),
            tenant_id=str(tenant_id),
            plan=plan.name,
        )
        return subscription

    async def create_active(
        self,
        tenant_id: UUID,
        plan_id: UUID,
        months: int = 1,
        payment_method_id: str | None = None,
        customer_id: str | None = None,
    ) -> TenantSubscription:
        """Activate ``plan_id`` now for ``months``, replacing any ACTIVE one."""
        plan = await self._get_selectable_plan(plan_id)
        await self._lock_tenant(tenant_id)

        for current in await self.repo.list_active_for_tenant(tenant_id):
            current.status = SubscriptionStatus.CANCELLED
            current.auto_renew = False
            customer_id = customer_id or current.stripe_customer_id
            logger.info(
                "subscription_superseded",
                subscription_id=str(current.id),
                tenant_id=str(tenant_id),
            )

        now = utcnow()
        subscription = TenantSubscription(
            tenant_id=tenant_id,
            plan_id=plan.id,
            start_date=now,
            end_date=add_months(now, months),
            status=SubscriptionStatus.ACTIVE,
            auto_renew=True,
            stripe_customer_id=customer_id,
            stripe_payment_method_id=payment_method_id,
        )
        subscription.plan = plan
        await self.repo.create(subscription)

        logger.info(
            "subscription_activated",
            subscription_id=str(subscription.id),
            tenant_id=str(tenant_id),
            plan=plan.name,
            months=months,
        )
        return subscription

    async def upgrade(
        self,
        tenant_id: UUID,
        plan_id: UUID,
        payment_method_id: str | None = None,
    ) -> TenantSubscription:
        """Move the tenant to ``plan_id`` immediately. No proration."""
        return await self.create_active(
            tenant_id,
            plan_id,
            months=1,
            payment_method_id=payment_method_id,
        )

    async def cancel(self, subscription_id: UUID) -> TenantSubscription:
        subscription = await self.get_by_id(subscription_id)
        subscription.status = SubscriptionStatus.CANCELLED
        subscription.auto_renew = False
        await self.repo.update(subscription)

        logger.info(
            "subscription_cancelled",
            subscription_id=str(subscription.id),
            tenant_id=str(subscription.tenant_id),
        )
        return subscription

    async def update_status(
        self, subscription_id: UUID, status: SubscriptionStatus
    ) -> TenantSubscription:
        """Unguarded transition to ``status``."""
        subscription = await self.get_by_id(subscription_id)
        previous = subscription.status
        subscription.status = status
        await self.repo.update(subscription)

        logger.info(
            "subscription_status_changed",
            subscription_id=str(subscription.id),
            tenant_id=str(subscription.tenant_id),
            previous=str(previous),
            status=str(status),
        )
        return subscription

    async def renew(self, subscription_id: UUID) -> TenantSubscription:
        """Start a fresh one-month ACTIVE period from now."""
        subscription = await self.get_by_id(subscription_id)
        now = utcnow()
        subscription.start_date = now
        subscription.end_date = add_months(now, 1)
        subscription.status = SubscriptionStatus.ACTIVE
        await self.repo.update(subscription)

        logger.info(
            "subscription_renewed",
            subscription_id=str(subscription.id),
            tenant_id=str(subscription.tenant_id),
            end_date=subscription.end_date.isoformat(),
        )
        return subscription


# Type alias for dependency injection
SubscriptionSvc = Annotated[SubscriptionService, Depends(SubscriptionService)]
