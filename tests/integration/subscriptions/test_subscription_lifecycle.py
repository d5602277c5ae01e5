"""Integration tests for SubscriptionService state transitions."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.config import settings
from tenantcore.core.database import TenantContext, TenantScopedSession, utcnow
from tenantcore.core.errors import NotFoundError, ValidationError
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.plans.repos import PlanRepository
from tenantcore.modules.subscriptions.models import SubscriptionStatus
from tenantcore.modules.subscriptions.repos import SubscriptionRepository
from tenantcore.modules.subscriptions.services import SubscriptionService
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.tenants.repos import TenantRepository
from tests.factories.models import create_plan, create_subscription


pytestmark = pytest.mark.integration


@pytest.fixture
def service(db: AsyncSession) -> SubscriptionService:
    scoped = TenantScopedSession(db, TenantContext.system())
    return SubscriptionService(
        SubscriptionRepository(scoped),
        PlanRepository(scoped),
        TenantRepository(scoped),
    )


class TestTransitions:
    """Tests for trial, activation, renewal and cancellation."""

    async def test_trial(
        self, service: SubscriptionService, tenant: Tenant, plan: SubscriptionPlan
    ):
        subscription = await service.create_trial(tenant.id, plan.id)

        assert subscription.status == SubscriptionStatus.TRIAL
        assert subscription.auto_renew is False
        assert subscription.end_date - subscription.start_date == timedelta(
            days=settings.trial_days
        )

    async def test_trial_unknown_plan(self, service: SubscriptionService, tenant: Tenant):
        with pytest.raises(NotFoundError):
            await service.create_trial(tenant.id, tenant.id)

    async def test_activation_supersedes_active(
        self,
        service: SubscriptionService,
        db: AsyncSession,
        tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        first = await create_subscription(db, tenant, plan, stripe_customer_id="cus_1")
        second = await create_subscription(db, tenant, plan)
        trial = await create_subscription(db, tenant, plan, status=SubscriptionStatus.TRIAL)

        new = await service.create_active(tenant.id, plan.id, months=3)

        assert first.status == SubscriptionStatus.CANCELLED
        assert second.status == SubscriptionStatus.CANCELLED
        assert first.auto_renew is False
        assert trial.status == SubscriptionStatus.TRIAL
        assert new.status == SubscriptionStatus.ACTIVE
        assert new.stripe_customer_id == "cus_1"
        assert (new.end_date - new.start_date).days >= 89
        assert [s.id for s in await service.repo.list_active_for_tenant(tenant.id)] == [
            new.id
        ]

    async def test_activation_rejects_inactive_plan(
        self, service: SubscriptionService, db: AsyncSession, tenant: Tenant
    ):
        retired = await create_plan(db, is_active=False)

        with pytest.raises(ValidationError):
            await service.upgrade(tenant.id, retired.id)

    async def test_activation_unknown_tenant(
        self, service: SubscriptionService, plan: SubscriptionPlan
    ):
        with pytest.raises(NotFoundError):
            await service.create_active(plan.id, plan.id)

    async def test_renew_restarts_period(
        self,
        service: SubscriptionService,
        db: AsyncSession,
        tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        lapsed = await create_subscription(
            db,
            tenant,
            plan,
            status=SubscriptionStatus.PAST_DUE,
            end_date=utcnow() - timedelta(days=3),
        )

        renewed = await service.renew(lapsed.id)

        assert renewed.status == SubscriptionStatus.ACTIVE
        assert renewed.end_date > utcnow() + timedelta(days=27)
        assert renewed.start_date <= utcnow()

    async def test_cancel_is_terminal_for_sweep(
        self,
        service: SubscriptionService,
        db: AsyncSession,
        tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        subscription = await create_subscription(
            db, tenant, plan, end_date=utcnow() - timedelta(days=1)
        )

        await service.cancel(subscription.id)

        assert subscription.auto_renew is False
        assert await service.list_expired() == []


class TestQueries:
    """Tests for the current and expired selections."""

    async def test_expired_selects_ended_active_and_trial_only(
        self,
        service: SubscriptionService,
        db: AsyncSession,
        tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        past = utcnow() - timedelta(days=1)
        ended_active = await create_subscription(db, tenant, plan, end_date=past)
        ended_trial = await create_subscription(
            db, tenant, plan, status=SubscriptionStatus.TRIAL, end_date=past
        )
        for status in (
            SubscriptionStatus.PAST_DUE,
            SubscriptionStatus.EXPIRED,
            SubscriptionStatus.CANCELLED,
        ):
            await create_subscription(db, tenant, plan, status=status, end_date=past)
        await create_subscription(db, tenant, plan)

        expired = await service.list_expired()

        assert {s.id for s in expired} == {ended_active.id, ended_trial.id}

    async def test_current_prefers_newest(
        self,
        service: SubscriptionService,
        db: AsyncSession,
        tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        old = await create_subscription(db, tenant, plan)
        old.created_at = utcnow() - timedelta(days=30)
        await create_subscription(db, tenant, plan, status=SubscriptionStatus.CANCELLED)
        newest = await create_subscription(db, tenant, plan, status=SubscriptionStatus.TRIAL)
        await db.flush()

        current = await service.get_current(tenant.id)

        assert current.id == newest.id

    async def test_current_missing(self, service: SubscriptionService, tenant: Tenant):
        with pytest.raises(NotFoundError):
            await service.get_current(tenant.id)

    async def test_tenant_scope_hides_foreign_rows(
        self,
        db: AsyncSession,
        tenant: Tenant,
        other_tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        foreign = await create_subscription(db, other_tenant, plan)
        scoped = TenantScopedSession(db, TenantContext.for_tenant(tenant.id))
        service = SubscriptionService(
            SubscriptionRepository(scoped),
            PlanRepository(scoped),
            TenantRepository(scoped),
        )

        with pytest.raises(NotFoundError):
            await service.cancel(foreign.id)
