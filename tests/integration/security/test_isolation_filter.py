"""Integration tests for multi-tenancy isolation in the storage layer.

These tests verify that the isolation filter restricts every read to
the caller's tenant and hides soft-deleted rows, and that audit stamps
are written on save.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.core.auth.principal import Role
from tenantcore.core.database import TenantContext, TenantScopedSession, acting_as
from tenantcore.core.errors import ForbiddenError
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.subscriptions.repos import SubscriptionRepository
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.tenants.repos import TenantRepository
from tenantcore.modules.users.models import User, UserTenant
from tenantcore.modules.users.repos import UserRepository, UserTenantRepository
from tests.factories.models import create_subscription, create_tenant, create_user


pytestmark = pytest.mark.integration


def scoped(db: AsyncSession, tenant: Tenant | None = None) -> TenantScopedSession:
    context = TenantContext.for_tenant(tenant.id) if tenant else TenantContext.system()
    return TenantScopedSession(db, context)


class TestTenantIsolation:
    """Tests for multi-tenant data isolation."""

    async def test_users_limited_to_own_tenant(
        self,
        db: AsyncSession,
        tenant: Tenant,
        other_tenant: Tenant,
        tenant_user: User,
        other_tenant_admin: User,
    ):
        repo = UserRepository(scoped(db, tenant))

        users = await repo.list_visible()

        assert [u.id for u in users] == [tenant_user.id]
        assert await repo.get_by_id(other_tenant_admin.id) is None

    async def test_naming_another_tenant_returns_nothing(
        self,
        db: AsyncSession,
        tenant: Tenant,
        other_tenant: Tenant,
        other_tenant_admin: User,
    ):
        repo = UserRepository(scoped(db, tenant))

        assert await repo.list_visible(other_tenant.id) == []

    async def test_super_admin_sees_all_tenants(
        self,
        db: AsyncSession,
        tenant_user: User,
        other_tenant_admin: User,
        superadmin: User,
    ):
        users = await UserRepository(scoped(db)).list_visible()

        assert {u.id for u in users} == {tenant_user.id, other_tenant_admin.id, superadmin.id}

    async def test_anonymous_context_sees_nothing(self, db: AsyncSession, tenant_user: User):
        repo = UserRepository(TenantScopedSession(db, TenantContext()))

        assert await repo.list_visible() == []
        assert await repo.get_by_id(tenant_user.id) is None

    async def test_soft_deleted_hidden_even_from_super_admin(
        self, db: AsyncSession, tenant: Tenant, tenant_user: User
    ):
        tenant_user.soft_delete()
        await db.flush()

        assert await UserRepository(scoped(db, tenant)).get_by_id(tenant_user.id) is None
        assert await UserRepository(scoped(db)).get_by_id(tenant_user.id) is None

    async def test_count_respects_filter(
        self, db: AsyncSession, tenant: Tenant, other_tenant: Tenant, tenant_user: User
    ):
        repo = UserRepository(scoped(db, tenant))

        assert await repo.count_by_tenant(tenant.id) == 1
        assert await repo.count_by_tenant(other_tenant.id) == 0

    async def test_memberships_isolated(
        self,
        db: AsyncSession,
        tenant: Tenant,
        other_tenant: Tenant,
        tenant_user: User,
    ):
        db.add(UserTenant(user_id=tenant_user.id, tenant_id=other_tenant.id, role="TenantUser"))
        await db.flush()

        own = await UserTenantRepository(scoped(db, tenant)).list_for_user(tenant_user.id)
        every = await UserTenantRepository(scoped(db)).list_for_user(tenant_user.id)

        assert [m.tenant_id for m in own] == [tenant.id]
        assert {m.tenant_id for m in every} == {tenant.id, other_tenant.id}

    async def test_subscriptions_isolated(
        self,
        db: AsyncSession,
        tenant: Tenant,
        other_tenant: Tenant,
        plan: SubscriptionPlan,
    ):
        foreign = await create_subscription(db, other_tenant, plan)
        repo = SubscriptionRepository(scoped(db, tenant))

        assert await repo.get_by_id(foreign.id) is None
        assert await repo.list_for_tenant(other_tenant.id) == []

    async def test_cross_tenant_write_rejected(
        self, db: AsyncSession, tenant: Tenant, other_tenant: Tenant, tenant_user: User
    ):
        repo = UserTenantRepository(scoped(db, tenant))

        with pytest.raises(ForbiddenError):
            await repo.create(
                UserTenant(user_id=tenant_user.id, tenant_id=other_tenant.id, role="TenantUser")
            )

    async def test_soft_deleted_tenant_hidden(self, db: AsyncSession):
        tenant, _ = await create_tenant(db)
        tenant.soft_delete()
        await db.flush()
        repo = TenantRepository(scoped(db))

        assert await repo.get_by_id(tenant.id) is None
        assert await repo.get_by_domain(tenant.domain) is None
        assert (await repo.get_by_id_including_deleted(tenant.id)) is tenant
        assert await repo.domain_exists(tenant.domain) is True


class TestAuditStamps:
    """Tests for created/updated/deleted stamps written on flush."""

    async def test_created_by_actor(self, db: AsyncSession, tenant: Tenant):
        with acting_as("admin@acme.com"):
            user = await create_user(db, tenant, role=Role.TENANT_USER)

        assert user.created_by == "admin@acme.com"
        assert user.created_at is not None
        assert user.updated_at is None

    async def test_update_and_delete_stamps(self, db: AsyncSession, tenant: Tenant):
        user = await create_user(db, tenant)

        with acting_as("editor"):
            user.first_name = "Changed"
            await db.flush()
        assert user.updated_by == "editor"
        assert user.updated_at is not None

        with acting_as("remover"):
            user.soft_delete()
            await db.flush()
        assert user.deleted_by == "remover"
        assert user.deleted_at is not None

    async def test_global_rows_stamped(self, db: AsyncSession):
        with acting_as("catalogue"):
            plan = SubscriptionPlan(
                name="Solo", price_per_month=5, max_users=1, max_storage_gb=1
            )
            db.add(plan)
            await db.flush()

        assert plan.created_by == "catalogue"
