"""Persisting helpers for ORM rows and credentials used across tests."""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.config import settings
from tenantcore.core.auth.api_keys import ApiKeyCodec
from tenantcore.core.auth.backend import create_access_token, hash_password
from tenantcore.core.auth.principal import Role
from tenantcore.core.database import utcnow
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.subscriptions.models import SubscriptionStatus, TenantSubscription
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.users.models import User, UserTenant
from tests.factories.tenant import TenantCreateFactory
from tests.factories.user import PlanCreateFactory, UserCreateFactory


TEST_PASSWORD = "Password123"
# Hashed once; bcrypt is deliberately slow
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


async def create_plan(session: AsyncSession, **overrides: Any) -> SubscriptionPlan:
    fields = PlanCreateFactory.build().model_dump()
    fields.update(overrides)
    plan = SubscriptionPlan(**fields)
    session.add(plan)
    await session.flush()
    return plan


async def create_tenant(session: AsyncSession, **overrides: Any) -> tuple[Tenant, str]:
    """Persist a tenant with a fresh API key.

    Returns:
        The tenant and the plaintext key
    """
    data = TenantCreateFactory.build()
    key = ApiKeyCodec.generate(is_production=False)
    fields: dict[str, Any] = {
        "name": data.name,
        "domain": data.domain,
        "billing_email": data.billing_email,
        "api_key_hash": key.hash,
        "api_key_prefix": key.prefix,
        "api_key_created_at": utcnow(),
    }
    fields.update(overrides)
    tenant = Tenant(**fields)
    session.add(tenant)
    await session.flush()
    return tenant, key.plaintext


async def create_user(
    session: AsyncSession,
    tenant: Tenant | None,
    role: Role = Role.TENANT_USER,
    **overrides: Any,
) -> User:
    """Persist a user homed in ``tenant`` with a default membership.

    ``tenant=None`` creates a super-admin without memberships.
    """
    data = UserCreateFactory.build()
    fields: dict[str, Any] = {
        "tenant_id": tenant.id if tenant else None,
        "email": data.email,
        "password_hash": TEST_PASSWORD_HASH,
        "first_name": data.first_name,
        "last_name": data.last_name,
        "role": role.value,
    }
    fields.update(overrides)
    user = User(**fields)
    session.add(user)
    await session.flush()

    if tenant is not None:
        session.add(
            UserTenant(
                user_id=user.id,
                tenant_id=tenant.id,
                role=role.value,
                is_default=True,
                tenant=tenant,
            )
        )
        await session.flush()
    return user


async def create_subscription(
    session: AsyncSession,
    tenant: Tenant,
    plan: SubscriptionPlan,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    end_date: datetime | None = None,
    auto_renew: bool = True,
    **overrides: Any,
) -> TenantSubscription:
    """Persist a subscription; by default an ACTIVE one with 20 days left."""
    now = utcnow()
    subscription = TenantSubscription(
        tenant_id=tenant.id,
        plan_id=plan.id,
        start_date=now - timedelta(days=10),
        end_date=end_date or now + timedelta(days=20),
        status=status,
        auto_renew=auto_renew,
        **overrides,
    )
    subscription.plan = plan
    session.add(subscription)
    await session.flush()
    return subscription


def auth_headers(user: User) -> dict[str, str]:
    """Bearer headers carrying the claims login would issue for ``user``."""
    token = create_access_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        roles=user.roles,
        email=user.email,
        name=user.full_name,
    )
    return {"Authorization": f"Bearer {token}"}


def api_key_headers(api_key: str) -> dict[str, str]:
    return {settings.api_key_header: api_key}
