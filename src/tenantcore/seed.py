"""Development seed data.

Creates the super-admin, the plan catalogue and three demo tenants with
users, memberships and year-long subscriptions. Every step checks for
existing rows first, so seeding twice is harmless.
"""

from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenantcore.config import settings
from tenantcore.core.auth.api_keys import ApiKeyCodec
from tenantcore.core.auth.backend import hash_password
from tenantcore.core.auth.principal import Role
from tenantcore.core.database import TenantContext, TenantScopedSession, acting_as, utcnow
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.plans.repos import PlanRepository
from tenantcore.modules.subscriptions.repos import SubscriptionRepository
from tenantcore.modules.subscriptions.services import SubscriptionService
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.tenants.repos import TenantRepository
from tenantcore.modules.users.models import User, UserTenant
from tenantcore.modules.users.repos import UserRepository, UserTenantRepository


logger = structlog.get_logger()

SEED_ACTOR = "Seed"
SUPERADMIN_EMAIL = "superadmin@tenantcore.com"
DEMO_PASSWORD = "Password123!"

PLANS: list[dict[str, object]] = [
    {
        "name": "Basic",
        "description": "For small teams getting started",
        "price_per_month": Decimal("29.99"),
        "max_users": 5,
        "max_storage_gb": 10,
        "has_api_access": False,
        "has_advanced_reporting": False,
    },
    {
        "name": "Professional",
        "description": "For growing teams that integrate over the API",
        "price_per_month": Decimal("79.99"),
        "max_users": 25,
        "max_storage_gb": 100,
        "has_api_access": True,
        "has_advanced_reporting": False,
    },
    {
        "name": "Enterprise",
        "description": "For large organizations",
        "price_per_month": Decimal("199.99"),
        "max_users": 100,
        "max_storage_gb": 1000,
        "has_api_access": True,
        "has_advanced_reporting": True,
    },
]

# (name, domain, plan, users as (email local part, first, last, role))
DEMO_TENANTS: list[tuple[str, str, str, list[tuple[str, str, str, Role]]]] = [
    (
        "Acme Corporation",
        "acmecorp",
        "Professional",
        [
            ("admin", "John", "Doe", Role.TENANT_ADMIN),
            ("user1", "Jane", "Smith", Role.TENANT_USER),
            ("user2", "Bob", "Johnson", Role.TENANT_USER),
        ],
    ),
    (
        "Tech Startup Inc",
        "techstartup",
        "Basic",
        [
            ("admin", "Alice", "Williams", Role.TENANT_ADMIN),
            ("user1", "Charlie", "Brown", Role.TENANT_USER),
        ],
    ),
    (
        "Retail Co",
        "retailco",
        "Enterprise",
        [
            ("admin", "David", "Miller", Role.TENANT_ADMIN),
            ("user1", "Emma", "Davis", Role.TENANT_USER),
            ("user2", "Frank", "Wilson", Role.TENANT_USER),
        ],
    ),
]

# user1@acmecorp.com is also a member of techstartup
CROSS_TENANT_MEMBER = ("user1@acmecorp.com", "techstartup")


@dataclass
class SeedReport:
    """What a seeding run created. ``api_keys`` holds plaintext keys."""

    superadmin_created: bool = False
    plans_created: list[str] = field(default_factory=list)
    tenants_created: list[str] = field(default_factory=list)
    users_created: int = 0
    api_keys: dict[str, str] = field(default_factory=dict)


class Seeder:
    """Idempotent writer of the demo data set."""

    def __init__(self, session: AsyncSession, superadmin_password: str) -> None:
        scoped = TenantScopedSession(session, TenantContext.system())
        self.session = session
        self.superadmin_password = superadmin_password
        self.tenants = TenantRepository(scoped)
        self.plans = PlanRepository(scoped)
        self.users = UserRepository(scoped)
        self.memberships = UserTenantRepository(scoped)
        self.subscriptions = SubscriptionService(
            SubscriptionRepository(scoped), self.plans, self.tenants
        )
        self.report = SeedReport()

    async def run(self) -> SeedReport:
        await self.seed_superadmin()
        plans = await self.seed_plans()
        for name, domain, plan_name, users in DEMO_TENANTS:
            await self.seed_tenant(name, domain, plans[plan_name], users)
        await self.seed_cross_tenant_membership()
        return self.report

    async def seed_superadmin(self) -> None:
        if await self.users.email_exists(SUPERADMIN_EMAIL):
            return
        await self.users.create(
            User(
                tenant_id=None,
                email=SUPERADMIN_EMAIL,
                password_hash=hash_password(self.superadmin_password),
                first_name="Super",
                last_name="Admin",
                role=Role.SUPER_ADMIN.value,
            )
        )
        self.report.superadmin_created = True

    async def seed_plans(self) -> dict[str, SubscriptionPlan]:
        plans: dict[str, SubscriptionPlan] = {}
        for data in PLANS:
            name = str(data["name"])
            plan = await self.plans.get_by_name(name)
            if plan is None:
                plan = await self.plans.create(SubscriptionPlan(**data))
                self.report.plans_created.append(name)
            plans[name] = plan
        return plans

    async def seed_tenant(
        self,
        name: str,
        domain: str,
        plan: SubscriptionPlan,
        users: list[tuple[str, str, str, Role]],
    ) -> None:
        if await self.tenants.domain_exists(domain):
            return

        key = ApiKeyCodec.generate(is_production=settings.is_production)
        tenant = await self.tenants.create(
            Tenant(
                name=name,
                domain=domain,
                billing_email=f"billing@{domain}.com",
                api_key_hash=key.hash,
                api_key_prefix=key.prefix,
                api_key_created_at=utcnow(),
                api_rate_limit_per_hour=settings.api_rate_limit_default,
            )
        )
        self.report.tenants_created.append(domain)
        self.report.api_keys[domain] = key.plaintext

        await self.subscriptions.create_active(tenant.id, plan.id, months=12)

        for local_part, first_name, last_name, role in users:
            email = f"{local_part}@{domain}.com"
            if await self.users.email_exists(email):
                continue
            user = await self.users.create(
                User(
                    tenant_id=tenant.id,
                    email=email,
                    password_hash=hash_password(DEMO_PASSWORD),
                    first_name=first_name,
                    last_name=last_name,
                    role=role.value,
                )
            )
            await self.memberships.create(
                UserTenant(
                    user_id=user.id,
                    tenant_id=tenant.id,
                    role=role.value,
                    is_default=True,
                )
            )
            self.report.users_created += 1

    async def seed_cross_tenant_membership(self) -> None:
        email, domain = CROSS_TENANT_MEMBER
        user = await self.users.get_by_email_for_login(email)
        tenant = await self.tenants.get_by_domain(domain)
        if user is None or tenant is None:
            return
        if await self.memberships.get(user.id, tenant.id) is not None:
            return
        await self.memberships.create(
            UserTenant(
                user_id=user.id,
                tenant_id=tenant.id,
                role=Role.TENANT_USER.value,
                is_default=False,
            )
        )


async def seed(
    session_factory: async_sessionmaker[AsyncSession],
    superadmin_password: str,
) -> SeedReport:
    """Seed the database in a single transaction."""
    with acting_as(SEED_ACTOR):
        async with session_factory() as session:
            report = await Seeder(session, superadmin_password).run()
            await session.commit()

    logger.info(
        "seed_completed",
        superadmin_created=report.superadmin_created,
        plans_created=report.plans_created,
        tenants_created=report.tenants_created,
        users_created=report.users_created,
    )
    return report
