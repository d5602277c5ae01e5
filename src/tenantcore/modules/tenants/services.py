"""Tenant service for provisioning and administration."""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tenantcore.config import settings
from tenantcore.core.auth.api_keys import ApiKeyCodec, GeneratedApiKey
from tenantcore.core.auth.backend import hash_password
from tenantcore.core.auth.context import current_tenant_id, is_super_admin
from tenantcore.core.auth.dependencies import ScopedSession
from tenantcore.core.auth.principal import Principal, Role
from tenantcore.core.database import TenantContext, TenantScopedSession, utcnow
from tenantcore.core.errors import ConflictError, ForbiddenError, NotFoundError
from tenantcore.modules.billing.notifications import Notifier
from tenantcore.modules.plans.repos import PlanRepository
from tenantcore.modules.subscriptions.repos import SubscriptionRepository
from tenantcore.modules.subscriptions.schemas import SubscriptionResponse
from tenantcore.modules.subscriptions.services import SubscriptionService
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.tenants.repos import TenantRepository
from tenantcore.modules.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate
from tenantcore.modules.users.models import User, UserTenant
from tenantcore.modules.users.repos import UserRepository, UserTenantRepository


logger = structlog.get_logger()


@dataclass
class ProvisionedTenant:
    """Result of provisioning. ``api_key`` is the only copy of the plaintext."""

    tenant: Tenant
    admin: User
    api_key: str


class TenantService:
    """Service for tenant lifecycle and API key management.

    Reads and writes on behalf of the caller go through the caller's
    scoped session. Provisioning and response assembly run under the
    system context because they necessarily touch rows the caller cannot
    see yet; routes authorize before calling them.
    """

    def __init__(
        self,
        session: ScopedSession,
        notifier: Notifier,
    ) -> None:
        self.session = session
        self.notifier = notifier
        self.system = TenantScopedSession(session.session, TenantContext.system())
        self.tenants = TenantRepository(self.system)

    # ============================================================
    # Provisioning
    # ============================================================

    async def provision(self, data: TenantCreate) -> ProvisionedTenant:
        """Create a tenant with its API key, first admin and optional trial.

        Every write shares the request transaction, so a failure at any
        step leaves nothing behind.

        Raises:
            ConflictError: If the domain or admin email is taken
            NotFoundError: If ``plan_id`` does not exist
            ValidationError: If ``plan_id`` names an inactive plan
        """
        users = UserRepository(self.system)

        if await self.tenants.domain_exists(data.domain):
            raise ConflictError(
                "Domain already in use",
                error_code="domain_exists",
                details={"domain": data.domain},
            )
        if await users.email_exists(data.admin_email):
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": data.admin_email},
            )

        key = ApiKeyCodec.generate(is_production=settings.is_production)
        tenant = Tenant(
            name=data.name,
            domain=data.domain,
            billing_email=data.billing_email,
            billing_address=data.billing_address,
            api_rate_limit_per_hour=settings.api_rate_limit_default,
        )
        self._apply_key(tenant, key)
        await self.tenants.create(tenant)

        admin = User(
            tenant_id=tenant.id,
            email=data.admin_email.lower(),
            password_hash=hash_password(data.admin_password),
            first_name=data.admin_first_name,
            last_name=data.admin_last_name,
            role=Role.TENANT_ADMIN.value,
        )
        await users.create(admin)
        await UserTenantRepository(self.system).create(
            UserTenant(
                user_id=admin.id,
                tenant_id=tenant.id,
                role=Role.TENANT_ADMIN.value,
                is_default=True,
            )
        )

        if data.plan_id is not None:
            await self._subscriptions().create_trial(tenant.id, data.plan_id)

        logger.info(
            "tenant_provisioned",
            tenant_id=str(tenant.id),
            domain=tenant.domain,
            api_key_prefix=key.prefix,
        )
        await self.notifier.send_welcome(tenant.billing_email, tenant.name)

        return ProvisionedTenant(tenant=tenant, admin=admin, api_key=key.plaintext)

    # ============================================================
    # Queries
    # ============================================================

    async def get(self, tenant_id: UUID) -> Tenant:
        """Raises NotFoundError for unknown or soft-deleted tenants."""
        tenant = await self.tenants.get_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )
        return tenant

    async def get_for_principal(self, tenant_id: UUID, principal: Principal) -> Tenant:
        """Fetch a tenant the principal is allowed to read.

        Raises:
            ForbiddenError: If a tenant principal asks for another tenant
            NotFoundError: If the tenant does not exist
        """
        self.ensure_own_tenant(tenant_id, principal)
        return await self.get(tenant_id)

    async def get_by_domain(self, domain: str) -> Tenant:
        tenant = await self.tenants.get_by_domain(domain)
        if tenant is None:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=domain,
            )
        return tenant

    async def list_all(self) -> list[Tenant]:
        return await self.tenants.list_all()

    @staticmethod
    def ensure_own_tenant(tenant_id: UUID, principal: Principal) -> None:
        """Super-admins pass; everyone else only for their own tenant."""
        if is_super_admin(principal):
            return
        if current_tenant_id(principal) != tenant_id:
            logger.warning(
                "cross_tenant_access_denied",
                requested_tenant_id=str(tenant_id),
                auth_type=str(principal.authentication_type),
            )
            raise ForbiddenError(
                "Access to another tenant is not allowed",
                error_code="cross_tenant_access",
            )

    # ============================================================
    # Administration
    # ============================================================

    async def update(self, tenant_id: UUID, data: TenantUpdate) -> Tenant:
        """Apply the fields present in ``data``.

        Raises:
            ConflictError: If the new domain belongs to another tenant
        """
        tenant = await self.get(tenant_id)
        changes = data.model_dump(exclude_unset=True)

        domain = changes.get("domain")
        if domain and domain != tenant.domain:
            if await self.tenants.domain_exists(domain, exclude_id=tenant.id):
                raise ConflictError(
                    "Domain already in use",
                    error_code="domain_exists",
                    details={"domain": domain},
                )

        for field, value in changes.items():
            if value is not None:
                setattr(tenant, field, value)

        await self.tenants.update(tenant)
        logger.info("tenant_updated", tenant_id=str(tenant.id), fields=sorted(changes))
        return tenant

    async def set_active(self, tenant_id: UUID, is_active: bool) -> Tenant:
        """Deactivated tenants keep their data but lose API key access."""
        tenant = await self.get(tenant_id)
        tenant.is_active = is_active
        await self.tenants.update(tenant)
        logger.info(
            "tenant_activated" if is_active else "tenant_deactivated",
            tenant_id=str(tenant.id),
        )
        return tenant

    async def activate(self, tenant_id: UUID) -> Tenant:
        return await self.set_active(tenant_id, True)

    async def deactivate(self, tenant_id: UUID) -> Tenant:
        return await self.set_active(tenant_id, False)

    async def soft_delete(self, tenant_id: UUID) -> None:
        tenant = await self.get(tenant_id)
        tenant.soft_delete()
        tenant.is_active = False
        await self.tenants.update(tenant)
        logger.info("tenant_deleted", tenant_id=str(tenant.id))

    async def purge(self, tenant_id: UUID) -> None:
        """Irreversibly remove a tenant, its memberships and subscriptions.

        Soft-deleted tenants can be purged too.

        Raises:
            NotFoundError: If no row exists at all
            ConflictError: If any user, deleted or not, calls it home
        """
        tenant = await self.tenants.get_by_id_including_deleted(tenant_id)
        if tenant is None:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )

        homed = await UserRepository(self.system).count_homed_in_tenant(tenant_id)
        if homed:
            raise ConflictError(
                "Tenant still has users",
                error_code="tenant_has_users",
                details={"user_count": homed},
            )

        memberships = await UserTenantRepository(self.system).delete_for_tenant(tenant_id)
        subscriptions = await SubscriptionRepository(self.system).delete_for_tenant(
            tenant_id
        )
        await self.tenants.delete(tenant)

        logger.warning(
            "tenant_purged",
            tenant_id=str(tenant_id),
            memberships=memberships,
            subscriptions=subscriptions,
        )

    # ============================================================
    # API keys
    # ============================================================

    @staticmethod
    def _apply_key(
        tenant: Tenant, key: GeneratedApiKey, expires_at: datetime | None = None
    ) -> None:
        tenant.api_key_hash = key.hash
        tenant.api_key_prefix = key.prefix
        tenant.api_key_created_at = utcnow()
        tenant.api_key_expires_at = expires_at
        tenant.api_key_last_used_at = None
        tenant.is_api_key_revoked = False

    async def regenerate_api_key(
        self,
        tenant_id: UUID,
        principal: Principal,
        expires_at: datetime | None = None,
    ) -> tuple[Tenant, str]:
        """Replace the tenant's key. The old key stops working at once.

        Returns:
            The tenant and the new plaintext key, which is not stored
        """
        self.ensure_own_tenant(tenant_id, principal)
        tenant = await self.get(tenant_id)

        key = ApiKeyCodec.generate(is_production=settings.is_production)
        self._apply_key(tenant, key, expires_at)
        await self.tenants.update(tenant)

        logger.info(
            "api_key_regenerated",
            tenant_id=str(tenant.id),
            api_key_prefix=key.prefix,
        )
        return tenant, key.plaintext

    async def revoke_api_key(self, tenant_id: UUID, principal: Principal) -> Tenant:
        self.ensure_own_tenant(tenant_id, principal)
        tenant = await self.get(tenant_id)
        tenant.is_api_key_revoked = True
        await self.tenants.update(tenant)

        logger.info("api_key_revoked", tenant_id=str(tenant.id))
        return tenant

    # ============================================================
    # Responses
    # ============================================================

    def _subscriptions(self) -> SubscriptionService:
        return SubscriptionService(
            SubscriptionRepository(self.system),
            PlanRepository(self.system),
            self.tenants,
        )

    async def build_response(self, tenant: Tenant) -> TenantResponse:
        """Tenant view with user count and current subscription."""
        user_count = await UserRepository(self.system).count_by_tenant(tenant.id)
        current = await SubscriptionRepository(self.system).get_current_for_tenant(
            tenant.id
        )

        response = TenantResponse.model_validate(tenant)
        response.user_count = user_count
        if current is not None:
            response.current_subscription = SubscriptionResponse.from_subscription(current)
        return response


# Type alias for dependency injection
TenantSvc = Annotated[TenantService, Depends(TenantService)]
