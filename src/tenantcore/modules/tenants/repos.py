"""Tenant repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from tenantcore.core.auth.dependencies import ScopedSession
from tenantcore.modules.tenants.models import Tenant


class TenantRepository:
    """Repository for Tenant rows.

    Tenants are filtered by soft-delete state only, so the same queries
    serve super-admins and tenant principals; ownership checks live in
    the service.
    """

    def __init__(self, session: ScopedSession) -> None:
        self.session = session

    async def create(self, tenant: Tenant) -> Tenant:
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        return await self.session.get(Tenant, tenant_id)

    async def get_by_id_including_deleted(self, tenant_id: UUID) -> Tenant | None:
        """Raw lookup that also returns soft-deleted tenants."""
        result = await self.session.session.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id_for_update(self, tenant_id: UUID) -> Tenant | None:
        """Fetch and row-lock a tenant until the transaction ends."""
        stmt = self.session.select(Tenant, Tenant.id == tenant_id).with_for_update()
        return await self.session.scalar_one_or_none(stmt)

    async def get_by_domain(self, domain: str) -> Tenant | None:
        stmt = self.session.select(Tenant, Tenant.domain == domain.lower())
        return await self.session.scalar_one_or_none(stmt)

    async def get_active_by_api_key_hash(self, api_key_hash: str) -> Tenant | None:
        """Credential lookup: only active, non-deleted tenants qualify."""
        stmt = self.session.select(
            Tenant,
            Tenant.api_key_hash == api_key_hash,
            Tenant.is_active.is_(True),
        )
        return await self.session.scalar_one_or_none(stmt)

    async def domain_exists(self, domain: str, exclude_id: UUID | None = None) -> bool:
        """Check domain uniqueness, including soft-deleted tenants."""
        stmt = select(Tenant.id).where(Tenant.domain == domain.lower())
        if exclude_id is not None:
            stmt = stmt.where(Tenant.id != exclude_id)
        result = await self.session.session.execute(stmt.limit(1))
        return result.first() is not None

    async def list_all(self) -> list[Tenant]:
        return await self.session.scalars(self.session.select(Tenant).order_by(Tenant.name))

    async def update(self, tenant: Tenant) -> Tenant:
        await self.session.flush()
        return tenant

    async def delete(self, tenant: Tenant) -> None:
        """Physically remove the tenant row."""
        await self.session.delete(tenant)
        await self.session.flush()


# Type alias for dependency injection
TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]
