"""User repositories for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select

from tenantcore.core.auth.dependencies import ScopedSession
from tenantcore.modules.users.models import User, UserTenant


class UserRepository:
    """Repository for User rows.

    Reads go through the isolation filter: tenant principals see only
    their tenant's non-deleted users, super-admins see every non-deleted
    user. Login and uniqueness checks are global by nature and say so
    in their names.
    """

    def __init__(self, session: ScopedSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def list_visible(self, tenant_id: UUID | None = None) -> list[User]:
        """List visible users, optionally narrowed to one tenant."""
        stmt = self.session.select(User)
        if tenant_id is not None:
            stmt = stmt.where(User.tenant_id == tenant_id)
        return await self.session.scalars(stmt.order_by(User.last_name, User.first_name))

    async def count_by_tenant(self, tenant_id: UUID) -> int:
        return await self.session.count(User, User.tenant_id == tenant_id)

    async def get_by_email_for_login(self, email: str) -> User | None:
        """Global lookup by email among non-deleted users."""
        stmt = select(User).where(
            func.lower(User.email) == email.lower(),
            User.is_deleted.is_(False),
        )
        result = await self.session.session.execute(stmt)
        return result.scalars().first()

    async def email_exists(self, email: str) -> bool:
        """Whether any non-deleted user already uses ``email``."""
        return await self.get_by_email_for_login(email) is not None

    async def count_homed_in_tenant(self, tenant_id: UUID) -> int:
        """All rows referencing the tenant, soft-deleted ones included."""
        stmt = select(func.count()).select_from(User).where(User.tenant_id == tenant_id)
        result = await self.session.session.execute(stmt)
        return int(result.scalar_one())

    async def update(self, user: User) -> User:
        await self.session.flush()
        return user


class UserTenantRepository:
    """Repository for tenant memberships."""

    def __init__(self, session: ScopedSession) -> None:
        self.session = session

    async def create(self, membership: UserTenant) -> UserTenant:
        self.session.add(membership)
        await self.session.flush()
        return membership

    async def get(self, user_id: UUID, tenant_id: UUID) -> UserTenant | None:
        stmt = self.session.select(
            UserTenant,
            UserTenant.user_id == user_id,
            UserTenant.tenant_id == tenant_id,
        )
        return await self.session.scalar_one_or_none(stmt)

    async def list_for_user(self, user_id: UUID) -> list[UserTenant]:
        stmt = self.session.select(UserTenant, UserTenant.user_id == user_id)
        return await self.session.scalars(stmt.order_by(UserTenant.created_at))

    async def delete_for_tenant(self, tenant_id: UUID) -> int:
        result = await self.session.session.execute(
            delete(UserTenant).where(UserTenant.tenant_id == tenant_id)
        )
        return int(result.rowcount or 0)


# Type aliases for dependency injection
UserRepo = Annotated[UserRepository, Depends(UserRepository)]
UserTenantRepo = Annotated[UserTenantRepository, Depends(UserTenantRepository)]
