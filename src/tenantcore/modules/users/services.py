"""User service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tenantcore.core.auth.backend import hash_password
from tenantcore.core.auth.context import is_super_admin
from tenantcore.core.auth.dependencies import resolve_target_tenant
from tenantcore.core.auth.principal import Principal
from tenantcore.core.errors import BadRequestError, ConflictError, NotFoundError
from tenantcore.modules.tenants.repos import TenantRepo
from tenantcore.modules.users.models import User, UserTenant
from tenantcore.modules.users.repos import UserRepo, UserTenantRepo
from tenantcore.modules.users.schemas import UserCreate


logger = structlog.get_logger()


class UserService:
    """Service for user management within tenants.

    All lookups go through the isolated repositories, so a tenant admin
    asking for another tenant's user gets a 404, not a 403.
    """

    def __init__(
        self,
        repo: UserRepo,
        memberships: UserTenantRepo,
        tenants: TenantRepo,
    ) -> None:
        self.repo = repo
        self.memberships = memberships
        self.tenants = tenants

    async def list_users(
        self, principal: Principal, tenant_id: UUID | None = None
    ) -> list[User]:
        """Users visible to ``principal``.

        Super-admins see every tenant and may narrow to one; ``tenant_id``
        is ignored for everyone else.
        """
        if is_super_admin(principal):
            return await self.repo.list_visible(tenant_id)
        return await self.repo.list_visible()

    async def get_user(self, user_id: UUID) -> User:
        user = await self.repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(user_id),
            )
        return user

    async def create_user(self, data: UserCreate, principal: Principal) -> User:
        """Create a user homed in the target tenant, with a default membership.

        Args:
            data: New user details
            principal: The acting admin

        Returns:
            The created user

        Raises:
            ConflictError: If the email is already registered
            NotFoundError: If the target tenant does not exist
        """
        tenant_id = resolve_target_tenant(principal, data.tenant_id)
        if await self.tenants.get_by_id(tenant_id) is None:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )

        if await self.repo.email_exists(data.email):
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": data.email},
            )

        user = User(
            tenant_id=tenant_id,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone_number=data.phone_number,
            role=data.role,
        )
        await self.repo.create(user)
        await self.memberships.create(
            UserTenant(
                user_id=user.id,
                tenant_id=tenant_id,
                role=data.role,
                is_default=True,
            )
        )

        logger.info(
            "user_created",
            user_id=str(user.id),
            tenant_id=str(tenant_id),
            role=data.role,
        )
        return user

    async def delete_user(self, user_id: UUID, principal: Principal) -> None:
        """Soft-delete a user. Admins cannot delete themselves."""
        user = await self.get_user(user_id)
        if principal.subject == str(user.id):
            raise BadRequestError(
                "You cannot delete your own account",
                error_code="cannot_delete_self",
            )

        user.soft_delete()
        user.is_active = False
        await self.repo.update(user)
        logger.info("user_deleted", user_id=str(user.id), tenant_id=str(user.tenant_id))

    async def list_memberships(self, user_id: UUID) -> list[UserTenant]:
        """Memberships of a visible user, restricted to visible tenants."""
        await self.get_user(user_id)
        return await self.memberships.list_for_user(user_id)


# Type alias for dependency injection
UserSvc = Annotated[UserService, Depends(UserService)]
