"""User management API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from tenantcore.core.auth.dependencies import TenantAdmin
from tenantcore.modules.users.schemas import (
    MembershipResponse,
    UserCreate,
    UserResponse,
)
from tenantcore.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
    description="Tenant admins see their tenant; super-admins see all tenants "
    "and may filter with ``tenant_id``.",
)
async def list_users(
    principal: TenantAdmin,
    service: UserSvc,
    tenant_id: UUID | None = Query(None),
) -> list[UserResponse]:
    users = await service.list_users(principal, tenant_id)
    return [UserResponse.model_validate(u) for u in users]


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user",
)
async def get_user(
    user_id: UUID,
    _admin: TenantAdmin,
    service: UserSvc,
) -> UserResponse:
    return UserResponse.model_validate(await service.get_user(user_id))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    data: UserCreate,
    principal: TenantAdmin,
    service: UserSvc,
) -> UserResponse:
    return UserResponse.model_validate(await service.create_user(data, principal))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
)
async def delete_user(
    user_id: UUID,
    principal: TenantAdmin,
    service: UserSvc,
) -> None:
    await service.delete_user(user_id, principal)


@router.get(
    "/{user_id}/tenants",
    response_model=list[MembershipResponse],
    summary="List a user's tenant memberships",
)
async def list_memberships(
    user_id: UUID,
    _admin: TenantAdmin,
    service: UserSvc,
) -> list[MembershipResponse]:
    return [
        MembershipResponse(
            tenant_id=m.tenant_id,
            tenant_name=m.tenant.name,
            tenant_domain=m.tenant.domain,
            role=m.role,
            is_active=m.is_active,
            is_default=m.is_default,
        )
        for m in await service.list_memberships(user_id)
    ]
