"""Tenant API routes.

Provides endpoints for:
- Tenant provisioning (super-admin and self-service)
- Tenant lookup and administration
- API key regeneration and revocation
"""

from uuid import UUID

from fastapi import APIRouter, status

from tenantcore.core.auth.dependencies import CurrentPrincipal, SuperAdmin, TenantAdmin
from tenantcore.modules.tenants.schemas import (
    ApiKeyRegenerate,
    ApiKeyResponse,
    TenantCreate,
    TenantCreatedResponse,
    TenantPublicResponse,
    TenantRegister,
    TenantResponse,
    TenantUpdate,
)
from tenantcore.modules.tenants.services import ProvisionedTenant, TenantSvc


router = APIRouter(prefix="/tenants", tags=["tenants"])


async def _created(service: TenantSvc, result: ProvisionedTenant) -> TenantCreatedResponse:
    return TenantCreatedResponse(
        tenant=await service.build_response(result.tenant),
        admin_user_id=result.admin.id,
        api_key=result.api_key,
    )


@router.get(
    "",
    response_model=list[TenantResponse],
    summary="List tenants",
)
async def list_tenants(
    _admin: SuperAdmin,
    service: TenantSvc,
) -> list[TenantResponse]:
    return [await service.build_response(t) for t in await service.list_all()]


@router.get(
    "/by-domain/{domain}",
    response_model=TenantPublicResponse,
    summary="Look up a tenant by domain",
    description="Anonymous lookup that returns public fields only.",
)
async def get_tenant_by_domain(
    domain: str,
    service: TenantSvc,
) -> TenantPublicResponse:
    return TenantPublicResponse.model_validate(await service.get_by_domain(domain))


@router.post(
    "",
    response_model=TenantCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision a tenant",
    description="Creates the tenant, its first admin and an optional trial. "
    "The API key is returned only in this response.",
)
async def create_tenant(
    data: TenantCreate,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> TenantCreatedResponse:
    return await _created(service, await service.provision(data))


@router.post(
    "/register",
    response_model=TenantCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new organization",
)
async def register_tenant(
    data: TenantRegister,
    service: TenantSvc,
) -> TenantCreatedResponse:
    return await _created(service, await service.provision(data))


@router.get(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Get a tenant",
    description="Super-admins may read any tenant; everyone else only their own.",
)
async def get_tenant(
    tenant_id: UUID,
    principal: CurrentPrincipal,
    service: TenantSvc,
) -> TenantResponse:
    tenant = await service.get_for_principal(tenant_id, principal)
    return await service.build_response(tenant)


@router.put(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Update a tenant",
)
async def update_tenant(
    tenant_id: UUID,
    data: TenantUpdate,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> TenantResponse:
    return await service.build_response(await service.update(tenant_id, data))


@router.post(
    "/{tenant_id}/activate",
    response_model=TenantResponse,
    summary="Activate a tenant",
)
async def activate_tenant(
    tenant_id: UUID,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> TenantResponse:
    return await service.build_response(await service.activate(tenant_id))


@router.post(
    "/{tenant_id}/deactivate",
    response_model=TenantResponse,
    summary="Deactivate a tenant",
    description="Deactivated tenants keep their data but cannot use API keys.",
)
async def deactivate_tenant(
    tenant_id: UUID,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> TenantResponse:
    return await service.build_response(await service.deactivate(tenant_id))


@router.delete(
    "/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a tenant",
)
async def delete_tenant(
    tenant_id: UUID,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> None:
    await service.soft_delete(tenant_id)


@router.delete(
    "/{tenant_id}/purge",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently delete a tenant",
    description="Irreversible. Refused while any user still belongs to the tenant.",
)
async def purge_tenant(
    tenant_id: UUID,
    _admin: SuperAdmin,
    service: TenantSvc,
) -> None:
    await service.purge(tenant_id)


@router.post(
    "/{tenant_id}/api-key/regenerate",
    response_model=ApiKeyResponse,
    summary="Regenerate the tenant API key",
    description="The previous key stops working immediately. "
    "The new key is returned only in this response.",
)
async def regenerate_api_key(
    tenant_id: UUID,
    principal: TenantAdmin,
    service: TenantSvc,
    data: ApiKeyRegenerate | None = None,
) -> ApiKeyResponse:
    tenant, api_key = await service.regenerate_api_key(
        tenant_id,
        principal,
        expires_at=data.expires_at if data else None,
    )
    return ApiKeyResponse(
        tenant_id=tenant.id,
        api_key=api_key,
        api_key_prefix=tenant.api_key_prefix or "",
        api_key_created_at=tenant.api_key_created_at,
        api_key_expires_at=tenant.api_key_expires_at,
    )


@router.post(
    "/{tenant_id}/api-key/revoke",
    response_model=TenantResponse,
    summary="Revoke the tenant API key",
)
async def revoke_api_key(
    tenant_id: UUID,
    principal: TenantAdmin,
    service: TenantSvc,
) -> TenantResponse:
    return await service.build_response(
        await service.revoke_api_key(tenant_id, principal)
    )
