"""FastAPI dependencies for authentication and authorization.

This module wires the credential strategies into the request pipeline and
exposes:
- The current principal (optional or required)
- The resolved tenant context and an isolation-filtered session
- Role guards for super-admin and tenant-admin operations
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Request

from tenantcore.api.dependencies import DBSession
from tenantcore.core.auth.context import (
    current_tenant_id,
    is_super_admin,
    resolve_tenant_context,
)
from tenantcore.core.auth.principal import Principal, Role
from tenantcore.core.auth.strategies import (
    ApiKeyStrategy,
    AuthenticationChain,
    BearerTokenStrategy,
    UsageRecorder,
)
from tenantcore.core.database import (
    TenantContext,
    TenantScopedSession,
    async_session_factory,
    set_current_actor,
)
from tenantcore.core.errors import BadRequestError, ForbiddenError, UnauthorizedError


if TYPE_CHECKING:
    from tenantcore.modules.tenants.usage import ApiKeyUsageRecorder


@lru_cache
def get_api_key_usage_recorder() -> "ApiKeyUsageRecorder":
    """Process-wide recorder for API key last-used timestamps."""
    from tenantcore.modules.tenants.usage import ApiKeyUsageRecorder  # noqa: PLC0415

    return ApiKeyUsageRecorder(async_session_factory)


async def get_authentication_chain(
    db: DBSession,
    recorder: Annotated[UsageRecorder, Depends(get_api_key_usage_recorder)],
) -> AuthenticationChain:
    """Bearer/cookie first, then API key."""
    from tenantcore.modules.tenants.repos import TenantRepository  # noqa: PLC0415
    from tenantcore.modules.users.repos import UserRepository  # noqa: PLC0415

    scoped = TenantScopedSession(db, TenantContext.system())
    tenants = TenantRepository(scoped)
    users = UserRepository(scoped)

    async def account_is_active(user_id: str, tenant_id: str | None) -> bool:
        try:
            user = await users.get_by_id(UUID(user_id))
            if user is None or not user.is_active:
                return False
            if tenant_id is None:
                return True
            tenant = await tenants.get_by_id(UUID(tenant_id))
        except ValueError:
            return False
        return tenant is not None and tenant.is_active

    return AuthenticationChain(
        [
            BearerTokenStrategy(account_check=account_is_active),
            ApiKeyStrategy(
                lookup=tenants.get_active_by_api_key_hash,
                usage_recorder=recorder,
            ),
        ]
    )


async def get_optional_principal(
    request: Request,
    chain: Annotated[AuthenticationChain, Depends(get_authentication_chain)],
) -> Principal | None:
    """Authenticate the request if it carries credentials.

    Raises:
        UnauthorizedError: If a credential was presented and rejected
    """
    result = await chain.authenticate(request)

    if result.failed:
        raise UnauthorizedError(
            result.reason or "Authentication failed",
            error_code=result.error_code or "authentication_failed",
        )

    principal = result.principal
    if principal is None:
        return None

    request.state.user_id = principal.subject
    request.state.tenant_id = principal.tenant_id
    structlog.contextvars.bind_contextvars(
        subject=principal.subject,
        tenant_id=principal.tenant_id,
        auth_type=str(principal.authentication_type),
    )
    set_current_actor(principal.email or principal.name or principal.subject)
    return principal


async def get_principal(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> Principal:
    """Require an authenticated principal.

    Raises:
        UnauthorizedError: If the request carries no credentials
    """
    if principal is None:
        raise UnauthorizedError(
            "Authentication required",
            error_code="missing_credentials",
        )
    return principal


async def get_tenant_context(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> TenantContext:
    """Tenant context for the caller (empty for anonymous callers)."""
    return resolve_tenant_context(principal)


async def get_scoped_session(
    db: DBSession,
    context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> TenantScopedSession:
    """Request session with the isolation filter bound to the caller."""
    return TenantScopedSession(db, context)


async def require_super_admin(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """Raises ForbiddenError unless the principal is a super-admin."""
    if not is_super_admin(principal):
        raise ForbiddenError(
            "Super-admin privileges required",
            error_code="super_admin_required",
        )
    return principal


async def require_tenant_admin(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """Super-admin, or TenantAdmin acting within a tenant."""
    if is_super_admin(principal):
        return principal
    if principal.has_role(Role.TENANT_ADMIN) and current_tenant_id(principal):
        return principal
    raise ForbiddenError(
        "Tenant admin role required",
        error_code="tenant_admin_required",
    )


async def get_current_tenant_id(
    principal: Annotated[Principal, Depends(get_principal)],
) -> UUID:
    """The caller's tenant id.

    Raises:
        ForbiddenError: If the caller has no tenant context
    """
    tenant_id = current_tenant_id(principal)
    if tenant_id is None:
        raise ForbiddenError(
            "Tenant context is required for this operation",
            error_code="tenant_context_required",
        )
    return tenant_id


def resolve_target_tenant(principal: Principal, requested: UUID | None) -> UUID:
    """Tenant an operation should act on.

    Super-admins must name the tenant. Everyone else acts on their own
    tenant and may not name a different one.

    Raises:
        BadRequestError: If a super-admin omits the tenant
        ForbiddenError: If a tenant principal names another tenant
    """
    if is_super_admin(principal):
        if requested is None:
            raise BadRequestError(
                "tenant_id is required for super-admin requests",
                error_code="tenant_id_required",
            )
        return requested

    own = current_tenant_id(principal)
    if own is None:
        raise ForbiddenError(
            "Tenant context is required for this operation",
            error_code="tenant_context_required",
        )
    if requested is not None and requested != own:
        raise ForbiddenError(
            "Access to another tenant is not allowed",
            error_code="cross_tenant_access",
        )
    return own


# Type aliases for cleaner dependency injection
OptionalPrincipal = Annotated[Principal | None, Depends(get_optional_principal)]
CurrentPrincipal = Annotated[Principal, Depends(get_principal)]
SuperAdmin = Annotated[Principal, Depends(require_super_admin)]
TenantAdmin = Annotated[Principal, Depends(require_tenant_admin)]
CurrentTenantContext = Annotated[TenantContext, Depends(get_tenant_context)]
CurrentTenantId = Annotated[UUID, Depends(get_current_tenant_id)]
ScopedSession = Annotated[TenantScopedSession, Depends(get_scoped_session)]
