"""Resolve the acting tenant and privilege level from a principal.

A principal is privileged when it holds the ``SuperAdmin`` role or when
it carries no tenant claim at all. Non-privileged accounts must therefore
always be issued a tenant claim.
"""

from uuid import UUID

from tenantcore.core.auth.principal import Principal, Role
from tenantcore.core.database.tenant import TenantContext


def current_tenant_id(principal: Principal | None) -> UUID | None:
    """Tenant claim parsed as a UUID, or None if absent or unparseable."""
    if principal is None or not principal.tenant_id:
        return None
    try:
        return UUID(principal.tenant_id)
    except (ValueError, TypeError):
        return None


def is_super_admin(principal: Principal | None) -> bool:
    """Whether the principal may act across all tenants."""
    if principal is None:
        return False
    return principal.has_role(Role.SUPER_ADMIN) or not principal.tenant_id


def resolve_tenant_context(principal: Principal | None) -> TenantContext:
    """Build the storage-layer context for ``principal``.

    Anonymous callers get a context with no tenant and no privilege,
    which makes tenant-scoped queries return nothing.
    """
    return TenantContext(
        tenant_id=current_tenant_id(principal),
        is_super_admin=is_super_admin(principal),
    )
