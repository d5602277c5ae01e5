"""Tenant isolation filter for the storage layer.

Every tenant-scoped read goes through :class:`TenantScopedSession`, which
adds the isolation predicate from :func:`isolation_criteria` to the
statement. A row is visible only if it is not soft-deleted and either the
caller is a super-admin or the row belongs to the caller's tenant.
Callers without a resolvable tenant see nothing rather than everything.
"""

from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.core.errors import ForbiddenError


ModelT = TypeVar("ModelT")


@dataclass(frozen=True)
class TenantContext:
    """Acting tenant and privilege level for a unit of work."""

    tenant_id: UUID | None = None
    is_super_admin: bool = False

    @classmethod
    def system(cls) -> "TenantContext":
        """Unrestricted context for jobs, seeding and credential lookups."""
        return cls(tenant_id=None, is_super_admin=True)

    @classmethod
    def for_tenant(cls, tenant_id: UUID) -> "TenantContext":
        return cls(tenant_id=tenant_id, is_super_admin=False)


def is_tenant_scoped(model: Any) -> bool:
    """Whether rows of ``model`` belong to a tenant."""
    return bool(getattr(model, "__tenant_scoped__", False))


def isolation_criteria(model: Any, context: TenantContext) -> list[ColumnElement[bool]]:
    """Build the mandatory visibility predicate for ``model``.

    Args:
        model: Mapped class being queried
        context: Acting tenant context

    Returns:
        WHERE clauses to AND onto any query selecting ``model``
    """
    clauses: list[ColumnElement[bool]] = []

    if hasattr(model, "is_deleted"):
        clauses.append(model.is_deleted.is_(False))

    if is_tenant_scoped(model) and not context.is_super_admin:
        if context.tenant_id is None:
            clauses.append(false())
        else:
            clauses.append(model.tenant_id == context.tenant_id)

    return clauses


class TenantScopedSession:
    """AsyncSession wrapper that applies the isolation filter.

    Usage:
        scoped = TenantScopedSession(session, TenantContext.for_tenant(tenant_id))
        users = await scoped.scalars(scoped.select(User))
    """

    def __init__(self, session: AsyncSession, context: TenantContext) -> None:
        self.session = session
        self.context = context

    def select(self, model: type[ModelT], *criteria: Any) -> Select[tuple[ModelT]]:
        """``select(model)`` with the isolation predicate already applied."""
        return select(model).where(*isolation_criteria(model, self.context), *criteria)

    def _apply_isolation(self, statement: Select[Any]) -> Select[Any]:
        for desc in statement.column_descriptions:
            entity = desc.get("entity")
            if entity is not None:
                statement = statement.where(*isolation_criteria(entity, self.context))
        return statement

    async def execute(self, statement: Select[Any]) -> Any:
        """Execute a select with isolation applied to every selected entity."""
        return await self.session.execute(self._apply_isolation(statement))

    async def scalars(self, statement: Select[Any]) -> list[Any]:
        result = await self.execute(statement)
        return list(result.scalars().all())

    async def scalar_one_or_none(self, statement: Select[Any]) -> Any | None:
        result = await self.execute(statement)
        return result.scalar_one_or_none()

    async def count(self, model: Any, *criteria: Any) -> int:
        stmt = (
            select(func.count())
            .select_from(model)
            .where(*isolation_criteria(model, self.context), *criteria)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get(self, model: type[ModelT], ident: Any) -> ModelT | None:
        """Fetch by primary key; rows outside the caller's view return None."""
        stmt = select(model).where(
            model.id == ident,  # type: ignore[attr-defined]
            *isolation_criteria(model, self.context),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def add(self, instance: Any) -> None:
        """Add an instance, stamping or checking its tenant ownership.

        Raises:
            ForbiddenError: If a non-super-admin writes without a tenant
                or into another tenant
        """
        if is_tenant_scoped(type(instance)) and not self.context.is_super_admin:
            if self.context.tenant_id is None:
                raise ForbiddenError(
                    "Tenant context is required for this operation",
                    error_code="tenant_context_required",
                )
            if instance.tenant_id is None:
                instance.tenant_id = self.context.tenant_id
            elif instance.tenant_id != self.context.tenant_id:
                raise ForbiddenError(
                    "Cannot write data belonging to another tenant",
                    error_code="cross_tenant_write",
                )
        self.session.add(instance)

    async def delete(self, instance: Any) -> None:
        """Hard-delete an instance the caller is allowed to see."""
        if is_tenant_scoped(type(instance)) and not self.context.is_super_admin:
            if instance.tenant_id != self.context.tenant_id:
                raise ForbiddenError(
                    "Cannot delete data belonging to another tenant",
                    error_code="cross_tenant_write",
                )
        await self.session.delete(instance)

    async def flush(self) -> None:
        await self.session.flush()
