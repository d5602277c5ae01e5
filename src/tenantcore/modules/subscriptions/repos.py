"""Tenant subscription repository."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete

from tenantcore.core.auth.dependencies import ScopedSession
from tenantcore.core.database.base import utcnow
from tenantcore.modules.subscriptions.models import (
    CURRENT_STATUSES,
    SWEEPABLE_STATUSES,
    SubscriptionStatus,
    TenantSubscription,
)


class SubscriptionRepository:
    """Repository for TenantSubscription rows (tenant-scoped)."""

    def __init__(self, session: ScopedSession) -> None:
        self.session = session

    async def create(self, subscription: TenantSubscription) -> TenantSubscription:
        self.session.add(subscription)
        await self.session.flush()
        return subscription

    async def get_by_id(self, subscription_id: UUID) -> TenantSubscription | None:
        return await self.session.get(TenantSubscription, subscription_id)

    async def get_current_for_tenant(self, tenant_id: UUID) -> TenantSubscription | None:
        """Newest subscription that is not EXPIRED or CANCELLED."""
        stmt = (
            self.session.select(
                TenantSubscription,
                TenantSubscription.tenant_id == tenant_id,
                TenantSubscription.status.in_(CURRENT_STATUSES),
            )
            .order_by(TenantSubscription.created_at.desc())
            .limit(1)
        )
        return await self.session.scalar_one_or_none(stmt)

    async def list_active_for_tenant(self, tenant_id: UUID) -> list[TenantSubscription]:
        stmt = self.session.select(
            TenantSubscription,
            TenantSubscription.tenant_id == tenant_id,
            TenantSubscription.status == SubscriptionStatus.ACTIVE,
        )
        return await self.session.scalars(stmt)

    async def list_for_tenant(self, tenant_id: UUID) -> list[TenantSubscription]:
        """Subscription history, newest first."""
        stmt = self.session.select(
            TenantSubscription,
            TenantSubscription.tenant_id == tenant_id,
        ).order_by(TenantSubscription.created_at.desc())
        return await self.session.scalars(stmt)

    async def list_expired(self, now: datetime | None = None) -> list[TenantSubscription]:
        """Ended ACTIVE or TRIAL subscriptions awaiting the renewal sweep.

        PAST_DUE, EXPIRED and CANCELLED rows are never re-selected.
        """
        stmt = self.session.select(
            TenantSubscription,
            TenantSubscription.end_date < (now or utcnow()),
            TenantSubscription.status.in_(SWEEPABLE_STATUSES),
        ).order_by(TenantSubscription.end_date)
        return await self.session.scalars(stmt)

    async def update(self, subscription: TenantSubscription) -> TenantSubscription:
        await self.session.flush()
        return subscription

    async def delete_for_tenant(self, tenant_id: UUID) -> int:
        result = await self.session.session.execute(
            delete(TenantSubscription).where(TenantSubscription.tenant_id == tenant_id)
        )
        return int(result.rowcount or 0)


# Type alias for dependency injection
SubscriptionRepo = Annotated[SubscriptionRepository, Depends(SubscriptionRepository)]
