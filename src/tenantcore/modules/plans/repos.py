"""Subscription plan repository."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends

from tenantcore.core.auth.dependencies import ScopedSession
from tenantcore.modules.plans.models import SubscriptionPlan


class PlanRepository:
    """Repository for SubscriptionPlan rows (global, not tenant-scoped)."""

    def __init__(self, session: ScopedSession) -> None:
        self.session = session

    async def create(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self.session.add(plan)
        await self.session.flush()
        return plan

    async def get_by_id(self, plan_id: UUID) -> SubscriptionPlan | None:
        return await self.session.get(SubscriptionPlan, plan_id)

    async def get_by_name(self, name: str) -> SubscriptionPlan | None:
        stmt = self.session.select(SubscriptionPlan, SubscriptionPlan.name == name)
        return await self.session.scalar_one_or_none(stmt)

    async def list_all(self) -> list[SubscriptionPlan]:
        stmt = self.session.select(SubscriptionPlan).order_by(
            SubscriptionPlan.price_per_month
        )
        return await self.session.scalars(stmt)

    async def list_active(self) -> list[SubscriptionPlan]:
        stmt = self.session.select(
            SubscriptionPlan,
            SubscriptionPlan.is_active.is_(True),
        ).order_by(SubscriptionPlan.price_per_month)
        return await self.session.scalars(stmt)

    async def update(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        await self.session.flush()
        return plan


# Type alias for dependency injection
PlanRepo = Annotated[PlanRepository, Depends(PlanRepository)]
