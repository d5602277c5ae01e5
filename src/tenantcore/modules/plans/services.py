"""Subscription plan catalogue service."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tenantcore.core.errors import ConflictError, NotFoundError
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.plans.repos import PlanRepo
from tenantcore.modules.plans.schemas import PlanCreate, PlanUpdate


logger = structlog.get_logger()


class PlanService:
    """Service for the plan catalogue."""

    def __init__(self, repo: PlanRepo) -> None:
        self.repo = repo

    async def get(self, plan_id: UUID) -> SubscriptionPlan:
        plan = await self.repo.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(
                "Subscription plan not found",
                resource="plan",
                resource_id=str(plan_id),
            )
        return plan

    async def list_all(self) -> list[SubscriptionPlan]:
        return await self.repo.list_all()

    async def list_active(self) -> list[SubscriptionPlan]:
        return await self.repo.list_active()

    async def _ensure_name_free(self, name: str, plan_id: UUID | None = None) -> None:
        existing = await self.repo.get_by_name(name)
        if existing is not None and existing.id != plan_id:
            raise ConflictError(
                "A plan with this name already exists",
                error_code="plan_exists",
                details={"name": name},
            )

    async def create(self, data: PlanCreate) -> SubscriptionPlan:
        await self._ensure_name_free(data.name)
        plan = await self.repo.create(SubscriptionPlan(**data.model_dump()))
        logger.info("plan_created", plan_id=str(plan.id), name=plan.name)
        return plan

    async def update(self, plan_id: UUID, data: PlanUpdate) -> SubscriptionPlan:
        plan = await self.get(plan_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            await self._ensure_name_free(changes["name"], plan.id)

        for field, value in changes.items():
            setattr(plan, field, value)
        await self.repo.update(plan)

        logger.info("plan_updated", plan_id=str(plan.id), fields=sorted(changes))
        return plan

    async def deactivate(self, plan_id: UUID) -> SubscriptionPlan:
        """Hide the plan from new selection; current subscribers are unaffected."""
        plan = await self.get(plan_id)
        plan.is_active = False
        await self.repo.update(plan)
        logger.info("plan_deactivated", plan_id=str(plan.id))
        return plan


# Type alias for dependency injection
PlanSvc = Annotated[PlanService, Depends(PlanService)]
