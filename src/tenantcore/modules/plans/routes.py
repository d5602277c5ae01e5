"""Subscription plan API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from tenantcore.core.auth.dependencies import SuperAdmin
from tenantcore.modules.plans.schemas import PlanCreate, PlanResponse, PlanUpdate
from tenantcore.modules.plans.services import PlanSvc


router = APIRouter(prefix="/plans", tags=["plans"])


@router.get(
    "/active",
    response_model=list[PlanResponse],
    summary="List plans open for selection",
)
async def list_active_plans(service: PlanSvc) -> list[PlanResponse]:
    return [PlanResponse.model_validate(p) for p in await service.list_active()]


@router.get(
    "",
    response_model=list[PlanResponse],
    summary="List all plans",
)
async def list_plans(_admin: SuperAdmin, service: PlanSvc) -> list[PlanResponse]:
    return [PlanResponse.model_validate(p) for p in await service.list_all()]


@router.get(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Get a plan",
)
async def get_plan(plan_id: UUID, service: PlanSvc) -> PlanResponse:
    return PlanResponse.model_validate(await service.get(plan_id))


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a plan",
)
async def create_plan(
    data: PlanCreate,
    _admin: SuperAdmin,
    service: PlanSvc,
) -> PlanResponse:
    return PlanResponse.model_validate(await service.create(data))


@router.put(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Update a plan",
)
async def update_plan(
    plan_id: UUID,
    data: PlanUpdate,
    _admin: SuperAdmin,
    service: PlanSvc,
) -> PlanResponse:
    return PlanResponse.model_validate(await service.update(plan_id, data))


@router.post(
    "/{plan_id}/deactivate",
    response_model=PlanResponse,
    summary="Deactivate a plan",
)
async def deactivate_plan(
    plan_id: UUID,
    _admin: SuperAdmin,
    service: PlanSvc,
) -> PlanResponse:
    return PlanResponse.model_validate(await service.deactivate(plan_id))
