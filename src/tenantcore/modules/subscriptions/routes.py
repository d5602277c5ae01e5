"""Subscription API routes.

Reads are isolated: tenant principals only ever see their own tenant's
subscriptions, and unknown ids from other tenants are reported as 404.
"""

from uuid import UUID

from fastapi import APIRouter, Query

from tenantcore.core.auth.dependencies import (
    CurrentPrincipal,
    SuperAdmin,
    TenantAdmin,
    resolve_target_tenant,
)
from tenantcore.core.database import utcnow
from tenantcore.modules.subscriptions.schemas import (
    SubscriptionResponse,
    UpgradeSubscriptionRequest,
)
from tenantcore.modules.subscriptions.services import SubscriptionSvc


router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get(
    "/current",
    response_model=SubscriptionResponse,
    summary="Get the current subscription",
    description="Super-admins pass ``tenant_id``; tenant principals get their own.",
)
async def get_current_subscription(
    principal: CurrentPrincipal,
    service: SubscriptionSvc,
    tenant_id: UUID | None = Query(None),
) -> SubscriptionResponse:
    target = resolve_target_tenant(principal, tenant_id)
    return SubscriptionResponse.from_subscription(await service.get_current(target))


@router.get(
    "/expired",
    response_model=list[SubscriptionResponse],
    summary="List subscriptions awaiting renewal",
)
async def list_expired_subscriptions(
    _admin: SuperAdmin,
    service: SubscriptionSvc,
) -> list[SubscriptionResponse]:
    now = utcnow()
    return [
        SubscriptionResponse.from_subscription(s, now)
        for s in await service.list_expired()
    ]


@router.get(
    "/tenant/{tenant_id}",
    response_model=list[SubscriptionResponse],
    summary="Subscription history for a tenant",
)
async def list_tenant_subscriptions(
    tenant_id: UUID,
    principal: CurrentPrincipal,
    service: SubscriptionSvc,
) -> list[SubscriptionResponse]:
    target = resolve_target_tenant(principal, tenant_id)
    now = utcnow()
    return [
        SubscriptionResponse.from_subscription(s, now)
        for s in await service.list_for_tenant(target)
    ]


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get a subscription",
)
async def get_subscription(
    subscription_id: UUID,
    _principal: CurrentPrincipal,
    service: SubscriptionSvc,
) -> SubscriptionResponse:
    return SubscriptionResponse.from_subscription(await service.get_by_id(subscription_id))


@router.post(
    "/upgrade",
    response_model=SubscriptionResponse,
    summary="Upgrade to another plan",
    description="Cancels the current ACTIVE subscription and starts a new one "
    "on the chosen plan immediately. No proration.",
)
async def upgrade_subscription(
    data: UpgradeSubscriptionRequest,
    principal: TenantAdmin,
    service: SubscriptionSvc,
) -> SubscriptionResponse:
    target = resolve_target_tenant(principal, data.tenant_id)
    subscription = await service.upgrade(
        target,
        data.plan_id,
        payment_method_id=data.payment_method_id,
    )
    return SubscriptionResponse.from_subscription(subscription)


@router.post(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel a subscription",
)
async def cancel_subscription(
    subscription_id: UUID,
    _admin: TenantAdmin,
    service: SubscriptionSvc,
) -> SubscriptionResponse:
    return SubscriptionResponse.from_subscription(await service.cancel(subscription_id))
