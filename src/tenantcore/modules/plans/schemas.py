"""Pydantic schemas for subscription plans."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tenantcore.core.constants import MAX_DESCRIPTION_LENGTH, MAX_PLAN_NAME_LENGTH


class PlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_PLAN_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    price_per_month: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    max_users: int = Field(..., ge=1)
    max_storage_gb: int = Field(..., ge=1)
    has_api_access: bool = False
    has_advanced_reporting: bool = False


class PlanCreate(PlanBase):
    pass


class PlanUpdate(BaseModel):
    """Partial plan update. Existing subscriptions keep referencing the plan."""

    name: str | None = Field(None, min_length=1, max_length=MAX_PLAN_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    price_per_month: Decimal | None = Field(None, ge=0, max_digits=18, decimal_places=2)
    max_users: int | None = Field(None, ge=1)
    max_storage_gb: int | None = Field(None, ge=1)
    has_api_access: bool | None = None
    has_advanced_reporting: bool | None = None
    is_active: bool | None = None


class PlanResponse(PlanBase):
    id: UUID
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
