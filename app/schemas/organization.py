"""Organization schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.organization import SubscriptionPlan, SubscriptionStatus


class OrganizationCreate(BaseModel):
    name: str
    plan: SubscriptionPlan = SubscriptionPlan.starter
    subscription_status: SubscriptionStatus = SubscriptionStatus.pending

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("name cannot be blank")
        return value.strip()


class OrganizationRead(BaseModel):
    id: int
    name: str
    plan: SubscriptionPlan
    subscription_status: SubscriptionStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
