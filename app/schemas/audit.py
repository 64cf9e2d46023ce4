"""Audit log schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T


class ActorRead(BaseModel):
    """Display identity of the user who performed an action."""

    id: int
    firstname: str | None = None
    lastname: str | None = None
    username: str
    email: str
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogRead(BaseModel):
    id: int
    action: str
    entity_type: str
    entity_id: int | None = None
    entity_name: str | None = None
    description: str
    # ``performed_by`` garde l'identité affichable; l'id brut reste dispo à part.
    performed_by_id: int | None = Field(
        default=None, validation_alias=AliasChoices("performed_by_id", "performed_by")
    )
    performed_by: ActorRead | None = Field(default=None, validation_alias="actor")
    organization_id: int
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class AuditLogPage(BaseModel):
    records: list[AuditLogRead]
    pagination: Pagination


class ActionCount(BaseModel):
    action: str
    count: int


class EntityCount(BaseModel):
    entity: str
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class AuditStats(BaseModel):
    totalLogs: int
    actionCounts: list[ActionCount]
    entityCounts: list[EntityCount]
    recentActivity: list[DailyCount]


class RetentionRequest(BaseModel):
    daysToKeep: int | None = None


class RetentionResult(BaseModel):
    deletedCount: int
    daysToKeep: int
    scope: str
