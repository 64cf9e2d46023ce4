"""Audit log model."""
from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Base


class AuditAction(str, enum.Enum):
    """Closed set of tracked actions."""

    ORGANIZATION_CREATED = "ORGANIZATION_CREATED"
    ORGANIZATION_APPROVED = "ORGANIZATION_APPROVED"
    ORGANIZATION_REJECTED = "ORGANIZATION_REJECTED"
    ORGANIZATION_SUSPENDED = "ORGANIZATION_SUSPENDED"
    ORGANIZATION_ACTIVATED = "ORGANIZATION_ACTIVATED"
    ORGANIZATION_DELETED = "ORGANIZATION_DELETED"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_ACTIVATED = "USER_ACTIVATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_DELETED = "USER_DELETED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_ACTIVATED = "PROJECT_ACTIVATED"
    PROJECT_DEACTIVATED = "PROJECT_DEACTIVATED"
    PROJECT_DELETED = "PROJECT_DELETED"
    ROLE_CREATED = "ROLE_CREATED"
    ROLE_UPDATED = "ROLE_UPDATED"
    ROLE_ACTIVATED = "ROLE_ACTIVATED"
    ROLE_DEACTIVATED = "ROLE_DEACTIVATED"
    ROLE_DELETED = "ROLE_DELETED"
    GRIEVANCE_CREATED = "GRIEVANCE_CREATED"
    GRIEVANCE_STATUS_CHANGED = "GRIEVANCE_STATUS_CHANGED"
    GRIEVANCE_DELETED = "GRIEVANCE_DELETED"
    DEPARTMENT_CREATED = "DEPARTMENT_CREATED"
    DEPARTMENT_UPDATED = "DEPARTMENT_UPDATED"
    DEPARTMENT_DELETED = "DEPARTMENT_DELETED"
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    OTHER = "OTHER"


class AuditEntityType(str, enum.Enum):
    """Closed set of entity categories an action can target."""

    ORGANIZATION = "Organization"
    USER = "User"
    PROJECT = "Project"
    ROLE = "Role"
    GRIEVANCE = "Grievance"
    DEPARTMENT = "Department"
    TASK = "Task"
    BOARD = "Board"
    OTHER = "Other"


AUDIT_ACTIONS = frozenset(item.value for item in AuditAction)
AUDIT_ENTITY_TYPES = frozenset(item.value for item in AuditEntityType)


class AuditLog(Base):
    """Immutable record of an action performed inside an organization."""

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # Référence faible: l'entité peut avoir été supprimée depuis.
    entity_id: Mapped[int | None] = mapped_column(nullable=True)
    entity_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    performed_by: Mapped[int | None] = mapped_column(nullable=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    actor = relationship(
        "User",
        primaryjoin="foreign(AuditLog.performed_by) == User.id",
        viewonly=True,
        uselist=False,
    )

    @validates("action")
    def _validate_action(self, key: str, value: Any) -> str:
        value = getattr(value, "value", value)
        if value not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {value!r}")
        return value

    @validates("entity_type")
    def _validate_entity_type(self, key: str, value: Any) -> str:
        value = getattr(value, "value", value)
        if value not in AUDIT_ENTITY_TYPES:
            raise ValueError(f"Unknown audit entity type: {value!r}")
        return value


Index("ix_audit_logs_created_at", AuditLog.created_at.desc())
Index("ix_audit_logs_org_created_at", AuditLog.organization_id, AuditLog.created_at.desc())
Index("ix_audit_logs_action_created_at", AuditLog.action, AuditLog.created_at.desc())
Index("ix_audit_logs_entity_type_created_at", AuditLog.entity_type, AuditLog.created_at.desc())
Index("ix_audit_logs_performed_by_created_at", AuditLog.performed_by, AuditLog.created_at.desc())


__all__ = [
    "AUDIT_ACTIONS",
    "AUDIT_ENTITY_TYPES",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
]
