"""Schema package exports."""
from .audit import (
    ActorRead,
    AuditLogPage,
    AuditLogRead,
    AuditStats,
    Envelope,
    Pagination,
    RetentionRequest,
    RetentionResult,
)
from .organization import OrganizationCreate, OrganizationRead
from .user import UserCreate, UserRead

__all__ = [
    "ActorRead",
    "AuditLogPage",
    "AuditLogRead",
    "AuditStats",
    "Envelope",
    "OrganizationCreate",
    "OrganizationRead",
    "Pagination",
    "RetentionRequest",
    "RetentionResult",
    "UserCreate",
    "UserRead",
]
