"""ORM models package."""
from .api_key import ApiKey, ApiScope
from .audit import AuditAction, AuditEntityType, AuditLog
from .base import Base
from .organization import Organization, SubscriptionPlan, SubscriptionStatus
from .user import User

__all__ = [
    "ApiKey",
    "ApiScope",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Base",
    "Organization",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "User",
]
