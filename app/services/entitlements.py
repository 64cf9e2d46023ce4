"""Plan features and subscription checks."""
from __future__ import annotations

import logging

from app.models.organization import Organization, SubscriptionPlan, SubscriptionStatus
from app.utils.errors import AuthorizationError

logger = logging.getLogger(__name__)

_STARTER = ("basic_grievance",)
_PROFESSIONAL = _STARTER + (
    "advanced_permissions",
    "custom_roles",
    "audit_logs",
    "api_access",
)
_ENTERPRISE = _PROFESSIONAL + (
    "sso",
    "custom_integrations",
    "priority_support",
    "dedicated_support",
    "sla_guarantee",
    "on_premise",
)

PLAN_FEATURES: dict[SubscriptionPlan, frozenset[str]] = {
    SubscriptionPlan.starter: frozenset(_STARTER),
    SubscriptionPlan.professional: frozenset(_PROFESSIONAL),
    SubscriptionPlan.enterprise: frozenset(_ENTERPRISE),
}

# Ordre croissant des offres
PLAN_ORDER = (SubscriptionPlan.starter, SubscriptionPlan.professional, SubscriptionPlan.enterprise)

ENTITLED_STATUSES = frozenset({SubscriptionStatus.active, SubscriptionStatus.trialing})


def minimum_plan_for(feature: str) -> SubscriptionPlan | None:
    """Return the cheapest plan that includes ``feature``."""

    for plan in PLAN_ORDER:
        if feature in PLAN_FEATURES[plan]:
            return plan
    return None


def has_feature(organization: Organization, feature: str) -> bool:
    return (
        organization.subscription_status in ENTITLED_STATUSES
        and feature in PLAN_FEATURES.get(organization.plan, frozenset())
    )


def ensure_feature(organization: Organization, feature: str) -> None:
    """Raise ``AuthorizationError`` unless the organization may use ``feature``."""

    if organization.subscription_status not in ENTITLED_STATUSES:
        logger.info(
            "Feature denied: no active subscription",
            extra={"organization_id": organization.id, "feature": feature},
        )
        raise AuthorizationError(
            "An active subscription is required to access this feature.",
            code="SUBSCRIPTION_REQUIRED",
            details={"subscription_status": organization.subscription_status.value},
        )

    if feature not in PLAN_FEATURES.get(organization.plan, frozenset()):
        required = minimum_plan_for(feature)
        logger.info(
            "Feature denied: plan does not include feature",
            extra={"organization_id": organization.id, "feature": feature, "plan": organization.plan.value},
        )
        raise AuthorizationError(
            f"The '{feature}' feature is not available on the {organization.plan.value} plan.",
            code="FEATURE_NOT_AVAILABLE",
            details={
                "feature": feature,
                "current_plan": organization.plan.value,
                "required_plan": required.value if required else None,
            },
        )


__all__ = [
    "ENTITLED_STATUSES",
    "PLAN_FEATURES",
    "ensure_feature",
    "has_feature",
    "minimum_plan_for",
]
