"""Audit logging helper utilities (producer side)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.audit import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES, AuditLog
from app.utils.errors import ValidationError

logger = logging.getLogger(__name__)


SENSITIVE_KEYS = {
    "email",
    "password",
    "token",
    "secret",
    "api_key",
    "iban",
    "card_number",
}


def _mask_value(key: str, value: Any) -> Any:
    if value is None:
        return None

    if key in {"iban", "card_number"}:
        stripped = str(value).replace(" ", "")
        if len(stripped) <= 4:
            return f"***{stripped}"
        return f"***{stripped[-4:]}"

    if key == "email":
        text = str(value)
        if "@" in text:
            _, domain = text.split("@", 1)
            return f"***@{domain}"
        return "***"

    return "***"


def sanitize_metadata(data: Any) -> Any:
    """Return a copy of ``data`` with obvious PII and secret fields masked."""

    if isinstance(data, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            masked_value = _mask_value(key, value) if str(key).lower() in SENSITIVE_KEYS else value
            sanitized[key] = sanitize_metadata(masked_value)
        return sanitized

    if isinstance(data, list):
        return [sanitize_metadata(item) for item in data]

    return data


def describe_action(action: str, entity_label: str, name: str | None = None, performer: str | None = None) -> str:
    """Build the display description, e.g. ``User "jdoe" - user created by admin``."""

    words = action.replace("_", " ").lower()
    subject = f'{entity_label} "{name}"' if name else entity_label
    description = f"{subject} - {words}"
    if performer:
        description += f" by {performer}"
    return description


@dataclass(frozen=True)
class RequestContext:
    ip_address: str | None
    user_agent: str | None
    performed_by: int | None
    organization_id: int | None


def request_context(request: Request, api_key: Any = None) -> RequestContext:
    """Extract who/where information for an audit record from the request."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",", 1)[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return RequestContext(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        performed_by=getattr(api_key, "user_id", None),
        organization_id=getattr(api_key, "organization_id", None),
    )


def record_audit(
    db: Session,
    *,
    action: str,
    entity_type: str,
    description: str,
    organization_id: int,
    entity_id: int | None = None,
    entity_name: str | None = None,
    performed_by: int | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    context: RequestContext | None = None,
) -> AuditLog:
    """Add an audit entry to the session. The caller owns the commit."""

    action = getattr(action, "value", action)
    entity_type = getattr(entity_type, "value", entity_type)
    if action not in AUDIT_ACTIONS:
        raise ValidationError(f"Unknown audit action: {action}", field="action")
    if entity_type not in AUDIT_ENTITY_TYPES:
        raise ValidationError(f"Unknown entity type: {entity_type}", field="entity_type")

    if context is not None:
        ip_address = ip_address or context.ip_address
        user_agent = user_agent or context.user_agent
        if performed_by is None:
            performed_by = context.performed_by

    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_name=entity_name,
        description=description,
        performed_by=performed_by,
        organization_id=organization_id,
        ip_address=ip_address,
        user_agent=user_agent,
        meta=sanitize_metadata(dict(metadata or {})),
    )
    db.add(entry)
    logger.debug(
        "Audit record queued",
        extra={"action": action, "entity_type": entity_type, "organization_id": organization_id},
    )
    return entry


__all__ = [
    "RequestContext",
    "SENSITIVE_KEYS",
    "describe_action",
    "record_audit",
    "request_context",
    "sanitize_metadata",
]
