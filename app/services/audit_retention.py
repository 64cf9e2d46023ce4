"""On-demand retention sweep for audit logs."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.audit import AuditLog
from app.utils.errors import StoreError, ValidationError
from app.utils.time import days_before

logger = logging.getLogger(__name__)


def resolve_days_to_keep(value: Any = None) -> int:
    """Validate ``daysToKeep`` against the configured retention bounds."""

    settings = get_settings()
    if value is None or value == "":
        return settings.AUDIT_RETENTION_DEFAULT_DAYS
    if isinstance(value, bool):
        raise ValidationError("daysToKeep must be an integer.", field="daysToKeep")
    try:
        days = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("daysToKeep must be an integer.", field="daysToKeep") from exc
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("daysToKeep must be an integer.", field="daysToKeep")

    if days < settings.AUDIT_RETENTION_MIN_DAYS:
        raise ValidationError(
            f"Days to keep must be at least {settings.AUDIT_RETENTION_MIN_DAYS}",
            field="daysToKeep",
        )
    if days > settings.AUDIT_RETENTION_MAX_DAYS:
        raise ValidationError(
            f"Days to keep must be at most {settings.AUDIT_RETENTION_MAX_DAYS}",
            field="daysToKeep",
        )
    return days


def purge_audit_logs(
    db: Session,
    days_to_keep: int,
    *,
    organization_id: int | None = None,
    now: datetime | None = None,
) -> int:
    """Delete records created before ``now - days_to_keep`` and return how many went.

    ``organization_id=None`` sweeps every tenant.
    """

    cutoff = days_before(days_to_keep, now)
    stmt = delete(AuditLog).where(AuditLog.created_at < cutoff)
    if organization_id is not None:
        stmt = stmt.where(AuditLog.organization_id == organization_id)

    try:
        result = db.execute(stmt.execution_options(synchronize_session=False))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Audit retention sweep failed",
            extra={"organization_id": organization_id, "days_to_keep": days_to_keep},
        )
        raise StoreError() from exc

    deleted = result.rowcount or 0
    logger.info(
        "Audit retention sweep done",
        extra={
            "organization_id": organization_id,
            "days_to_keep": days_to_keep,
            "cutoff": cutoff.isoformat(),
            "deleted": deleted,
        },
    )
    return deleted


__all__ = ["purge_audit_logs", "resolve_days_to_keep"]
