"""Tenant-scoped audit-log statistics."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.audit import AuditLog
from app.utils.errors import StoreError
from app.utils.time import days_before

logger = logging.getLogger(__name__)


def _day_bucket(dialect_name: str):
    """UTC ``YYYY-MM-DD`` label of ``created_at`` for the current dialect."""

    if dialect_name == "sqlite":
        return func.strftime("%Y-%m-%d", AuditLog.created_at)
    if dialect_name == "postgresql":
        return func.to_char(func.timezone("UTC", AuditLog.created_at), "YYYY-MM-DD")
    return func.date(AuditLog.created_at)


def get_audit_log_stats(db: Session, organization_id: int, *, now: datetime | None = None) -> dict[str, Any]:
    """Compute totals, top actions, entity counts and the daily trend.

    Any failing query aborts the whole computation with :class:`StoreError`.
    """

    settings = get_settings()
    tenant = AuditLog.organization_id == organization_id
    window_start = days_before(settings.AUDIT_STATS_TREND_DAYS, now)

    try:
        total = db.execute(select(func.count(AuditLog.id)).where(tenant)).scalar_one()

        action_count = func.count(AuditLog.id).label("count")
        action_rows = db.execute(
            select(AuditLog.action, action_count)
            .where(tenant)
            .group_by(AuditLog.action)
            .order_by(action_count.desc(), AuditLog.action.asc())
            .limit(settings.AUDIT_STATS_TOP_ACTIONS)
        ).all()

        entity_count = func.count(AuditLog.id).label("count")
        entity_rows = db.execute(
            select(AuditLog.entity_type, entity_count)
            .where(tenant)
            .group_by(AuditLog.entity_type)
            .order_by(entity_count.desc(), AuditLog.entity_type.asc())
        ).all()

        day = _day_bucket(db.get_bind().dialect.name).label("day")
        trend_rows = db.execute(
            select(day, func.count(AuditLog.id))
            .where(tenant, AuditLog.created_at >= window_start)
            .group_by(day)
            .order_by(day.asc())
        ).all()
    except SQLAlchemyError as exc:
        logger.exception("Audit stats computation failed", extra={"organization_id": organization_id})
        raise StoreError() from exc

    return {
        "totalLogs": total,
        "actionCounts": [{"action": action, "count": count} for action, count in action_rows],
        "entityCounts": [{"entity": entity, "count": count} for entity, count in entity_rows],
        "recentActivity": [{"date": str(label), "count": count} for label, count in trend_rows],
    }


__all__ = ["get_audit_log_stats"]
