"""Paginated audit-log reads, single lookup and distinct action types."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.config import get_settings
from app.models.audit import AuditLog
from app.services.audit_filters import MAX_SQL_INTEGER, AuditLogFilter
from app.utils.errors import NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer.", field=field)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{field} must be an integer.", field=field) from exc


def resolve_pagination(page: Any = None, limit: Any = None) -> PageRequest:
    """Validate raw ``page``/``limit`` values.

    ``page`` defaults to 1 and is coerced to at least 1. ``limit`` defaults to
    ``AUDIT_LOG_DEFAULT_PAGE_SIZE``, must be positive, and is capped at
    ``AUDIT_LOG_MAX_PAGE_SIZE``. A page whose offset exceeds the SQL integer
    range is rejected.
    """

    settings = get_settings()
    page_value = 1 if page in (None, "") else max(_as_int(page, "page"), 1)

    if limit in (None, ""):
        limit_value = settings.AUDIT_LOG_DEFAULT_PAGE_SIZE
    else:
        limit_value = _as_int(limit, "limit")
        if limit_value < 1:
            raise ValidationError("limit must be a positive integer.", field="limit")
    limit_value = min(limit_value, settings.AUDIT_LOG_MAX_PAGE_SIZE)
    if (page_value - 1) * limit_value > MAX_SQL_INTEGER:
        raise ValidationError("page is out of range.", field="page")
    return PageRequest(page=page_value, limit=limit_value)


def list_audit_logs(db: Session, audit_filter: AuditLogFilter, pagination: PageRequest) -> dict[str, Any]:
    """Return one page of matching records, most recent first, with pagination metadata."""

    clauses = audit_filter.clauses()
    try:
        total = db.execute(select(func.count(AuditLog.id)).where(*clauses)).scalar_one()
        records = (
            db.execute(
                select(AuditLog)
                .options(joinedload(AuditLog.actor))
                .where(*clauses)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .offset(pagination.offset)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception(
            "Audit log listing failed",
            extra={"organization_id": audit_filter.organization_id},
        )
        raise StoreError() from exc

    return {
        "records": list(records),
        "pagination": {
            "total": total,
            "page": pagination.page,
            "limit": pagination.limit,
            "totalPages": math.ceil(total / pagination.limit),
        },
    }


def get_audit_log(db: Session, organization_id: int, log_id: Any) -> AuditLog:
    """Return one record of the tenant. Missing and foreign records raise the same error."""

    try:
        record_id = int(str(log_id))
    except ValueError:
        raise NotFoundError("Audit log not found") from None
    if not 0 < record_id <= MAX_SQL_INTEGER:
        raise NotFoundError("Audit log not found")

    try:
        record = db.execute(
            select(AuditLog)
            .options(joinedload(AuditLog.actor))
            .where(AuditLog.id == record_id, AuditLog.organization_id == organization_id)
        ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("Audit log lookup failed", extra={"organization_id": organization_id, "log_id": record_id})
        raise StoreError() from exc

    if record is None:
        raise NotFoundError("Audit log not found")
    return record


def list_action_types(db: Session, organization_id: int) -> list[str]:
    """Return the distinct actions recorded for the tenant, sorted."""

    try:
        rows = db.execute(
            select(AuditLog.action)
            .where(AuditLog.organization_id == organization_id)
            .distinct()
            .order_by(AuditLog.action.asc())
        ).scalars()
        return list(rows)
    except SQLAlchemyError as exc:
        logger.exception("Audit action types query failed", extra={"organization_id": organization_id})
        raise StoreError() from exc


__all__ = [
    "PageRequest",
    "get_audit_log",
    "list_action_types",
    "list_audit_logs",
    "resolve_pagination",
]
