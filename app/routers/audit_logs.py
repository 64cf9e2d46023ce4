"""Audit log query, statistics and retention endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.models.organization import Organization
from app.schemas.audit import (
    AuditLogPage,
    AuditLogRead,
    AuditStats,
    Envelope,
    Pagination,
    RetentionRequest,
    RetentionResult,
)
from app.security import require_feature, require_scope
from app.services.audit_filters import build_audit_filter
from app.services.audit_logs import (
    get_audit_log,
    list_action_types,
    list_audit_logs,
    resolve_pagination,
)
from app.services.audit_retention import purge_audit_logs, resolve_days_to_keep
from app.services.audit_stats import get_audit_log_stats
from app.services.entitlements import ensure_feature
from app.utils.errors import AuthorizationError

FEATURE = "audit_logs"

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])
logger = logging.getLogger(__name__)


@router.get("", response_model=Envelope[AuditLogPage])
def list_logs(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    action: str | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    performed_by: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    organization: Organization = Depends(require_feature(FEATURE)),
) -> Envelope[AuditLogPage]:
    """List the caller's audit logs, most recent first."""

    audit_filter = build_audit_filter(
        organization.id,
        action=action,
        entity_type=entity_type,
        performed_by=performed_by,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    pagination = resolve_pagination(page, limit)
    result = list_audit_logs(db, audit_filter, pagination)
    return Envelope[AuditLogPage](
        message="Audit logs retrieved successfully",
        data=AuditLogPage(
            records=[AuditLogRead.model_validate(record) for record in result["records"]],
            pagination=Pagination(**result["pagination"]),
        ),
    )


@router.get("/stats", response_model=Envelope[AuditStats])
def logs_stats(
    db: Session = Depends(get_db),
    organization: Organization = Depends(require_feature(FEATURE)),
) -> Envelope[AuditStats]:
    stats = get_audit_log_stats(db, organization.id)
    return Envelope[AuditStats](
        message="Audit log statistics retrieved successfully",
        data=AuditStats.model_validate(stats),
    )


@router.get("/action-types", response_model=Envelope[list[str]])
def action_types(
    db: Session = Depends(get_db),
    organization: Organization = Depends(require_feature(FEATURE)),
) -> Envelope[list[str]]:
    return Envelope[list[str]](
        message="Action types retrieved successfully",
        data=list_action_types(db, organization.id),
    )


@router.get("/{log_id}", response_model=Envelope[AuditLogRead])
def read_log(
    log_id: str,
    db: Session = Depends(get_db),
    organization: Organization = Depends(require_feature(FEATURE)),
) -> Envelope[AuditLogRead]:
    record = get_audit_log(db, organization.id, log_id)
    return Envelope[AuditLogRead](
        message="Audit log retrieved successfully",
        data=AuditLogRead.model_validate(record),
    )


@router.delete("", response_model=Envelope[RetentionResult])
def purge_logs(
    payload: RetentionRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin})),
) -> Envelope[RetentionResult]:
    """Delete audit logs older than ``daysToKeep`` days.

    A system admin key (no organization) sweeps every tenant; an organization
    admin key only sweeps its own tenant.
    """

    days = resolve_days_to_keep(payload.daysToKeep if payload else None)

    organization_id = api_key.organization_id
    if organization_id is not None:
        organization = db.get(Organization, organization_id)
        if organization is None:
            raise AuthorizationError("Organization not found.", code="ORGANIZATION_REQUIRED", status_code=400)
        ensure_feature(organization, FEATURE)

    deleted = purge_audit_logs(db, days, organization_id=organization_id)
    logger.info(
        "Audit logs purged via API",
        extra={"api_key_id": api_key.id, "organization_id": organization_id, "deleted": deleted},
    )
    return Envelope[RetentionResult](
        message=f"Deleted {deleted} audit logs older than {days} days",
        data=RetentionResult(
            deletedCount=deleted,
            daysToKeep=days,
            scope="system" if organization_id is None else "organization",
        ),
    )
