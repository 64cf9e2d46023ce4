"""Translate audit-log query parameters into tenant-scoped SQL predicates."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import false, or_
from sqlalchemy.sql.elements import ColumnElement

from app.models.audit import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES, AuditLog
from app.utils.errors import AuthorizationError, ValidationError
from app.utils.time import parse_iso_utc

logger = logging.getLogger(__name__)

# Valeur envoyée par l'UI admin pour "pas de filtre"
ALL = "all"

# Plus grand entier accepté par une colonne INTEGER (SQLite, BIGINT PostgreSQL)
MAX_SQL_INTEGER = 2**63 - 1


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() in {"", ALL})


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_date(value: Any, field: str) -> datetime | None:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        value = value.isoformat()
    try:
        return parse_iso_utc(str(value))
    except (ValueError, OverflowError) as exc:
        raise ValidationError(f"Invalid {field}: expected an ISO 8601 date.", field=field) from exc


def _parse_user_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        user_id = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            return None
        user_id = int(text)
    return user_id if 0 < user_id <= MAX_SQL_INTEGER else None


@dataclass(frozen=True)
class AuditLogFilter:
    """Validated audit-log predicate. ``organization_id`` always applies."""

    organization_id: int
    action: str | None = None
    entity_type: str | None = None
    performed_by: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    search: str | None = None
    matches_nothing: bool = False

    def clauses(self) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = [AuditLog.organization_id == self.organization_id]
        if self.matches_nothing:
            clauses.append(false())
            return clauses
        if self.action is not None:
            clauses.append(AuditLog.action == self.action)
        if self.entity_type is not None:
            clauses.append(AuditLog.entity_type == self.entity_type)
        if self.performed_by is not None:
            clauses.append(AuditLog.performed_by == self.performed_by)
        if self.start is not None:
            clauses.append(AuditLog.created_at >= self.start)
        if self.end is not None:
            clauses.append(AuditLog.created_at <= self.end)
        if self.search:
            # SQLite: ilike devient lower() LIKE lower(), qui ne replie que l'ASCII.
            # PostgreSQL (ILIKE) replie aussi les lettres accentuées.
            pattern = f"%{_escape_like(self.search)}%"
            clauses.append(
                or_(
                    AuditLog.description.ilike(pattern, escape="\\"),
                    AuditLog.entity_name.ilike(pattern, escape="\\"),
                )
            )
        return clauses


def build_audit_filter(
    organization_id: int | None,
    *,
    action: Any = None,
    entity_type: Any = None,
    performed_by: Any = None,
    start_date: Any = None,
    end_date: Any = None,
    search: str | None = None,
) -> AuditLogFilter:
    """Build an :class:`AuditLogFilter` from raw request values.

    Unknown ``action``/``entity_type`` values and unusable ``performed_by``
    ids produce a filter that matches nothing. Unparseable dates raise
    :class:`ValidationError`.
    """

    if organization_id is None:
        raise AuthorizationError("Organization not found.", code="ORGANIZATION_REQUIRED", status_code=400)

    matches_nothing = False

    action_value = None if _blank(action) else str(action).strip()
    if action_value is not None and action_value not in AUDIT_ACTIONS:
        matches_nothing = True

    entity_value = None if _blank(entity_type) else str(entity_type).strip()
    if entity_value is not None and entity_value not in AUDIT_ENTITY_TYPES:
        matches_nothing = True

    user_id = None
    if not _blank(performed_by):
        user_id = _parse_user_id(performed_by)
        if user_id is None:
            matches_nothing = True

    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")
    if start is not None and end is not None and start > end:
        matches_nothing = True

    term = search if isinstance(search, str) and search else None

    if matches_nothing:
        logger.debug(
            "Audit filter matches nothing",
            extra={"organization_id": organization_id, "action": action, "entity_type": entity_type},
        )

    return AuditLogFilter(
        organization_id=organization_id,
        action=action_value,
        entity_type=entity_value,
        performed_by=user_id,
        start=start,
        end=end,
        search=term,
        matches_nothing=matches_nothing,
    )


__all__ = ["ALL", "MAX_SQL_INTEGER", "AuditLogFilter", "build_audit_filter"]
