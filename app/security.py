# app/security.py
"""Security dependencies: API key validation, scopes, tenant and feature gates."""
from __future__ import annotations

from datetime import datetime, UTC
from typing import Callable, Set

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.models.organization import Organization
from app.services.entitlements import ensure_feature
from app.utils.apikey import find_valid_key
from app.utils.errors import AuthorizationError, error_response


def _extract_key(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str | None:
    """Récupère la clé depuis Authorization: Bearer ... ou X-API-Key."""
    if x_api_key:
        return x_api_key.strip()
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def require_api_key(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_key),
) -> ApiKey:
    """Validate API key tokens and return the corresponding row."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("NO_API_KEY", "API key required."),
        )

    key = find_valid_key(db, token)
    if key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("UNAUTHORIZED", "Invalid or expired API key"),
        )

    key.last_used_at = datetime.now(UTC)
    db.commit()
    return key


def require_scope(allowed: Set[ApiScope]) -> Callable:
    """Enforce qu'une clé possède l'un des scopes autorisés."""

    if not allowed:
        raise RuntimeError("require_scope needs a non-empty set of ApiScope")

    def _dep(key: ApiKey = Depends(require_api_key)) -> ApiKey:
        if key.scope == ApiScope.admin or key.scope in allowed:
            return key
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response(
                "INSUFFICIENT_SCOPE",
                f"Requires one of: {sorted(scope.value for scope in allowed)}",
            ),
        )

    return _dep


def require_tenant(key: ApiKey = Depends(require_api_key)) -> int:
    """Return the caller's organization id, taken from the API key only."""

    if key.organization_id is None:
        raise AuthorizationError(
            "Organization not found for this API key.",
            code="ORGANIZATION_REQUIRED",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return key.organization_id


def require_feature(feature: str) -> Callable:
    """Gate a route behind a plan feature of the caller's organization."""

    def _dep(
        organization_id: int = Depends(require_tenant),
        db: Session = Depends(get_db),
    ) -> Organization:
        organization = db.get(Organization, organization_id)
        if organization is None:
            raise AuthorizationError(
                "Organization not found.",
                code="ORGANIZATION_REQUIRED",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        ensure_feature(organization, feature)
        return organization

    return _dep


__all__ = ["require_api_key", "require_feature", "require_scope", "require_tenant"]
