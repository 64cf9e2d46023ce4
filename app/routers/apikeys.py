# app/routers/apikeys.py
from __future__ import annotations

from datetime import datetime, UTC, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.models.audit import AuditAction, AuditEntityType
from app.models.organization import Organization
from app.models.user import User
from app.security import require_scope
from app.utils.audit import record_audit, request_context
from app.utils.errors import NotFoundError, ValidationError, error_response
from app.utils.apikey import gen_key

router = APIRouter(prefix="/apikeys", tags=["apikeys"])


# ------ Schemas ------

class CreateKeyIn(BaseModel):
    """Payload d'entrée pour créer une nouvelle clé (pas de champ 'key' ici)."""
    name: str
    scope: ApiScope
    days_valid: int | None = 90
    organization_id: int | None = None
    user_id: int | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("name cannot be blank")
        return value.strip()


class ApiKeyCreateOut(BaseModel):
    """Réponse du POST /apikeys : on renvoie la clé brute UNE SEULE fois."""
    id: int
    name: str
    scope: ApiScope
    key: str
    organization_id: int | None
    user_id: int | None
    expires_at: datetime | None


class ApiKeyRead(BaseModel):
    """Réponse des GET (jamais la clé)."""
    id: int
    name: str
    prefix: str
    scope: ApiScope
    is_active: bool
    organization_id: int | None
    user_id: int | None
    created_at: datetime
    expires_at: datetime | None
    last_used_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


def _visible_key(db: Session, api_key_id: int, caller: ApiKey) -> ApiKey:
    row = db.get(ApiKey, api_key_id)
    if row is None or caller.organization_id not in (None, row.organization_id):
        raise NotFoundError("API key not found.", code="APIKEY_NOT_FOUND")
    return row


# ------ Routes ------

@router.post(
    "",
    response_model=ApiKeyCreateOut,
    status_code=status.HTTP_201_CREATED,
)
def create_api_key(
    payload: CreateKeyIn,
    request: Request,
    db: Session = Depends(get_db),
    caller: ApiKey = Depends(require_scope({ApiScope.admin})),
) -> ApiKeyCreateOut:
    """Crée une clé API côté serveur et renvoie la valeur brute une seule fois."""

    # Une clé d'organisation ne peut émettre que pour sa propre organisation.
    organization_id = caller.organization_id or payload.organization_id
    if organization_id is not None and db.get(Organization, organization_id) is None:
        raise NotFoundError("Organization not found", code="ORGANIZATION_NOT_FOUND")
    if payload.user_id is not None:
        user = db.get(User, payload.user_id)
        if user is None or user.organization_id != organization_id:
            raise ValidationError("user_id must belong to the key's organization.", field="user_id")

    raw, prefix, key_hash = gen_key()
    now = datetime.now(UTC)
    expires_at = now + timedelta(days=payload.days_valid) if payload.days_valid else None

    row = ApiKey(
        name=payload.name,
        prefix=prefix,
        key_hash=key_hash,
        scope=payload.scope,
        expires_at=expires_at,
        is_active=True,
        organization_id=organization_id,
        user_id=payload.user_id,
    )
    db.add(row)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("APIKEY_EXISTS", "Key name already exists."),
        ) from exc

    if organization_id is not None:
        record_audit(
            db,
            action=AuditAction.OTHER,
            entity_type=AuditEntityType.OTHER,
            entity_id=row.id,
            entity_name=row.name,
            description=f'API key "{row.name}" - api key created',
            organization_id=organization_id,
            metadata={"prefix": row.prefix, "scope": row.scope.value},
            context=request_context(request, caller),
        )
    db.commit()
    db.refresh(row)

    return ApiKeyCreateOut(
        id=row.id,
        name=row.name,
        scope=row.scope,
        key=raw,               # ne sera plus jamais renvoyée
        organization_id=row.organization_id,
        user_id=row.user_id,
        expires_at=row.expires_at,
    )


@router.get("/{api_key_id}", response_model=ApiKeyRead)
def get_apikey(
    api_key_id: int,
    db: Session = Depends(get_db),
    caller: ApiKey = Depends(require_scope({ApiScope.admin})),
) -> ApiKey:
    return _visible_key(db, api_key_id, caller)


@router.delete(
    "/{api_key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def revoke_apikey(
    api_key_id: int,
    request: Request,
    db: Session = Depends(get_db),
    caller: ApiKey = Depends(require_scope({ApiScope.admin})),
) -> Response:
    row = _visible_key(db, api_key_id, caller)
    if not row.is_active:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    row.is_active = False
    if row.organization_id is not None:
        record_audit(
            db,
            action=AuditAction.OTHER,
            entity_type=AuditEntityType.OTHER,
            entity_id=row.id,
            entity_name=row.name,
            description=f'API key "{row.name}" - api key revoked',
            organization_id=row.organization_id,
            metadata={"prefix": row.prefix},
            context=request_context(request, caller),
        )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
