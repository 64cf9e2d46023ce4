"""User endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.models.audit import AuditAction, AuditEntityType
from app.models.organization import Organization
from app.models.user import User
from app.schemas.user import UserCreate, UserRead
from app.security import require_scope
from app.utils.audit import describe_action, record_audit, request_context
from app.utils.errors import NotFoundError, ValidationError, error_response

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin, ApiScope.support})),
) -> User:
    """Create a user inside the caller's organization."""

    organization_id = api_key.organization_id or payload.organization_id
    if organization_id is None:
        raise ValidationError("organization_id is required for system keys.", field="organization_id")
    if db.get(Organization, organization_id) is None:
        raise NotFoundError("Organization not found", code="ORGANIZATION_NOT_FOUND")

    user = User(**payload.model_dump(exclude={"organization_id"}), organization_id=organization_id)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("USER_CREATE_FAILED", "Could not create user."),
        ) from exc

    context = request_context(request, api_key)
    performer = api_key.user.username if api_key.user is not None else None
    record_audit(
        db,
        action=AuditAction.USER_CREATED,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        entity_name=user.username,
        description=describe_action(AuditAction.USER_CREATED.value, "User", user.username, performer),
        organization_id=organization_id,
        metadata={"username": user.username, "email": user.email},
        context=context,
    )

    db.commit()
    db.refresh(user)
    return user


@router.get(
    "/{user_id}",
    response_model=UserRead,
)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin, ApiScope.support})),
) -> User:
    """Retrieve a user by identifier, within the caller's organization."""

    user = db.get(User, user_id)
    if user is None or api_key.organization_id not in (None, user.organization_id):
        raise NotFoundError("User not found.", code="USER_NOT_FOUND")
    return user
