"""Organization (tenant) endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.models.audit import AuditAction, AuditEntityType
from app.models.organization import Organization
from app.schemas.organization import OrganizationCreate, OrganizationRead
from app.security import require_scope
from app.utils.audit import describe_action, record_audit, request_context
from app.utils.errors import NotFoundError, error_response

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post(
    "",
    response_model=OrganizationRead,
    status_code=status.HTTP_201_CREATED,
)
def create_organization(
    payload: OrganizationCreate,
    request: Request,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin})),
) -> Organization:
    """Create a tenant. Reserved to system keys (not bound to an organization)."""

    if api_key.organization_id is not None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("SYSTEM_KEY_REQUIRED", "Only system keys can create organizations."),
        )

    organization = Organization(**payload.model_dump())
    db.add(organization)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("ORGANIZATION_EXISTS", "Organization name already exists."),
        ) from exc

    record_audit(
        db,
        action=AuditAction.ORGANIZATION_CREATED,
        entity_type=AuditEntityType.ORGANIZATION,
        entity_id=organization.id,
        entity_name=organization.name,
        description=describe_action(AuditAction.ORGANIZATION_CREATED.value, "Organization", organization.name),
        organization_id=organization.id,
        metadata={"plan": organization.plan.value},
        context=request_context(request, api_key),
    )
    db.commit()
    db.refresh(organization)
    return organization


@router.get("/{organization_id}", response_model=OrganizationRead)
def get_organization(
    organization_id: int,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin, ApiScope.support})),
) -> Organization:
    """Retrieve an organization. Tenant keys only see their own."""

    organization = db.get(Organization, organization_id)
    if organization is None or api_key.organization_id not in (None, organization.id):
        raise NotFoundError("Organization not found", code="ORGANIZATION_NOT_FOUND")
    return organization
