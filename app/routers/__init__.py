"""API routers for the Orgdesk audit service."""
from fastapi import APIRouter

from . import apikeys, audit_logs, health, organizations, users


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(organizations.router)
    api_router.include_router(users.router)
    api_router.include_router(apikeys.router)
    api_router.include_router(audit_logs.router)
    return api_router
