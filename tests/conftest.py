"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# --- Config env par défaut
os.environ.setdefault("DATABASE_URL", "sqlite:///./orgdesk_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ORGDESK_ENV", "test")

from app.main import app  # noqa: E402
from app.db import get_db  # noqa: E402
from app.models import (  # noqa: E402
    ApiKey,
    ApiScope,
    AuditLog,
    Organization,
    SubscriptionPlan,
    SubscriptionStatus,
    User,
)
from app.utils.apikey import hash_key  # noqa: E402

DB_PATH = Path("./orgdesk_test.db")


def _run_migrations() -> None:
    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Reset DB fichier au début de la session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    future=True,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False,
                                   future=True, expire_on_commit=False)

# --- (2) Construire le schéma via Alembic uniquement
_run_migrations()


@pytest.fixture
def db_session() -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session
    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_organization(db_session: Session) -> Callable[..., Organization]:
    def _factory(
        name: str | None = None,
        plan: SubscriptionPlan = SubscriptionPlan.professional,
        status: SubscriptionStatus = SubscriptionStatus.active,
    ) -> Organization:
        organization = Organization(
            name=name or f"org-{uuid4().hex[:8]}",
            plan=plan,
            subscription_status=status,
        )
        db_session.add(organization)
        db_session.flush()
        return organization

    return _factory


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(organization: Organization, username: str | None = None, **fields) -> User:
        handle = username or f"user-{uuid4().hex[:8]}"
        user = User(
            organization_id=organization.id,
            username=handle,
            email=f"{handle}@example.com",
            **fields,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _factory


@pytest.fixture
def make_api_key(db_session: Session) -> Callable[..., ApiKey]:
    def _factory(
        name: str,
        key: str,
        scope: ApiScope = ApiScope.member,
        is_active: bool = True,
        organization: Organization | None = None,
        user: User | None = None,
    ) -> ApiKey:
        api_key = ApiKey(
            name=name,
            prefix=f"test_{uuid4().hex[:10]}",
            key_hash=hash_key(key),
            scope=scope,
            is_active=is_active,
            organization_id=organization.id if organization else None,
            user_id=user.id if user else None,
        )
        db_session.add(api_key)
        db_session.commit()
        db_session.refresh(api_key)
        return api_key

    return _factory


@pytest.fixture
def make_headers(make_api_key: Callable[..., ApiKey]) -> Callable[..., dict[str, str]]:
    """Create a key and return the matching Authorization header."""

    def _factory(
        organization: Organization | None = None,
        scope: ApiScope = ApiScope.member,
        user: User | None = None,
    ) -> dict[str, str]:
        token = f"{scope.value}-{uuid4().hex}"
        make_api_key(name=f"{scope.value}-{uuid4().hex}", key=token, scope=scope, organization=organization, user=user)
        return {"Authorization": f"Bearer {token}"}

    return _factory


@pytest.fixture
def system_admin_headers(make_headers) -> dict[str, str]:
    return make_headers(scope=ApiScope.admin)


@dataclass
class Tenant:
    organization: Organization
    user: User
    headers: dict[str, str]
    admin_headers: dict[str, str]


@pytest.fixture
def make_tenant(make_organization, make_user, make_headers) -> Callable[..., Tenant]:
    def _factory(**org_fields) -> Tenant:
        organization = make_organization(**org_fields)
        user = make_user(organization, firstname="Ada", lastname="Lovelace", avatar="https://cdn.example.com/ada.png")
        return Tenant(
            organization=organization,
            user=user,
            headers=make_headers(organization, ApiScope.member, user),
            admin_headers=make_headers(organization, ApiScope.admin, user),
        )

    return _factory


@pytest.fixture
def tenant(make_tenant) -> Tenant:
    return make_tenant()


@pytest.fixture
def make_audit_log(db_session: Session) -> Callable[..., AuditLog]:
    def _factory(
        organization: Organization,
        action: str = "USER_LOGIN",
        created_at: datetime | None = None,
        *,
        entity_type: str = "User",
        description: str | None = None,
        entity_name: str | None = None,
        performed_by: int | None = None,
        metadata: dict | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_name=entity_name,
            description=description or f"{entity_type} - {action.replace('_', ' ').lower()}",
            performed_by=performed_by,
            organization_id=organization.id,
            meta=metadata or {},
        )
        if created_at is not None:
            entry.created_at = created_at
        db_session.add(entry)
        db_session.flush()
        return entry

    return _factory
