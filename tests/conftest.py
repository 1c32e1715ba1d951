"""
Pytest Configuration and Fixtures

Provides shared fixtures for both unit and integration tests: a temporary
document store, a fake config endpoint and a mock identity server wired
into an AppContext, and test clients for the FastAPI app.
"""

import pytest
from typing import AsyncGenerator, Callable, List
import httpx
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from tests.mocks.mock_config_server import config_transport, firebase_document
from tests.mocks.mock_identity_server import create_identity_app

PUBLIC_URL = "https://portal.example.com"
IDENTITY_BASE_URL = "http://identity.test/v1"


# ==============================================================================
# Core services
# ==============================================================================

@pytest.fixture
def db(tmp_path):
    """Document store on a fresh SQLite file."""
    from src.api.sqlite_service import SQLiteService
    return SQLiteService(str(tmp_path / "portal.db"))


@pytest.fixture
def config_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def environment(config_requests):
    """Production-host environment whose config document comes from a MockTransport."""
    from src.portal.environment import Environment
    client = AsyncClient(transport=config_transport(firebase_document(), config_requests))
    return Environment(PUBLIC_URL, client=client)


@pytest.fixture
def identity_app():
    return create_identity_app()


@pytest.fixture
def identity(environment, identity_app):
    from src.portal.identity import IdentityService
    client = AsyncClient(transport=ASGITransport(app=identity_app))
    return IdentityService(environment, IDENTITY_BASE_URL, client=client)


@pytest.fixture
def context(db, environment, identity, tmp_path):
    from src.api import config
    from src.portal.context import AppContext
    from src.portal.i18n import I18n
    from src.portal.layout import load_template
    return AppContext(
        env=environment,
        db=db,
        identity=identity,
        i18n=I18n("ja"),
        public_url=PUBLIC_URL,
        client_storage_dir=str(tmp_path / "clients"),
        shell_template=load_template(config.SHELL_HTML_PATH),
    )


@pytest.fixture
def make_shell(context) -> Callable:
    """Factory for headless shells: make_shell(storage=None, path="/")."""
    from src.portal.shell import Shell
    from src.portal.storage import MemoryStorage

    def _make(storage=None, path: str = "/"):
        return Shell(context, storage if storage is not None else MemoryStorage(), initial_path=path)

    return _make


# ==============================================================================
# FastAPI Test Client Fixtures
# ==============================================================================

@pytest.fixture
def app(context):
    """The portal app around the test context (production host, so nothing is seeded)."""
    from src.api.main import create_app
    return create_app(context)


@pytest.fixture
def test_client(app):
    """Synchronous test client for simple endpoint tests (runs the lifespan)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for async endpoint tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================

@pytest.fixture
async def tenant_with_admin(db, identity_app):
    """Active tenant with an active admin who has an identity account."""
    from src.api.models import Role, Tenant, TenantStatus, User, UserStatus

    tenant = await db.create_tenant(Tenant(id="tenant_acme", name="ACME建設", status=TenantStatus.active))
    admin = await db.create_user(User(
        id="uid_admin",
        email="admin@acme.test",
        name="Admin",
        role=Role.admin,
        status=UserStatus.active,
        tenant_id=tenant.id,
    ))
    identity_app.state.accounts[admin.email] = {"localId": admin.id, "password": "secret123", "displayName": "Admin"}
    return tenant, admin


@pytest.fixture
async def invitation(db, tenant_with_admin):
    from src.api.models import Invitation, Role
    tenant, admin = tenant_with_admin
    return await db.create_invitation(Invitation.expiring_in(
        7,
        email="new.worker@acme.test",
        role=Role.worker,
        tenant_id=tenant.id,
        company_name=tenant.name,
        created_by=admin.id,
    ))
