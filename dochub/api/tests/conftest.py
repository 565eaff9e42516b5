"""
Test Configuration and Fixtures

Shared fixtures for DocHub API tests.
Provides an isolated database, seeded roles and actors, and tokens.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.access.rbac import RbacScope
from dochub.api.auth.context import SessionContext
from dochub.api.auth.service import CredentialService
from dochub.api.config import Settings
from dochub.api.db.models import ActorEntity, RbacRoleEntity
from dochub.api.main import create_app
from dochub.api.rbac.registry import RoleRegistry
from dochub.api.rbac.schemas import FieldRuleRequest, RoleRequest, ScopeRuleRequest


PASSWORDS = {
    "admin": "AdminPassword123!",
    "editor": "EditorPassword123!",
    "viewer": "ViewerPassword123!",
}


# ==================== Application Fixtures ====================


@pytest.fixture(scope="function")
def settings(tmp_path) -> Settings:
    """Settings with an isolated SQLite database file."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'dochub-api.db'}",
        JWT_SECRET_KEY="api-test-secret-key-that-is-long-enough",
        ACCESS_TOKEN_EXPIRE_MINUTES=15,
        DEFAULT_PAGE_SIZE=10,
        MAX_PAGE_SIZE=50,
    )


@pytest_asyncio.fixture(scope="function")
async def app(settings) -> AsyncGenerator[FastAPI, None]:
    """Create FastAPI app with a fresh schema."""
    test_app = create_app(settings)
    await test_app.state.database.create_all()
    yield test_app
    await test_app.state.database.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def db_session(app) -> AsyncGenerator[AsyncSession, None]:
    """Session on the app's database, for seeding and inspection."""
    async with app.state.database.session() as session:
        yield session


# ==================== Role Fixtures ====================


@pytest_asyncio.fixture(scope="function")
async def roles(db_session) -> Dict[str, RbacRoleEntity]:
    """
    Seed three roles.

    - admin: super role
    - editor: DOCUMENT EDIT, ``location`` limited to VIEW
    - viewer: DOCUMENT VIEW with ``storage_name`` hidden, RBAC_DASHBOARD VIEW
    """
    registry = RoleRegistry(db_session)

    admin = await registry.create(RoleRequest(role_name="admin", is_super=True))
    editor = await registry.create(
        RoleRequest(
            role_name="editor",
            scope_rules=[
                ScopeRuleRequest(
                    scope=RbacScope.DOCUMENT,
                    access_level="EDIT",
                    field_rules=[FieldRuleRequest(field_name="location", access_level="VIEW")],
                ),
            ],
        )
    )
    viewer = await registry.create(
        RoleRequest(
            role_name="viewer",
            scope_rules=[
                ScopeRuleRequest(
                    scope=RbacScope.DOCUMENT,
                    access_level="VIEW",
                    field_rules=[FieldRuleRequest(field_name="storage_name", access_level="NONE")],
                ),
                ScopeRuleRequest(scope=RbacScope.RBAC_DASHBOARD, access_level="VIEW"),
            ],
        )
    )

    return {"admin": admin, "editor": editor, "viewer": viewer}


# ==================== Actor Fixtures ====================


@pytest_asyncio.fixture(scope="function")
async def actors(db_session, roles) -> Dict[str, ActorEntity]:
    """Create one actor per seeded role, named after the role."""
    service = CredentialService(db_session)
    return {
        name: await service.create_actor(name, PASSWORDS[name], roles[name].id)
        for name in ("admin", "editor", "viewer")
    }


def context_of(actor: ActorEntity) -> SessionContext:
    return SessionContext(actor_id=actor.id, username=actor.username, role_id=actor.role_id)


@pytest.fixture(scope="function")
def tokens(app, actors) -> Dict[str, str]:
    """Bearer token per seeded actor."""
    service = app.state.token_service
    return {name: service.generate(context_of(actor)) for name, actor in actors.items()}


@pytest.fixture(scope="function")
def expired_token(app, actors) -> str:
    """Correctly signed but expired token for the editor."""
    service = app.state.token_service
    issued_at = datetime.now(timezone.utc) - timedelta(seconds=service.expires_in * 2)
    return service.generate(context_of(actors["editor"]), issued_at=issued_at)


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_headers(tokens) -> Dict[str, str]:
    """Authorization headers for the super role actor."""
    return bearer(tokens["admin"])


@pytest.fixture(scope="function")
def editor_headers(tokens) -> Dict[str, str]:
    """Authorization headers for the editor."""
    return bearer(tokens["editor"])


@pytest.fixture(scope="function")
def viewer_headers(tokens) -> Dict[str, str]:
    """Authorization headers for the viewer."""
    return bearer(tokens["viewer"])


# ==================== Document Fixtures ====================


@pytest.fixture(scope="function")
def document_payload() -> Dict[str, object]:
    """Valid document creation payload."""
    return {
        "owner_id": str(uuid.uuid4()),
        "group_id": str(uuid.uuid4()),
        "type": "CONTRACT",
        "description": "Service agreement",
        "original_name": "agreement.pdf",
        "location": "/vault/contracts",
        "size": 2048,
    }
