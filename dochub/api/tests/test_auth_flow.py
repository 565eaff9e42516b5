"""
Authentication Flow Tests

Validates token creation, the refresh policy and bearer authentication:
- valid tokens refresh to themselves with their remaining lifetime
- expired tokens refresh to a new token for the same actor
- invalid tokens never refresh and yield 401, never 403
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient

from dochub.api.auth.service import CredentialService
from dochub.api.tests.conftest import PASSWORDS, bearer, context_of


# ==================== Token Creation ====================


@pytest.mark.asyncio
async def test_create_token_with_basic_auth(async_client: AsyncClient, actors, settings):
    """Valid credentials should yield a bearer token."""
    response = await async_client.post(
        "/auth/token/create", auth=("editor", PASSWORDS["editor"])
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    me = await async_client.get(
        "/auth/me", headers={"Authorization": f"Bearer {body['token']}"}
    )
    assert me.status_code == 200
    assert me.json()["username"] == "editor"
    assert me.json()["actor_id"] == str(actors["editor"].id)


@pytest.mark.asyncio
async def test_create_token_wrong_password(async_client: AsyncClient, actors):
    """Wrong password should be rejected with 401."""
    response = await async_client.post("/auth/token/create", auth=("editor", "wrong"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_token_unknown_user(async_client: AsyncClient, actors):
    """Unknown usernames should be rejected with 401."""
    response = await async_client.post("/auth/token/create", auth=("nobody", "secret"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_token_locked_actor(async_client: AsyncClient, actors, db_session):
    """Locked actors should not be able to authenticate."""
    await CredentialService(db_session).set_locked(actors["viewer"].id, True)

    response = await async_client.post(
        "/auth/token/create", auth=("viewer", PASSWORDS["viewer"])
    )
    assert response.status_code == 401


# ==================== Refresh ====================


@pytest.mark.asyncio
async def test_refresh_valid_token_returns_same_token(async_client: AsyncClient, tokens):
    """A valid token should be returned unchanged."""
    response = await async_client.post(
        "/auth/token/refresh", headers={"Authorization": f"Bearer {tokens['editor']}"}
    )

    assert response.status_code == 200
    assert response.json()["token"] == tokens["editor"]


@pytest.mark.asyncio
async def test_refresh_valid_token_reports_remaining_lifetime(
    async_client: AsyncClient, app, actors
):
    """A token issued five minutes ago should report less than a full lifetime."""
    service = app.state.token_service
    issued_at = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = service.generate(context_of(actors["editor"]), issued_at=issued_at)

    response = await async_client.post("/auth/token/refresh", headers=bearer(token))

    assert response.status_code == 200
    body = response.json()
    assert body["token"] == token
    assert 0 < body["expires_in"] <= service.expires_in - 300


@pytest.mark.asyncio
async def test_refresh_expired_token_returns_new_token(
    async_client: AsyncClient, expired_token, actors
):
    """An expired token should be replaced by a working new one."""
    response = await async_client.post(
        "/auth/token/refresh", headers={"Authorization": f"Bearer {expired_token}"}
    )

    assert response.status_code == 200
    new_token = response.json()["token"]
    assert new_token != expired_token

    me = await async_client.get("/auth/me", headers={"Authorization": f"Bearer {new_token}"})
    assert me.status_code == 200
    assert me.json()["actor_id"] == str(actors["editor"].id)


@pytest.mark.asyncio
async def test_refresh_signing_failure_is_structured_500(
    async_client: AsyncClient, app, expired_token
):
    """An unexpected signing failure should render the error body, not a bare 500."""
    with patch.object(
        app.state.token_service, "generate", side_effect=RuntimeError("key unavailable")
    ):
        response = await async_client.post(
            "/auth/token/refresh", headers=bearer(expired_token)
        )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "TOKEN_GENERATION_FAILED"
    assert body["context"] == "TOKEN"
    assert "key unavailable" not in str(body)
    assert "WWW-Authenticate" not in response.headers


@pytest.mark.asyncio
async def test_refresh_tampered_token_rejected(async_client: AsyncClient, tokens):
    """A token with a broken signature should be rejected with 401."""
    head, payload, signature = tokens["editor"].split(".")
    tampered = f"{head}.{payload}.{signature[::-1]}"

    response = await async_client.post(
        "/auth/token/refresh", headers={"Authorization": f"Bearer {tampered}"}
    )

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_refresh_without_token_rejected(async_client: AsyncClient, actors):
    """Refresh without a token should be rejected with 401."""
    response = await async_client.post("/auth/token/refresh")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_for_locked_actor_rejected(
    async_client: AsyncClient, expired_token, actors, db_session
):
    """An expired token whose actor is now locked should not refresh."""
    await CredentialService(db_session).set_locked(actors["editor"].id, True)

    response = await async_client.post(
        "/auth/token/refresh", headers={"Authorization": f"Bearer {expired_token}"}
    )

    assert response.status_code == 401
    assert response.json()["reason"] == "actor not resolvable"


# ==================== Bearer Authentication ====================


@pytest.mark.asyncio
async def test_expired_token_not_accepted_for_requests(
    async_client: AsyncClient, expired_token
):
    """Expired tokens should yield 401 on protected routes."""
    response = await async_client.get(
        "/auth/me", headers={"Authorization": f"Bearer {expired_token}"}
    )

    assert response.status_code == 401
    assert response.json()["reason"] == "token expired"


@pytest.mark.asyncio
async def test_missing_token_is_401_not_403(async_client: AsyncClient, actors):
    """No token on a guarded route should be 401, not an access denial."""
    response = await async_client.get("/v1/document/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout(async_client: AsyncClient, editor_headers):
    """Logout should succeed for an authenticated actor."""
    response = await async_client.post("/auth/logout", headers=editor_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_login_is_audited(async_client: AsyncClient, actors, app):
    """Successful and failed logins should both be audited."""
    await async_client.post("/auth/token/create", auth=("editor", PASSWORDS["editor"]))
    await async_client.post("/auth/token/create", auth=("editor", "wrong"))

    rows, _ = await app.state.audit_logger.query()
    operations = {row.operation for row in rows}

    assert {"login", "login failed"} <= operations


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient, settings):
    """Health endpoint should report version and service name."""
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "service": settings.APP_NAME,
    }
