"""
FastAPI Dependencies

Common dependencies for dependency injection.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.access.audit import AuditLogger
from dochub.api.access.rbac import AccessDecision, RbacAccessLevel, RbacScope
from dochub.api.access.resolver import AccessResolver
from dochub.api.auth.context import SessionContext, set_context
from dochub.api.auth.jwt import Expired, Invalid, TokenService, Valid, token_from_header
from dochub.api.auth.service import CredentialService
from dochub.api.config import Settings
from dochub.api.db.session import get_db
from dochub.api.errors import InvalidTokenError
from dochub.api.rbac.registry import RoleRegistry


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    """Token service wired at startup."""
    return request.app.state.token_service


def get_audit_logger(request: Request) -> AuditLogger:
    """Audit sink wired at startup."""
    return request.app.state.audit_logger


def get_credential_service(db: AsyncSession = Depends(get_db)) -> CredentialService:
    """Dependency to get credential service."""
    return CredentialService(db)


def get_role_registry(db: AsyncSession = Depends(get_db)) -> RoleRegistry:
    """Dependency to get role registry."""
    return RoleRegistry(db)


def get_access_resolver(
    registry: RoleRegistry = Depends(get_role_registry),
    settings: Settings = Depends(get_app_settings),
) -> AccessResolver:
    """Dependency to get an access resolver for this request's session."""
    return AccessResolver(registry, enabled=settings.RBAC_ENABLED)


async def get_session_context(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    credentials: CredentialService = Depends(get_credential_service),
) -> SessionContext:
    """
    Resolve the session context from the bearer token.

    Raises:
        InvalidTokenError: If the token is missing, expired or invalid
    """
    token = token_from_header(authorization)
    state = await tokens.get_state(token, credentials.resolve_context)

    if isinstance(state, Valid):
        set_context(request, state.context)
        return state.context
    if isinstance(state, Expired):
        raise InvalidTokenError("token expired")
    if isinstance(state, Invalid):
        raise InvalidTokenError(state.reason)

    raise TypeError(f"Unhandled token state: {type(state).__name__}")


def require_access(scope: RbacScope, level: RbacAccessLevel):
    """
    Dependency factory requiring an access level on a scope.

    Usage:
        @router.get("/")
        async def list_items(
            decision: AccessDecision = Depends(require_access(RbacScope.DOCUMENT, RbacAccessLevel.VIEW)),
        ):
            ...
    """

    async def dependency(
        context: SessionContext = Depends(get_session_context),
        resolver: AccessResolver = Depends(get_access_resolver),
    ) -> AccessDecision:
        return await resolver.authorize(context, scope, level)

    return dependency