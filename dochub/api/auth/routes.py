"""
Authentication Routes

API endpoints for token issuance and refresh.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from dochub.api.access.audit import AuditLogger
from dochub.api.auth.context import SessionContext, clear_context, set_context
from dochub.api.auth.jwt import Expired, Invalid, TokenService, Valid, token_from_header
from dochub.api.auth.schemas import MessageResponse, SessionContextResponse, TokenResponse
from dochub.api.auth.service import CredentialService
from dochub.api.dependencies import (
    get_audit_logger,
    get_credential_service,
    get_session_context,
    get_token_service,
)
from dochub.api.errors import InvalidTokenError, TokenGenerationError, TokenSigningError


logger = logging.getLogger(__name__)

router = APIRouter()

basic = HTTPBasic()


def respond_with_token(
    tokens: TokenService, context: Optional[SessionContext]
) -> TokenResponse:
    """
    Generate a new token for a session context.

    Raises:
        TokenGenerationError: If the context is missing (400)
        TokenSigningError: On any unexpected signing failure (500)
    """
    try:
        token = tokens.generate(context)
    except TokenGenerationError:
        logger.error("Failed to generate token: invalid session context")
        raise
    except Exception as e:
        logger.exception("Failed to generate token")
        raise TokenSigningError() from e

    return TokenResponse(token=token, expires_in=tokens.expires_in)


@router.post(
    "/token/create",
    response_model=TokenResponse,
    summary="Create a token",
)
async def create_token(
    request: Request,
    background_tasks: BackgroundTasks,
    credentials: HTTPBasicCredentials = Depends(basic),
    credential_service: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TokenResponse:
    """
    Authenticate with HTTP Basic credentials and get a bearer token.
    """
    context = await credential_service.authenticate(
        credentials.username, credentials.password
    )

    if context is None:
        # Background tasks do not run for error responses.
        await audit.record(operation="login failed", log=f"username={credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid credentials. {CredentialService.HINT}",
            headers={"WWW-Authenticate": "Basic"},
        )

    set_context(request, context)
    background_tasks.add_task(audit.record, operation="login", context=context)
    return respond_with_token(tokens, context)


@router.post(
    "/token/refresh",
    response_model=TokenResponse,
    summary="Refresh a token",
)
async def refresh_token(
    authorization: Optional[str] = Header(None),
    credential_service: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """
    Refresh a bearer token.

    - **valid** token: the same token is returned with its remaining lifetime
    - **expired** token: a new token is issued for the same actor
    - **invalid** token: 401, the client must authenticate again
    """
    state = await tokens.get_state(
        token_from_header(authorization), credential_service.resolve_context
    )

    if isinstance(state, Valid):
        return TokenResponse(token=state.token, expires_in=tokens.remaining(state.claims))
    if isinstance(state, Expired):
        return respond_with_token(tokens, state.context)
    if isinstance(state, Invalid):
        raise InvalidTokenError(state.reason)

    raise TypeError(f"Unhandled token state: {type(state).__name__}")


@router.get(
    "/me",
    response_model=SessionContextResponse,
    summary="Get current actor",
)
async def get_me(
    context: SessionContext = Depends(get_session_context),
) -> SessionContextResponse:
    """Get the identity of the authenticated actor."""
    return SessionContextResponse(
        actor_id=context.actor_id,
        username=context.username,
        role_id=context.role_id,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
)
async def logout(
    request: Request,
    background_tasks: BackgroundTasks,
    context: SessionContext = Depends(get_session_context),
    audit: AuditLogger = Depends(get_audit_logger),
) -> MessageResponse:
    """
    End the session.

    Tokens are stateless; the client discards its token.
    """
    clear_context(request)
    background_tasks.add_task(audit.record, operation="logout", context=context)
    return MessageResponse(message="Successfully logged out")
