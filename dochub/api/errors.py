"""
DocHub - Error Hierarchy

Structured exception types surfaced by the API, and the FastAPI handlers
that render them.

Error Categories:
    - ValidationError: malformed or conflicting input (400)
    - NotFoundError: referenced entity does not exist (404)
    - AccessDeniedError: authenticated but not authorized (403)
    - TokenError: not authenticated, or token could not be issued (401/400)
    - PaginationError: invalid page attributes (400)
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class DocHubError(Exception):
    """
    Base exception for all DocHub API errors.

    Attributes:
        status_code: HTTP status the error maps to
        context: Domain the error belongs to (e.g. "RBAC", "DOCUMENT")
        code: Unique code for programmatic handling
        description: Human-readable error description
        reason: Optional extra context for the client
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        context: str,
        code: str,
        description: str,
        reason: Optional[str] = None,
    ):
        super().__init__(description)
        self.context = context
        self.code = code
        self.description = description
        self.reason = reason

    def __str__(self) -> str:
        return f"[{self.code}] {self.description}"

    def to_dict(self) -> Dict[str, Any]:
        """Render the client-facing error body."""
        return {
            "status": self.status_code,
            "context": self.context,
            "code": self.code,
            "description": self.description,
            "reason": self.reason,
        }


class ValidationError(DocHubError):
    """Malformed or conflicting input. Never retried."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DocHubError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(DocHubError):
    """Authenticated actor lacks the required access level for a scope."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, scope: Any, required_level: Any, reason: Optional[str] = None):
        super().__init__(
            context="RBAC",
            code="ACCESS_DENIED",
            description=f"Access denied to scope {scope.value} at level {required_level.name}",
            reason=reason,
        )
        self.scope = scope
        self.required_level = required_level


class TokenError(DocHubError):
    """Authentication token problem, distinct from an authorization denial."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(TokenError):
    """Token missing, malformed, tampered, expired, or bound to a gone actor."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            context="TOKEN",
            code="INVALID_TOKEN",
            description="Invalid or expired token",
            reason=reason,
        )


class TokenGenerationError(TokenError):
    """A token was requested for a session context that cannot be resolved."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            context="TOKEN",
            code="INVALID_SESSION_CONTEXT",
            description="Invalid session context. Authenticate with valid credentials.",
            reason=reason,
        )


class TokenSigningError(TokenError):
    """Signing a token failed for a reason other than the session context."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            context="TOKEN",
            code="TOKEN_GENERATION_FAILED",
            description="Failed to generate token",
            reason=reason,
        )


class PaginationError(ValidationError):
    """Invalid page attributes."""

    def __init__(self, description: str, reason: Optional[str] = None):
        super().__init__(
            context="PAGINATION",
            code="INVALID_PAGEABLE",
            description=description,
            reason=reason,
        )


# =============================================================================
# DOMAIN ERRORS
# =============================================================================


class RoleError:
    """RBAC role errors."""

    class RoleNotFound(NotFoundError):
        def __init__(self, role_id: UUID):
            super().__init__(
                context="RBAC",
                code="ROLE_NOT_FOUND",
                description=f"Role not found. Role Id: {role_id}",
            )
            self.role_id = role_id

    class DuplicateRoleName(ValidationError):
        def __init__(self, role_name: str):
            super().__init__(
                context="RBAC",
                code="DUPLICATE_ROLE_NAME",
                description=f"Role name already exists: {role_name}",
            )
            self.role_name = role_name

    class DuplicateScope(ValidationError):
        def __init__(self, scope: Any):
            super().__init__(
                context="RBAC",
                code="DUPLICATE_SCOPE",
                description=f"Scope declared more than once: {scope.value}",
            )
            self.scope = scope

    class DuplicateField(ValidationError):
        def __init__(self, scope: Any, field_name: str):
            super().__init__(
                context="RBAC",
                code="DUPLICATE_FIELD_RULE",
                description=f"Field '{field_name}' declared more than once in scope {scope.value}",
            )
            self.scope = scope
            self.field_name = field_name

    class RoleInUse(ValidationError):
        def __init__(self, role_id: UUID, actor_count: int):
            super().__init__(
                context="RBAC",
                code="ROLE_IN_USE",
                description=f"Role {role_id} is assigned to {actor_count} actor(s)",
                reason="Reassign the actors before deleting the role.",
            )
            self.role_id = role_id
            self.actor_count = actor_count


class ActorError:
    """Actor (credential) errors."""

    class ActorNotFound(NotFoundError):
        def __init__(self, actor_id: UUID):
            super().__init__(
                context="ACTOR",
                code="ACTOR_NOT_FOUND",
                description=f"Actor not found. Actor Id: {actor_id}",
            )
            self.actor_id = actor_id

    class DuplicateUsername(ValidationError):
        def __init__(self, username: str):
            super().__init__(
                context="ACTOR",
                code="DUPLICATE_USERNAME",
                description=f"Username already exists: {username}",
            )
            self.username = username


class DocumentError:
    """Document errors."""

    class DocumentNotFound(NotFoundError):
        def __init__(self, document_id: UUID):
            super().__init__(
                context="DOCUMENT",
                code="DOCUMENT_NOT_FOUND",
                description=f"Document not found. Document Id: {document_id}",
            )
            self.document_id = document_id


# =============================================================================
# HANDLERS
# =============================================================================


async def dochub_error_handler(request: Request, exc: DocHubError) -> JSONResponse:
    """Render a DocHubError as a structured JSON body."""
    headers = None
    if isinstance(exc, TokenError) and exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
        logger.info("Token rejected: %s (%s)", exc, exc.reason)

    if isinstance(exc, AccessDeniedError):
        logger.warning(
            "Access denied: scope=%s required=%s path=%s",
            exc.scope.value,
            exc.required_level.name,
            request.url.path,
        )
        audit_logger = getattr(request.app.state, "audit_logger", None)
        if audit_logger is not None:
            await audit_logger.record(
                operation="access denied",
                context=getattr(request.state, "session_context", None),
                log=f"scope={exc.scope.value} | required={exc.required_level.name} | path={request.url.path}",
            )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and return a generic 500."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "context": "SERVER",
            "code": "INTERNAL_ERROR",
            "description": "Internal server error",
            "reason": None,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error handlers to the application."""
    app.add_exception_handler(DocHubError, dochub_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
