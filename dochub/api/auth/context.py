"""
Session Context

Per-request actor identity derived from an authenticated token.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Request


@dataclass(frozen=True)
class SessionContext:
    """Authenticated actor for the current request."""

    actor_id: UUID
    username: str
    role_id: UUID


def set_context(request: Request, context: SessionContext) -> None:
    """Attach the session context to the request."""
    request.state.session_context = context


def get_context(request: Request) -> Optional[SessionContext]:
    """Get the session context attached to the request, if any."""
    return getattr(request.state, "session_context", None)


def clear_context(request: Request) -> None:
    """Detach the session context from the request."""
    if hasattr(request.state, "session_context"):
        del request.state.session_context
