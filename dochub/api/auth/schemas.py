"""
Authentication Schemas

Pydantic models for auth request/response validation.
"""

from uuid import UUID

from pydantic import BaseModel


class TokenResponse(BaseModel):
    """JWT token response."""

    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class SessionContextResponse(BaseModel):
    """Identity of the authenticated actor."""

    actor_id: UUID
    username: str
    role_id: UUID


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
    success: bool = True


class DeleteResponse(BaseModel):
    """Number of deleted records."""

    deleted: int
