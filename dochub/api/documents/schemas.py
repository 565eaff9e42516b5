"""
Document Schemas

Pydantic models for document metadata.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dochub.api.documents.types import DocumentType


class DocumentRequest(BaseModel):
    """Request to create or update a document record."""

    owner_id: UUID
    group_id: UUID
    type: DocumentType = DocumentType.GENERAL
    description: Optional[str] = None
    original_name: str = Field(..., min_length=1, max_length=1024)
    location: str = Field("", max_length=4098)
    is_ciphered: bool = False
    size: int = Field(0, ge=0)


class DocumentResponse(BaseModel):
    """
    Document record as seen by the caller.

    Any field except ``id`` may be null when the caller's role restricts it.
    """

    id: UUID
    owner_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    type: Optional[DocumentType] = None
    description: Optional[str] = None
    original_name: Optional[str] = None
    storage_name: Optional[str] = None
    location: Optional[str] = None
    is_ciphered: Optional[bool] = None
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DocumentPage(BaseModel):
    """Paginated document list."""

    content: List[DocumentResponse]
    total: int
    page: int
    size: int
    total_pages: int
