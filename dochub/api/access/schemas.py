"""
Audit Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuditEntryResponse(BaseModel):
    """Persisted audit entry."""

    id: UUID
    operation: str
    actor_id: Optional[UUID] = None
    document_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    owner_id: Optional[UUID] = None
    log: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditPage(BaseModel):
    """Paginated audit entries."""

    content: List[AuditEntryResponse]
    total: int
    page: int
    size: int
    total_pages: int
