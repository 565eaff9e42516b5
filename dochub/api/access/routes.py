"""
Audit Routes

Read access to the audit trail for system administrators.
"""

from typing import Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from dochub.api.access.audit import AuditLogger
from dochub.api.access.rbac import AccessDecision, RbacAccessLevel, RbacScope
from dochub.api.access.schemas import AuditEntryResponse, AuditPage
from dochub.api.dependencies import get_audit_logger, require_access
from dochub.api.pagination import page_params, total_pages


router = APIRouter()


@router.get(
    "",
    response_model=AuditPage,
    summary="List audit entries",
)
async def list_audit_entries(
    paging: Tuple[int, int] = Depends(page_params),
    actor_id: Optional[UUID] = Query(None, description="Filter by actor"),
    operation: Optional[str] = Query(None, description="Filter by operation"),
    decision: AccessDecision = Depends(
        require_access(RbacScope.SYSTEM_ADMIN, RbacAccessLevel.VIEW)
    ),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuditPage:
    """Get a page of audit entries, newest first."""
    page, size = paging
    rows, total = await audit.query(page=page, size=size, actor_id=actor_id, operation=operation)

    return AuditPage(
        content=[AuditEntryResponse.model_validate(row) for row in rows],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size),
    )
