"""
Document Routes

API endpoints for document metadata. All endpoints are guarded by the
DOCUMENT scope, and responses are redacted by the caller's field rules.
"""

from typing import Iterable, Tuple
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.access.audit import AuditLogger
from dochub.api.access.rbac import AccessDecision, RbacAccessLevel, RbacScope
from dochub.api.access.resolver import AccessResolver
from dochub.api.auth.context import get_context
from dochub.api.auth.schemas import DeleteResponse
from dochub.api.db.models import DocumentEntity
from dochub.api.db.session import get_db
from dochub.api.dependencies import get_access_resolver, get_audit_logger, require_access
from dochub.api.documents.schemas import DocumentPage, DocumentRequest, DocumentResponse
from dochub.api.documents.service import DocumentService
from dochub.api.errors import DocumentError
from dochub.api.pagination import page_params, total_pages


router = APIRouter()

can_view = require_access(RbacScope.DOCUMENT, RbacAccessLevel.VIEW)
can_edit = require_access(RbacScope.DOCUMENT, RbacAccessLevel.EDIT)
can_manage = require_access(RbacScope.DOCUMENT, RbacAccessLevel.FULL)


def get_document_service(db: AsyncSession = Depends(get_db)) -> DocumentService:
    """Dependency to get document service."""
    return DocumentService(db)


def render(document: DocumentEntity, decision: AccessDecision) -> DocumentResponse:
    """Build the response for a document, nulling restricted fields."""
    response = DocumentResponse.model_validate(document, from_attributes=True)
    data = decision.redact(response.model_dump())
    # id is never redacted
    data["id"] = document.id
    return DocumentResponse(**data)


def render_page(
    documents: Iterable[DocumentEntity],
    total: int,
    page: int,
    size: int,
    decision: AccessDecision,
) -> DocumentPage:
    return DocumentPage(
        content=[render(document, decision) for document in documents],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size),
    )


# ==================== Create / Update ====================


@router.post(
    "/",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create document",
)
async def create_document(
    request: Request,
    data: DocumentRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_edit),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentResponse:
    """Create a document metadata record."""
    document = await service.create(data)

    background_tasks.add_task(
        audit.record,
        operation="document created",
        context=get_context(request),
        document_id=document.id,
        group_id=document.group_id,
        owner_id=document.owner_id,
        log=f"original_name={document.original_name}",
    )
    return render(document, decision)


@router.put(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Update document",
)
async def update_document(
    request: Request,
    document_id: UUID,
    data: DocumentRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_edit),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentResponse:
    """Replace a document's metadata."""
    document = await service.update(document_id, data)

    background_tasks.add_task(
        audit.record,
        operation="document updated",
        context=get_context(request),
        document_id=document.id,
        group_id=document.group_id,
        owner_id=document.owner_id,
    )
    return render(document, decision)


# ==================== Queries ====================


@router.get(
    "/",
    response_model=DocumentPage,
    summary="List documents",
)
async def list_documents(
    request: Request,
    background_tasks: BackgroundTasks,
    paging: Tuple[int, int] = Depends(page_params),
    decision: AccessDecision = Depends(can_view),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentPage:
    """Get a page of all documents, newest first."""
    page, size = paging
    documents, total = await service.find_page(page, size)

    background_tasks.add_task(
        audit.record,
        operation="documents listed",
        context=get_context(request),
        log=f"page={page} | size={size}",
    )
    return render_page(documents, total, page, size, decision)


@router.get(
    "/owner/{owner_id}",
    response_model=DocumentPage,
    summary="List documents by owner",
)
async def list_documents_by_owner(
    request: Request,
    owner_id: UUID,
    background_tasks: BackgroundTasks,
    paging: Tuple[int, int] = Depends(page_params),
    decision: AccessDecision = Depends(can_view),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentPage:
    """Get a page of an owner's documents."""
    page, size = paging
    documents, total = await service.find_page(page, size, owner_id=owner_id)

    background_tasks.add_task(
        audit.record,
        operation="documents listed by owner",
        context=get_context(request),
        owner_id=owner_id,
        log=f"page={page} | size={size}",
    )
    return render_page(documents, total, page, size, decision)


@router.get(
    "/group/{group_id}",
    response_model=DocumentPage,
    summary="List documents by group",
)
async def list_documents_by_group(
    request: Request,
    group_id: UUID,
    background_tasks: BackgroundTasks,
    paging: Tuple[int, int] = Depends(page_params),
    decision: AccessDecision = Depends(can_view),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentPage:
    """Get a page of a group's documents."""
    page, size = paging
    documents, total = await service.find_page(page, size, group_id=group_id)

    background_tasks.add_task(
        audit.record,
        operation="documents listed by group",
        context=get_context(request),
        group_id=group_id,
        log=f"page={page} | size={size}",
    )
    return render_page(documents, total, page, size, decision)


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get document",
)
async def get_document(
    request: Request,
    document_id: UUID,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_view),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DocumentResponse:
    """Get a document by ID."""
    document = await service.find_by_id(document_id)

    background_tasks.add_task(
        audit.record,
        operation="document viewed",
        context=get_context(request),
        document_id=document.id,
        group_id=document.group_id,
        owner_id=document.owner_id,
    )
    return render(document, decision)


# ==================== Delete ====================


@router.delete(
    "/group/{group_id}",
    response_model=DeleteResponse,
    summary="Delete documents by group",
)
async def delete_documents_by_group(
    request: Request,
    group_id: UUID,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DeleteResponse:
    """Delete every document in a group."""
    deleted = await service.delete_by_group(group_id)

    background_tasks.add_task(
        audit.record,
        operation="documents deleted by group",
        context=get_context(request),
        group_id=group_id,
        log=f"deleted={deleted}",
    )
    return DeleteResponse(deleted=deleted)


@router.delete(
    "/{document_id}",
    response_model=DeleteResponse,
    summary="Delete document",
)
async def delete_document(
    request: Request,
    document_id: UUID,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DeleteResponse:
    """Delete a document by ID."""
    deleted = await service.delete(document_id)
    if not deleted:
        raise DocumentError.DocumentNotFound(document_id)

    background_tasks.add_task(
        audit.record,
        operation="document deleted",
        context=get_context(request),
        document_id=document_id,
    )
    return DeleteResponse(deleted=deleted)


@router.delete(
    "/",
    response_model=DeleteResponse,
    summary="Delete all documents",
)
async def delete_all_documents(
    request: Request,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    resolver: AccessResolver = Depends(get_access_resolver),
    service: DocumentService = Depends(get_document_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DeleteResponse:
    """
    Delete every document.

    Requires FULL on DOCUMENT and FULL on SYSTEM_ADMIN.
    """
    context = get_context(request)
    await resolver.authorize(context, RbacScope.SYSTEM_ADMIN, RbacAccessLevel.FULL)

    deleted = await service.delete_all()

    background_tasks.add_task(
        audit.record,
        operation="all documents deleted",
        context=context,
        log=f"deleted={deleted}",
    )
    return DeleteResponse(deleted=deleted)
