"""
Document Service

Business logic for document metadata records.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.db.models import DocumentEntity
from dochub.api.documents.schemas import DocumentRequest
from dochub.api.errors import DocumentError


logger = logging.getLogger(__name__)


class DocumentService:
    """Service for document operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Queries ====================

    async def find_by_id(self, document_id: UUID) -> DocumentEntity:
        """
        Get a document by ID.

        Raises:
            DocumentError.DocumentNotFound: If no such document
        """
        document = await self.db.get(DocumentEntity, document_id)
        if document is None:
            raise DocumentError.DocumentNotFound(document_id)
        return document

    async def find_page(
        self,
        page: int,
        size: int,
        owner_id: Optional[UUID] = None,
        group_id: Optional[UUID] = None,
    ) -> Tuple[List[DocumentEntity], int]:
        """Get a page of documents, newest first, optionally filtered."""
        query = select(DocumentEntity)
        if owner_id:
            query = query.where(DocumentEntity.owner_id == owner_id)
        if group_id:
            query = query.where(DocumentEntity.group_id == group_id)

        total = await self.db.scalar(
            select(func.count()).select_from(query.subquery())
        )

        result = await self.db.execute(
            query.order_by(desc(DocumentEntity.created_at), DocumentEntity.id)
            .offset((page - 1) * size)
            .limit(size)
        )
        return list(result.scalars().all()), total or 0

    # ==================== Mutations ====================

    async def create(self, data: DocumentRequest) -> DocumentEntity:
        """Create a document record."""
        document = DocumentEntity(
            owner_id=data.owner_id,
            group_id=data.group_id,
            type=data.type,
            description=data.description,
            original_name=data.original_name,
            storage_name=uuid4().hex,
            location=data.location,
            is_ciphered=data.is_ciphered,
            size=data.size,
        )
        self.db.add(document)
        await self.db.commit()
        await self.db.refresh(document)

        logger.info("Created document %s for owner %s", document.id, document.owner_id)
        return document

    async def update(self, document_id: UUID, data: DocumentRequest) -> DocumentEntity:
        """
        Replace a document's metadata.

        The storage name is assigned on creation and never changes.
        """
        document = await self.find_by_id(document_id)

        document.owner_id = data.owner_id
        document.group_id = data.group_id
        document.type = data.type
        document.description = data.description
        document.original_name = data.original_name
        document.location = data.location
        document.is_ciphered = data.is_ciphered
        document.size = data.size

        await self.db.commit()
        await self.db.refresh(document)
        return document

    async def delete(self, document_id: UUID) -> int:
        """Delete one document. Returns the number of rows deleted."""
        result = await self.db.execute(
            delete(DocumentEntity).where(DocumentEntity.id == document_id)
        )
        await self.db.commit()
        return result.rowcount

    async def delete_by_group(self, group_id: UUID) -> int:
        """Delete every document in a group."""
        result = await self.db.execute(
            delete(DocumentEntity).where(DocumentEntity.group_id == group_id)
        )
        await self.db.commit()

        logger.info("Deleted %d document(s) in group %s", result.rowcount, group_id)
        return result.rowcount

    async def delete_all(self) -> int:
        """Delete every document."""
        result = await self.db.execute(delete(DocumentEntity))
        await self.db.commit()

        logger.warning("Deleted all %d document(s)", result.rowcount)
        return result.rowcount
