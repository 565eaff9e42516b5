"""
DocHub - Audit Logging

Fire-and-forget audit trail for document and administrative operations.
A failing audit never fails the operation being audited.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import func, select

from dochub.api.auth.context import SessionContext
from dochub.api.db.models import DocumentAuditEntity
from dochub.api.db.session import Database


logger = logging.getLogger(__name__)


# ============================================================
# Audit Event Structure
# ============================================================


@dataclass
class AuditEvent:
    """Complete audit event record."""

    event_id: str
    timestamp: datetime
    operation: str
    actor_id: Optional[UUID] = None
    actor_name: Optional[str] = None
    document_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    owner_id: Optional[UUID] = None
    log: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "actor_name": self.actor_name,
            "document_id": str(self.document_id) if self.document_id else None,
            "group_id": str(self.group_id) if self.group_id else None,
            "owner_id": str(self.owner_id) if self.owner_id else None,
            "log": self.log,
            "metadata": self.metadata,
        }

    def compute_hash(self) -> str:
        """Compute SHA256 hash for integrity verification."""
        content = f"{self.event_id}{self.timestamp.isoformat()}{self.actor_id}{self.operation}"
        return hashlib.sha256(content.encode()).hexdigest()


# ============================================================
# Audit Logger
# ============================================================


class AuditLogger:
    """
    Central audit sink.

    Each record is written in its own session so it neither joins nor
    disturbs the transaction of the request that triggered it.
    """

    def __init__(self, database: Database):
        self.database = database

    async def record(
        self,
        operation: str,
        context: Optional[SessionContext] = None,
        document_id: Optional[UUID] = None,
        group_id: Optional[UUID] = None,
        owner_id: Optional[UUID] = None,
        log: Optional[str] = None,
    ) -> Optional[AuditEvent]:
        """
        Log and persist an audit event.

        Returns:
            The event, or None if it could not be recorded
        """
        try:
            event = AuditEvent(
                event_id=f"evt_{uuid4().hex[:16]}",
                timestamp=datetime.now(timezone.utc),
                operation=operation,
                actor_id=context.actor_id if context else None,
                actor_name=context.username if context else None,
                document_id=document_id,
                group_id=group_id,
                owner_id=owner_id,
                log=log,
            )

            logger.info(
                "AUDIT",
                extra={
                    "audit_event": event.to_dict(),
                    "event_hash": event.compute_hash(),
                },
            )

            await self._persist_event(event)
            return event
        except Exception:
            logger.exception("Failed to record audit event '%s'", operation)
            return None

    async def _persist_event(self, event: AuditEvent) -> None:
        """Persist event to the document_audit table."""
        async with self.database.session() as session:
            session.add(
                DocumentAuditEntity(
                    operation=event.operation,
                    actor_id=event.actor_id,
                    document_id=event.document_id,
                    group_id=event.group_id,
                    owner_id=event.owner_id,
                    log=event.log,
                    created_at=event.timestamp,
                    updated_at=event.timestamp,
                )
            )
            await session.commit()

    async def query(
        self,
        page: int = 1,
        size: int = 20,
        actor_id: Optional[UUID] = None,
        operation: Optional[str] = None,
    ) -> Tuple[List[DocumentAuditEntity], int]:
        """Query audit rows, newest first."""
        query = select(DocumentAuditEntity)
        if actor_id:
            query = query.where(DocumentAuditEntity.actor_id == actor_id)
        if operation:
            query = query.where(DocumentAuditEntity.operation == operation)

        async with self.database.session() as session:
            total = await session.scalar(
                select(func.count()).select_from(query.subquery())
            )
            result = await session.execute(
                query.order_by(DocumentAuditEntity.created_at.desc())
                .offset((page - 1) * size)
                .limit(size)
            )
            return list(result.scalars().all()), total or 0
