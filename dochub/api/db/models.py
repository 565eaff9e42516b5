"""
SQLAlchemy ORM Models

Database models for the DocHub document-management backend.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from dochub.api.access.rbac import RbacAccessLevel, RbacScope
from dochub.api.documents.types import DocumentType


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Creation and update timestamps managed by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class RbacRoleEntity(TimestampMixin, Base):
    """RBAC role."""

    __tablename__ = "rbac_role"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    role_name: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_super: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    scope_rules: Mapped[list["RbacScopeRuleEntity"]] = relationship(
        "RbacScopeRuleEntity",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<RbacRole {self.role_name}{' (super)' if self.is_super else ''}>"


# Role names are unique regardless of case.
Index("uq_rbac_role_name_lower", func.lower(RbacRoleEntity.role_name), unique=True)


class RbacScopeRuleEntity(TimestampMixin, Base):
    """Access level granted to a role for one scope."""

    __tablename__ = "rbac_scope_rule"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rbac_role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scope: Mapped[RbacScope] = mapped_column(
        Enum(RbacScope, native_enum=False, length=64), nullable=False
    )
    access_level: Mapped[RbacAccessLevel] = mapped_column(
        Enum(RbacAccessLevel, native_enum=False, length=16), nullable=False
    )

    role: Mapped["RbacRoleEntity"] = relationship("RbacRoleEntity", back_populates="scope_rules")
    field_rules: Mapped[list["RbacFieldRuleEntity"]] = relationship(
        "RbacFieldRuleEntity",
        back_populates="scope_rule",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("role_id", "scope", name="uq_rbac_scope_rule_role_scope"),
    )

    def __repr__(self) -> str:
        return f"<RbacScopeRule {self.scope.value}={self.access_level.name}>"


class RbacFieldRuleEntity(TimestampMixin, Base):
    """Per-field access level under a scope rule."""

    __tablename__ = "rbac_field_rule"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    scope_rule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rbac_scope_rule.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_name: Mapped[str] = mapped_column(String(128), nullable=False)
    access_level: Mapped[RbacAccessLevel] = mapped_column(
        Enum(RbacAccessLevel, native_enum=False, length=16), nullable=False
    )

    scope_rule: Mapped["RbacScopeRuleEntity"] = relationship(
        "RbacScopeRuleEntity", back_populates="field_rules"
    )

    __table_args__ = (
        UniqueConstraint("scope_rule_id", "field_name", name="uq_rbac_field_rule_scope_field"),
    )


class ActorEntity(TimestampMixin, Base):
    """An authenticated principal bound to exactly one role."""

    __tablename__ = "actor"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rbac_role.id"), nullable=False, index=True
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    role: Mapped["RbacRoleEntity"] = relationship("RbacRoleEntity", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Actor {self.username}>"


class DocumentEntity(TimestampMixin, Base):
    """Document metadata record."""

    __tablename__ = "document"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    group_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, native_enum=False, length=32), nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text)
    original_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    storage_name: Mapped[str] = mapped_column(String(4098), nullable=False)
    location: Mapped[str] = mapped_column(String(4098), nullable=False)
    is_ciphered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Document {self.original_name} ({self.id})>"


class DocumentAuditEntity(TimestampMixin, Base):
    """Audit trail entry for document and administrative operations."""

    __tablename__ = "document_audit"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    operation: Mapped[str] = mapped_column(String(512), nullable=False)
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, index=True)
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    group_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    log: Mapped[Optional[str]] = mapped_column(Text)
