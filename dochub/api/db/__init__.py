"""Database module."""

from dochub.api.db.session import Database, get_db
from dochub.api.db.models import (
    Base,
    RbacRoleEntity,
    RbacScopeRuleEntity,
    RbacFieldRuleEntity,
    ActorEntity,
    DocumentEntity,
    DocumentAuditEntity,
)

__all__ = [
    "Database",
    "get_db",
    "Base",
    "RbacRoleEntity",
    "RbacScopeRuleEntity",
    "RbacFieldRuleEntity",
    "ActorEntity",
    "DocumentEntity",
    "DocumentAuditEntity",
]
