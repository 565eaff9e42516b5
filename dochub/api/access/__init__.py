"""
DocHub - Access Module

Role-based access control and the access resolver.

Components:
- rbac.py: Scopes, access levels, roles, evaluation rules
- resolver.py: Access resolver over a role source
- audit.py: Audit sink (import directly; it depends on the db package)

Usage:
    from dochub.api.access import (
        RbacScope,
        RbacAccessLevel,
        AccessResolver,
        evaluate,
    )
"""

from dochub.api.access.rbac import (
    RbacScope,
    RbacAccessLevel,
    FieldRule,
    ScopeRule,
    SuperRole,
    ScopedRole,
    Role,
    AccessDecision,
    build_scope_rules,
    role_from_entity,
    evaluate,
)
from dochub.api.access.resolver import AccessResolver, RoleSource

__all__ = [
    "RbacScope",
    "RbacAccessLevel",
    "FieldRule",
    "ScopeRule",
    "SuperRole",
    "ScopedRole",
    "Role",
    "AccessDecision",
    "build_scope_rules",
    "role_from_entity",
    "evaluate",
    "AccessResolver",
    "RoleSource",
]
