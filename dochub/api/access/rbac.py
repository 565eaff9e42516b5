"""
DocHub - Role-Based Access Control (RBAC)

Defines scopes, access levels, roles and the scope/field evaluation rules.
This is the authoritative source for access decisions.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import UUID


# ============================================================
# Scopes and Access Levels
# ============================================================


class RbacScope(str, Enum):
    """
    Protected resources.

    A scope can be any concept: a database table, a REST endpoint, a UI
    element. The handler that checks a scope decides what it protects.
    """

    RBAC_DASHBOARD = "RBAC_DASHBOARD"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    DOCUMENT = "DOCUMENT"


class RbacAccessLevel(IntEnum):
    """Totally ordered access grades. NONE means no access."""

    NONE = 0
    VIEW = 1
    EDIT = 2
    FULL = 3

    def has_access(self, required: "RbacAccessLevel") -> bool:
        """Whether this granted level satisfies the required one."""
        return self != RbacAccessLevel.NONE and self >= required


# ============================================================
# Rules and Roles
# ============================================================


@dataclass(frozen=True)
class FieldRule:
    """Access level applied to a single data field under a scope."""

    field_name: str
    access_level: RbacAccessLevel


@dataclass(frozen=True)
class ScopeRule:
    """Access level a role holds for a scope, with optional field overrides."""

    scope: RbacScope
    access_level: RbacAccessLevel
    field_rules: Mapping[str, FieldRule] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class SuperRole:
    """Role with implicit FULL access to every scope."""

    id: UUID
    role_name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ScopedRole:
    """Role whose access is limited to its explicit scope rules."""

    id: UUID
    role_name: str
    scope_rules: Mapping[RbacScope, ScopeRule]
    description: Optional[str] = None


Role = Union[SuperRole, ScopedRole]


def build_scope_rules(rules: Iterable[ScopeRule]) -> Mapping[RbacScope, ScopeRule]:
    """Index scope rules by scope into a read-only mapping."""
    return MappingProxyType({rule.scope: rule for rule in rules})


def role_from_entity(entity: Any) -> Role:
    """Build a domain role from an ``RbacRoleEntity`` row and its loaded rules."""
    if entity.is_super:
        return SuperRole(
            id=entity.id,
            role_name=entity.role_name,
            description=entity.description,
        )

    rules = []
    for scope_rule in entity.scope_rules:
        field_rules = MappingProxyType({
            field_rule.field_name: FieldRule(
                field_name=field_rule.field_name,
                access_level=RbacAccessLevel(field_rule.access_level),
            )
            for field_rule in scope_rule.field_rules
        })
        rules.append(
            ScopeRule(
                scope=RbacScope(scope_rule.scope),
                access_level=RbacAccessLevel(scope_rule.access_level),
                field_rules=field_rules,
            )
        )

    return ScopedRole(
        id=entity.id,
        role_name=entity.role_name,
        description=entity.description,
        scope_rules=build_scope_rules(rules),
    )


# ============================================================
# Access Decision
# ============================================================


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating one (scope, level) check."""

    granted: bool
    scope: RbacScope
    required_level: RbacAccessLevel
    effective_level: RbacAccessLevel
    redacted_fields: frozenset = frozenset()

    def redact(self, data: Mapping[str, Any]) -> dict:
        """Return a copy of ``data`` with every redacted field set to None."""
        result = dict(data)
        for name in self.redacted_fields:
            if name in result:
                result[name] = None
        return result


def grant_all(scope: RbacScope, level: RbacAccessLevel) -> AccessDecision:
    """Decision for an unrestricted grant."""
    return AccessDecision(
        granted=True,
        scope=scope,
        required_level=level,
        effective_level=RbacAccessLevel.FULL,
    )


def deny(scope: RbacScope, level: RbacAccessLevel) -> AccessDecision:
    """Decision for a denial."""
    return AccessDecision(
        granted=False,
        scope=scope,
        required_level=level,
        effective_level=RbacAccessLevel.NONE,
    )


def evaluate(role: Role, scope: RbacScope, level: RbacAccessLevel) -> AccessDecision:
    """
    Evaluate whether a role can act on a scope at the required level.

    Super roles are granted FULL with no redaction. Scoped roles need a
    rule for the scope whose level is not NONE and is at least ``level``.
    Field rules below ``level`` mark their field as redacted; they never
    widen the scope-level grant.

    Args:
        role: The actor's resolved role
        scope: Scope being accessed
        level: Required access level

    Returns:
        The access decision. Denials are returned, not raised.
    """
    if isinstance(role, SuperRole):
        return grant_all(scope, level)

    if isinstance(role, ScopedRole):
        rule = role.scope_rules.get(scope)
        if rule is None or not rule.access_level.has_access(level):
            return deny(scope, level)

        redacted = frozenset(
            name
            for name, field_rule in rule.field_rules.items()
            if field_rule.access_level < level
        )
        return AccessDecision(
            granted=True,
            scope=scope,
            required_level=level,
            effective_level=rule.access_level,
            redacted_fields=redacted,
        )

    raise TypeError(f"Unhandled role variant: {type(role).__name__}")
