"""
RBAC Schemas

Pydantic models for role and actor administration.
"""

from datetime import datetime
from typing import Annotated, Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, field_validator

from dochub.api.access.rbac import RbacAccessLevel, RbacScope


def _parse_access_level(value: Any) -> Any:
    """Accept access levels by name ('EDIT') as well as by number."""
    if isinstance(value, str) and not value.isdigit():
        try:
            return RbacAccessLevel[value.upper()]
        except KeyError:
            raise ValueError(f"unknown access level: {value}")
    return value


AccessLevel = Annotated[
    RbacAccessLevel,
    BeforeValidator(_parse_access_level),
    PlainSerializer(lambda level: level.name, return_type=str),
]


# ==================== Requests ====================


class FieldRuleRequest(BaseModel):
    """Field-level access override under a scope rule."""

    field_name: str = Field(..., min_length=1, max_length=128)
    access_level: AccessLevel


class ScopeRuleRequest(BaseModel):
    """Access level for one scope."""

    scope: RbacScope
    access_level: AccessLevel
    field_rules: Optional[List[FieldRuleRequest]] = None


class RoleRequest(BaseModel):
    """Request to create or fully replace a role."""

    role_name: str = Field(..., max_length=64)
    description: Optional[str] = None
    is_super: bool = False
    scope_rules: Optional[List[ScopeRuleRequest]] = None

    @field_validator("role_name")
    @classmethod
    def role_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("role_name must not be empty")
        return value


class ActorCreateRequest(BaseModel):
    """Request to create an actor."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=4, max_length=128)
    role_id: UUID
    is_locked: bool = False


class ActorRoleRequest(BaseModel):
    """Request to bind an actor to a role."""

    role_id: UUID


class ActorLockRequest(BaseModel):
    """Request to lock or unlock an actor."""

    is_locked: bool


# ==================== Responses ====================


class FieldRuleResponse(BaseModel):
    """Persisted field rule."""

    id: UUID
    field_name: str
    access_level: AccessLevel

    model_config = ConfigDict(from_attributes=True)


class ScopeRuleResponse(BaseModel):
    """Persisted scope rule."""

    id: UUID
    scope: RbacScope
    access_level: AccessLevel
    field_rules: List[FieldRuleResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleResponse(BaseModel):
    """Persisted role."""

    id: UUID
    role_name: str
    description: Optional[str] = None
    is_super: bool
    scope_rules: List[ScopeRuleResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActorResponse(BaseModel):
    """Actor without credentials."""

    id: UUID
    username: str
    role_id: UUID
    is_locked: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
