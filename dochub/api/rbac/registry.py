"""
Role Registry

Persistence of roles and their scope/field rules.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.access.rbac import Role, role_from_entity
from dochub.api.db.models import (
    ActorEntity,
    RbacFieldRuleEntity,
    RbacRoleEntity,
    RbacScopeRuleEntity,
)
from dochub.api.errors import RoleError
from dochub.api.rbac.schemas import RoleRequest, ScopeRuleRequest


logger = logging.getLogger(__name__)


def validate_scope_rules(request: RoleRequest) -> List[ScopeRuleRequest]:
    """
    Check a role request for duplicate scopes and duplicate fields.

    Super roles ignore scope rules, so they validate to an empty list.

    Raises:
        RoleError.DuplicateScope: If a scope is declared twice
        RoleError.DuplicateField: If a field is declared twice in one scope
    """
    if request.is_super or not request.scope_rules:
        return []

    seen_scopes = set()
    for rule in request.scope_rules:
        if rule.scope in seen_scopes:
            raise RoleError.DuplicateScope(rule.scope)
        seen_scopes.add(rule.scope)

        seen_fields = set()
        for field_rule in rule.field_rules or []:
            if field_rule.field_name in seen_fields:
                raise RoleError.DuplicateField(rule.scope, field_rule.field_name)
            seen_fields.add(field_rule.field_name)

    return list(request.scope_rules)


class RoleRegistry:
    """
    Role store over an async session.

    Every mutation commits once at the end and rolls back on any failure,
    so readers see a role's rule set either fully before or fully after.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Queries ====================

    async def find_by_id(self, role_id: UUID) -> Optional[RbacRoleEntity]:
        """Get role by ID with its rules loaded."""
        result = await self.db.execute(
            select(RbacRoleEntity)
            .where(RbacRoleEntity.id == role_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_name(self, role_name: str) -> Optional[RbacRoleEntity]:
        """Get role by name, ignoring case."""
        result = await self.db.execute(
            select(RbacRoleEntity).where(
                func.lower(RbacRoleEntity.role_name) == role_name.strip().lower()
            )
        )
        return result.scalar_one_or_none()

    async def find_all(self) -> List[RbacRoleEntity]:
        """List all roles ordered by name."""
        result = await self.db.execute(
            select(RbacRoleEntity).order_by(RbacRoleEntity.role_name)
        )
        return list(result.scalars().all())

    async def find_role(self, role_id: UUID) -> Optional[Role]:
        """Get the domain role used by the access resolver."""
        entity = await self.find_by_id(role_id)
        if entity is None:
            return None
        return role_from_entity(entity)

    # ==================== Mutations ====================

    async def create(self, request: RoleRequest) -> RbacRoleEntity:
        """
        Create a role with its scope rules.

        Raises:
            RoleError.DuplicateRoleName: If the name exists (any case)
            RoleError.DuplicateScope: If a scope is declared twice
        """
        if await self.find_by_name(request.role_name):
            raise RoleError.DuplicateRoleName(request.role_name)
        scope_rules = validate_scope_rules(request)

        role = RbacRoleEntity(
            role_name=request.role_name,
            description=request.description,
            is_super=request.is_super,
            scope_rules=self._build_scope_rules(scope_rules),
        )

        try:
            self.db.add(role)
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent create with the same name.
            await self.db.rollback()
            raise RoleError.DuplicateRoleName(request.role_name)
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Created role %s (super=%s)", role.role_name, role.is_super)
        return await self.find_by_id(role.id)

    async def update(self, role_id: UUID, request: RoleRequest) -> RbacRoleEntity:
        """
        Replace a role's attributes and its complete rule set.

        Rules not present in the request are dropped. The delete and the
        re-insert happen in one transaction.

        Raises:
            RoleError.RoleNotFound: If the role does not exist
            RoleError.DuplicateRoleName: If renaming onto another role's name
        """
        role = await self.find_by_id(role_id)
        if role is None:
            raise RoleError.RoleNotFound(role_id)

        other = await self.find_by_name(request.role_name)
        if other is not None and other.id != role_id:
            raise RoleError.DuplicateRoleName(request.role_name)
        scope_rules = validate_scope_rules(request)

        try:
            role.role_name = request.role_name
            role.description = request.description
            role.is_super = request.is_super

            # Flush the deletes first; (role_id, scope) is unique.
            role.scope_rules.clear()
            await self.db.flush()
            role.scope_rules.extend(self._build_scope_rules(scope_rules))
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise RoleError.DuplicateRoleName(request.role_name)
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Updated role %s with %d scope rule(s)", role.role_name, len(scope_rules))
        return await self.find_by_id(role_id)

    async def delete(self, role_id: UUID) -> int:
        """
        Delete a role and, by cascade, its rules.

        Returns:
            1 if deleted, 0 if no such role

        Raises:
            RoleError.RoleInUse: If actors are still bound to the role
        """
        role = await self.find_by_id(role_id)
        if role is None:
            return 0

        actor_count = await self.db.scalar(
            select(func.count(ActorEntity.id)).where(ActorEntity.role_id == role_id)
        ) or 0
        if actor_count:
            raise RoleError.RoleInUse(role_id, actor_count)

        try:
            await self.db.delete(role)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Deleted role %s", role.role_name)
        return 1

    @staticmethod
    def _build_scope_rules(scope_rules: List[ScopeRuleRequest]) -> List[RbacScopeRuleEntity]:
        return [
            RbacScopeRuleEntity(
                scope=rule.scope,
                access_level=rule.access_level,
                field_rules=[
                    RbacFieldRuleEntity(
                        field_name=field_rule.field_name,
                        access_level=field_rule.access_level,
                    )
                    for field_rule in rule.field_rules or []
                ],
            )
            for rule in scope_rules
        ]
