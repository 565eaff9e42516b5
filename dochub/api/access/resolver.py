"""
Access Resolver

Answers whether the actor of a session context may act on a scope at a
required level, and which fields must be redacted if so.
"""

import logging
from typing import Optional, Protocol
from uuid import UUID

from dochub.api.access.rbac import (
    AccessDecision,
    RbacAccessLevel,
    RbacScope,
    Role,
    deny,
    evaluate,
    grant_all,
)
from dochub.api.auth.context import SessionContext
from dochub.api.errors import AccessDeniedError


logger = logging.getLogger(__name__)


class RoleSource(Protocol):
    """Read access to roles. Implemented by ``RoleRegistry``."""

    async def find_role(self, role_id: UUID) -> Optional[Role]:
        ...


class AccessResolver:
    """
    Stateless authorization engine.

    Holds no request state, so one instance can serve concurrent checks as
    long as each uses its own role source session.
    """

    def __init__(self, roles: RoleSource, enabled: bool = True):
        self.roles = roles
        self.enabled = enabled

    async def resolve_role(self, context: Optional[SessionContext]) -> Optional[Role]:
        """Resolve the role bound to a session context."""
        if context is None:
            return None
        return await self.roles.find_role(context.role_id)

    async def check(
        self,
        context: Optional[SessionContext],
        scope: RbacScope,
        level: RbacAccessLevel,
    ) -> AccessDecision:
        """Evaluate access without raising on denial."""
        if not self.enabled:
            return grant_all(scope, level)

        role = await self.resolve_role(context)
        if role is None:
            return deny(scope, level)

        return evaluate(role, scope, level)

    async def authorize(
        self,
        context: Optional[SessionContext],
        scope: RbacScope,
        level: RbacAccessLevel,
    ) -> AccessDecision:
        """
        Evaluate access and raise when denied.

        Raises:
            AccessDeniedError: If the actor lacks ``level`` on ``scope``
        """
        decision = await self.check(context, scope, level)
        if not decision.granted:
            logger.warning(
                "Denied %s on %s for actor %s",
                level.name,
                scope.value,
                context.actor_id if context else None,
            )
            raise AccessDeniedError(scope, level)

        if decision.redacted_fields:
            logger.debug(
                "Granted %s on %s with redacted fields %s",
                level.name,
                scope.value,
                sorted(decision.redacted_fields),
            )
        return decision
