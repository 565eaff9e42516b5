"""
Credential Service

Business logic for actor authentication and actor administration.
"""

import logging
from typing import List, Optional
from uuid import UUID

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.auth.context import SessionContext
from dochub.api.db.models import ActorEntity, RbacRoleEntity
from dochub.api.errors import ActorError, RoleError


logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a plain text password with bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain text password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), password_hash.encode())


class CredentialService:
    """Actor credentials and session context resolution."""

    HINT = "Authenticate with a valid username and password."

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(
        self, username: str, password: str
    ) -> Optional[SessionContext]:
        """
        Authenticate an actor with username/password.

        Args:
            username: Actor's username
            password: Plain text password

        Returns:
            Session context if authenticated, None otherwise
        """
        actor = await self.get_actor_by_username(username)

        if not actor or actor.is_locked:
            return None

        if not verify_password(password, actor.password_hash):
            return None

        return SessionContext(
            actor_id=actor.id,
            username=actor.username,
            role_id=actor.role_id,
        )

    async def resolve_context(self, actor_id: UUID) -> Optional[SessionContext]:
        """
        Build a fresh session context for an actor id.

        The role is read from the actor row, so role changes apply to
        existing tokens on their next request.

        Returns:
            Session context, or None if the actor is gone or locked
        """
        actor = await self.get_actor_by_id(actor_id)
        if not actor or actor.is_locked:
            return None

        return SessionContext(
            actor_id=actor.id,
            username=actor.username,
            role_id=actor.role_id,
        )

    async def get_actor_by_username(self, username: str) -> Optional[ActorEntity]:
        """Get actor by username."""
        result = await self.db.execute(
            select(ActorEntity).where(ActorEntity.username == username)
        )
        return result.scalar_one_or_none()

    async def get_actor_by_id(self, actor_id: UUID) -> Optional[ActorEntity]:
        """Get actor by ID."""
        result = await self.db.execute(
            select(ActorEntity).where(ActorEntity.id == actor_id)
        )
        return result.scalar_one_or_none()

    async def find_all(self) -> List[ActorEntity]:
        """List all actors ordered by username."""
        result = await self.db.execute(
            select(ActorEntity).order_by(ActorEntity.username)
        )
        return list(result.scalars().all())

    async def create_actor(
        self, username: str, password: str, role_id: UUID, is_locked: bool = False
    ) -> ActorEntity:
        """
        Create a new actor bound to a role.

        Raises:
            ActorError.DuplicateUsername: If the username is taken
            RoleError.RoleNotFound: If the role does not exist
        """
        if await self.get_actor_by_username(username):
            raise ActorError.DuplicateUsername(username)
        await self._require_role(role_id)

        actor = ActorEntity(
            username=username,
            password_hash=hash_password(password),
            role_id=role_id,
            is_locked=is_locked,
        )
        self.db.add(actor)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ActorError.DuplicateUsername(username)
        await self.db.refresh(actor)

        logger.info("Created actor %s with role %s", actor.username, role_id)
        return actor

    async def assign_role(self, actor_id: UUID, role_id: UUID) -> ActorEntity:
        """Bind an actor to a different role."""
        actor = await self._require_actor(actor_id)
        await self._require_role(role_id)

        actor.role_id = role_id
        await self.db.commit()
        await self.db.refresh(actor)
        return actor

    async def set_locked(self, actor_id: UUID, is_locked: bool) -> ActorEntity:
        """Lock or unlock an actor. Locked actors cannot authenticate."""
        actor = await self._require_actor(actor_id)

        actor.is_locked = is_locked
        await self.db.commit()
        await self.db.refresh(actor)
        return actor

    async def _require_actor(self, actor_id: UUID) -> ActorEntity:
        actor = await self.get_actor_by_id(actor_id)
        if not actor:
            raise ActorError.ActorNotFound(actor_id)
        return actor

    async def _require_role(self, role_id: UUID) -> None:
        exists = await self.db.scalar(
            select(func.count(RbacRoleEntity.id)).where(RbacRoleEntity.id == role_id)
        )
        if not exists:
            raise RoleError.RoleNotFound(role_id)
