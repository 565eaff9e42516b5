"""
RBAC Routes

API endpoints for role and actor administration.
All endpoints are guarded by the RBAC_DASHBOARD scope.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from dochub.api.access.audit import AuditLogger
from dochub.api.access.rbac import AccessDecision, RbacAccessLevel, RbacScope
from dochub.api.auth.context import get_context
from dochub.api.auth.schemas import DeleteResponse
from dochub.api.auth.service import CredentialService
from dochub.api.dependencies import (
    get_audit_logger,
    get_credential_service,
    get_role_registry,
    require_access,
)
from dochub.api.errors import RoleError
from dochub.api.rbac.registry import RoleRegistry
from dochub.api.rbac.schemas import (
    ActorCreateRequest,
    ActorLockRequest,
    ActorResponse,
    ActorRoleRequest,
    RoleRequest,
    RoleResponse,
)


router = APIRouter()

can_view = require_access(RbacScope.RBAC_DASHBOARD, RbacAccessLevel.VIEW)
can_edit = require_access(RbacScope.RBAC_DASHBOARD, RbacAccessLevel.EDIT)
can_manage = require_access(RbacScope.RBAC_DASHBOARD, RbacAccessLevel.FULL)


# ==================== Roles ====================


@router.get(
    "/role",
    response_model=List[RoleResponse],
    summary="List roles",
)
async def list_roles(
    decision: AccessDecision = Depends(can_view),
    registry: RoleRegistry = Depends(get_role_registry),
) -> List[RoleResponse]:
    """List all roles with their scope and field rules."""
    roles = await registry.find_all()
    return [RoleResponse.model_validate(role) for role in roles]


@router.get(
    "/role/{role_id}",
    response_model=RoleResponse,
    summary="Get role",
)
async def get_role(
    role_id: UUID,
    decision: AccessDecision = Depends(can_view),
    registry: RoleRegistry = Depends(get_role_registry),
) -> RoleResponse:
    """Get a role by ID."""
    role = await registry.find_by_id(role_id)
    if role is None:
        raise RoleError.RoleNotFound(role_id)
    return RoleResponse.model_validate(role)


@router.post(
    "/role",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
)
async def create_role(
    request: Request,
    data: RoleRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_edit),
    registry: RoleRegistry = Depends(get_role_registry),
    audit: AuditLogger = Depends(get_audit_logger),
) -> RoleResponse:
    """
    Create a role.

    - **role_name**: unique, case-insensitive
    - **is_super**: super roles pass every check; scope rules are ignored
    - **scope_rules**: one rule per scope, one field rule per field
    """
    role = await registry.create(data)

    background_tasks.add_task(
        audit.record,
        operation="role created",
        context=get_context(request),
        log=f"role_id={role.id} | role_name={role.role_name}",
    )
    return RoleResponse.model_validate(role)


@router.put(
    "/role/{role_id}",
    response_model=RoleResponse,
    summary="Update role",
)
async def update_role(
    request: Request,
    role_id: UUID,
    data: RoleRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_edit),
    registry: RoleRegistry = Depends(get_role_registry),
    audit: AuditLogger = Depends(get_audit_logger),
) -> RoleResponse:
    """
    Replace a role and its complete rule set.

    Rules missing from the request are removed.
    """
    role = await registry.update(role_id, data)

    background_tasks.add_task(
        audit.record,
        operation="role updated",
        context=get_context(request),
        log=f"role_id={role.id} | role_name={role.role_name}",
    )
    return RoleResponse.model_validate(role)


@router.delete(
    "/role/{role_id}",
    response_model=DeleteResponse,
    summary="Delete role",
)
async def delete_role(
    request: Request,
    role_id: UUID,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    registry: RoleRegistry = Depends(get_role_registry),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DeleteResponse:
    """Delete a role that no actor is bound to."""
    deleted = await registry.delete(role_id)
    if not deleted:
        raise RoleError.RoleNotFound(role_id)

    background_tasks.add_task(
        audit.record,
        operation="role deleted",
        context=get_context(request),
        log=f"role_id={role_id}",
    )
    return DeleteResponse(deleted=deleted)


# ==================== Actors ====================


@router.get(
    "/actor",
    response_model=List[ActorResponse],
    summary="List actors",
)
async def list_actors(
    decision: AccessDecision = Depends(can_view),
    credentials: CredentialService = Depends(get_credential_service),
) -> List[ActorResponse]:
    """List all actors."""
    actors = await credentials.find_all()
    return [ActorResponse.model_validate(actor) for actor in actors]


@router.post(
    "/actor",
    response_model=ActorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create actor",
)
async def create_actor(
    request: Request,
    data: ActorCreateRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    credentials: CredentialService = Depends(get_credential_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ActorResponse:
    """Create an actor bound to an existing role."""
    actor = await credentials.create_actor(
        username=data.username,
        password=data.password,
        role_id=data.role_id,
        is_locked=data.is_locked,
    )

    background_tasks.add_task(
        audit.record,
        operation="actor created",
        context=get_context(request),
        log=f"actor_id={actor.id} | username={actor.username} | role_id={actor.role_id}",
    )
    return ActorResponse.model_validate(actor)


@router.put(
    "/actor/{actor_id}/role",
    response_model=ActorResponse,
    summary="Assign role",
)
async def assign_role(
    request: Request,
    actor_id: UUID,
    data: ActorRoleRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    credentials: CredentialService = Depends(get_credential_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ActorResponse:
    """
    Bind an actor to a role.

    Takes effect on the actor's next request; existing tokens stay valid.
    """
    actor = await credentials.assign_role(actor_id, data.role_id)

    background_tasks.add_task(
        audit.record,
        operation="actor role assigned",
        context=get_context(request),
        log=f"actor_id={actor_id} | role_id={data.role_id}",
    )
    return ActorResponse.model_validate(actor)


@router.put(
    "/actor/{actor_id}/lock",
    response_model=ActorResponse,
    summary="Lock or unlock actor",
)
async def lock_actor(
    request: Request,
    actor_id: UUID,
    data: ActorLockRequest,
    background_tasks: BackgroundTasks,
    decision: AccessDecision = Depends(can_manage),
    credentials: CredentialService = Depends(get_credential_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ActorResponse:
    """Lock or unlock an actor. A locked actor's tokens stop resolving."""
    actor = await credentials.set_locked(actor_id, data.is_locked)

    background_tasks.add_task(
        audit.record,
        operation="actor locked" if data.is_locked else "actor unlocked",
        context=get_context(request),
        log=f"actor_id={actor_id}",
    )
    return ActorResponse.model_validate(actor)
