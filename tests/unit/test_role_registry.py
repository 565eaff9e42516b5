"""
Tests for DocHub Role Registry
==============================

Tests role persistence, rule replacement and deletion semantics.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from dochub.api.access.rbac import RbacAccessLevel, RbacScope, ScopedRole, SuperRole
from dochub.api.auth.service import CredentialService
from dochub.api.db.models import RbacFieldRuleEntity, RbacScopeRuleEntity
from dochub.api.errors import RoleError
from dochub.api.rbac.registry import RoleRegistry
from dochub.api.rbac.schemas import FieldRuleRequest, RoleRequest, ScopeRuleRequest


def editor_request(name: str = "editor") -> RoleRequest:
    return RoleRequest(
        role_name=name,
        description="Edits documents",
        scope_rules=[
            ScopeRuleRequest(
                scope=RbacScope.DOCUMENT,
                access_level="EDIT",
                field_rules=[FieldRuleRequest(field_name="location", access_level="NONE")],
            ),
            ScopeRuleRequest(scope=RbacScope.RBAC_DASHBOARD, access_level="VIEW"),
        ],
    )


@pytest.fixture
def registry(db_session) -> RoleRegistry:
    return RoleRegistry(db_session)


@pytest_asyncio.fixture
async def editor(registry):
    """Persisted editor role."""
    return await registry.create(editor_request())


async def count(session, entity) -> int:
    return await session.scalar(select(func.count()).select_from(entity))


class TestCreate:
    """Tests for role creation."""

    @pytest.mark.asyncio
    async def test_create_persists_rules(self, editor):
        """Should persist scope and field rules."""
        rules = {rule.scope: rule for rule in editor.scope_rules}

        assert set(rules) == {RbacScope.DOCUMENT, RbacScope.RBAC_DASHBOARD}
        assert rules[RbacScope.DOCUMENT].access_level == RbacAccessLevel.EDIT
        assert [f.field_name for f in rules[RbacScope.DOCUMENT].field_rules] == ["location"]

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected_ignoring_case(self, registry, editor):
        """Role names should be unique regardless of case."""
        with pytest.raises(RoleError.DuplicateRoleName):
            await registry.create(editor_request("EDITOR"))

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_name_rejected(self, registry, editor, db_session):
        """A name taken between the lookup and the insert should still be a duplicate."""
        with patch.object(registry, "find_by_name", AsyncMock(return_value=None)):
            with pytest.raises(RoleError.DuplicateRoleName):
                await registry.create(editor_request("EDITOR"))

        assert await count(db_session, RbacScopeRuleEntity) == 2
        assert await registry.find_by_name("editor") is not None

    @pytest.mark.asyncio
    async def test_duplicate_scope_rejected(self, registry, db_session):
        """A scope declared twice should be rejected and nothing stored."""
        request = RoleRequest(
            role_name="twice",
            scope_rules=[
                ScopeRuleRequest(scope=RbacScope.DOCUMENT, access_level="VIEW"),
                ScopeRuleRequest(scope=RbacScope.DOCUMENT, access_level="FULL"),
            ],
        )

        with pytest.raises(RoleError.DuplicateScope):
            await registry.create(request)
        assert await registry.find_by_name("twice") is None

    @pytest.mark.asyncio
    async def test_duplicate_field_rejected(self, registry):
        """A field declared twice under one scope should be rejected."""
        request = RoleRequest(
            role_name="fields",
            scope_rules=[
                ScopeRuleRequest(
                    scope=RbacScope.DOCUMENT,
                    access_level="VIEW",
                    field_rules=[
                        FieldRuleRequest(field_name="size", access_level="NONE"),
                        FieldRuleRequest(field_name="size", access_level="VIEW"),
                    ],
                )
            ],
        )

        with pytest.raises(RoleError.DuplicateField):
            await registry.create(request)

    @pytest.mark.asyncio
    async def test_super_role_ignores_rules(self, registry):
        """Super roles should not persist scope rules."""
        request = editor_request("root").model_copy(update={"is_super": True})

        role = await registry.create(request)

        assert role.is_super
        assert role.scope_rules == []
        assert isinstance(await registry.find_role(role.id), SuperRole)

    @pytest.mark.asyncio
    async def test_find_role_builds_scoped_role(self, registry, editor):
        """find_role should return the domain role."""
        role = await registry.find_role(editor.id)

        assert isinstance(role, ScopedRole)
        assert role.scope_rules[RbacScope.DOCUMENT].access_level == RbacAccessLevel.EDIT

    @pytest.mark.asyncio
    async def test_find_role_unknown(self, registry):
        """Unknown ids should resolve to no role."""
        assert await registry.find_role(uuid.uuid4()) is None


class TestUpdate:
    """Tests for full rule replacement."""

    @pytest.mark.asyncio
    async def test_update_replaces_rule_set(self, registry, editor, db_session):
        """Rules absent from the request should be removed."""
        request = RoleRequest(
            role_name="editor",
            scope_rules=[ScopeRuleRequest(scope=RbacScope.SYSTEM_ADMIN, access_level="VIEW")],
        )

        role = await registry.update(editor.id, request)

        assert [rule.scope for rule in role.scope_rules] == [RbacScope.SYSTEM_ADMIN]
        assert await count(db_session, RbacScopeRuleEntity) == 1
        assert await count(db_session, RbacFieldRuleEntity) == 0

    @pytest.mark.asyncio
    async def test_update_with_no_rules_removes_all(self, registry, editor, db_session):
        """An empty rule list should leave the role with no access."""
        role = await registry.update(editor.id, RoleRequest(role_name="editor", scope_rules=[]))

        assert role.scope_rules == []
        assert await count(db_session, RbacScopeRuleEntity) == 0
        domain = await registry.find_role(editor.id)
        assert dict(domain.scope_rules) == {}

    @pytest.mark.asyncio
    async def test_update_same_scope_different_level(self, registry, editor):
        """Re-declaring an existing scope should replace its level."""
        request = RoleRequest(
            role_name="editor",
            scope_rules=[ScopeRuleRequest(scope=RbacScope.DOCUMENT, access_level="FULL")],
        )

        role = await registry.update(editor.id, request)

        assert len(role.scope_rules) == 1
        assert role.scope_rules[0].access_level == RbacAccessLevel.FULL

    @pytest.mark.asyncio
    async def test_update_unknown_role(self, registry):
        """Updating a missing role should raise not found."""
        with pytest.raises(RoleError.RoleNotFound):
            await registry.update(uuid.uuid4(), editor_request())

    @pytest.mark.asyncio
    async def test_rename_onto_other_role_rejected(self, registry, editor):
        """Renaming onto another role's name should be rejected."""
        viewer = await registry.create(RoleRequest(role_name="viewer"))

        with pytest.raises(RoleError.DuplicateRoleName):
            await registry.update(viewer.id, RoleRequest(role_name="Editor"))

    @pytest.mark.asyncio
    async def test_rename_keeping_own_name(self, registry, editor):
        """A role may keep its own name with different case."""
        role = await registry.update(editor.id, editor_request("Editor"))
        assert role.role_name == "Editor"

    @pytest.mark.asyncio
    async def test_concurrent_rename_onto_taken_name_rejected(self, registry, editor):
        """A rename racing another role onto the same name should be a duplicate."""
        viewer = await registry.create(RoleRequest(role_name="viewer"))
        viewer_id = viewer.id

        with patch.object(registry, "find_by_name", AsyncMock(return_value=None)):
            with pytest.raises(RoleError.DuplicateRoleName):
                await registry.update(viewer_id, RoleRequest(role_name="Editor"))

        role = await registry.find_by_id(viewer_id)
        assert role.role_name == "viewer"

    @pytest.mark.asyncio
    async def test_failed_update_leaves_rules_intact(self, registry, editor, database):
        """A failure mid-update should roll back the whole rule set."""
        role_id = editor.id
        request = RoleRequest(
            role_name="editor",
            scope_rules=[ScopeRuleRequest(scope=RbacScope.SYSTEM_ADMIN, access_level="FULL")],
        )

        with patch.object(
            registry.db, "commit", side_effect=RuntimeError("connection lost")
        ):
            with pytest.raises(RuntimeError):
                await registry.update(role_id, request)

        async with database.session() as session:
            role = await RoleRegistry(session).find_role(role_id)

        assert set(role.scope_rules) == {RbacScope.DOCUMENT, RbacScope.RBAC_DASHBOARD}
        assert role.scope_rules[RbacScope.DOCUMENT].access_level == RbacAccessLevel.EDIT


class TestDelete:
    """Tests for role deletion."""

    @pytest.mark.asyncio
    async def test_delete_removes_role_and_rules(self, registry, editor, db_session):
        """Should delete the role with its rules."""
        assert await registry.delete(editor.id) == 1

        assert await registry.find_by_id(editor.id) is None
        assert await count(db_session, RbacScopeRuleEntity) == 0
        assert await count(db_session, RbacFieldRuleEntity) == 0

    @pytest.mark.asyncio
    async def test_delete_unknown_returns_zero(self, registry):
        """Deleting a missing role should report zero deletions."""
        assert await registry.delete(uuid.uuid4()) == 0

    @pytest.mark.asyncio
    async def test_delete_role_in_use_rejected(self, registry, editor, db_session):
        """Roles bound to actors should not be deletable."""
        await CredentialService(db_session).create_actor("alice", "secret", editor.id)

        with pytest.raises(RoleError.RoleInUse) as exc_info:
            await registry.delete(editor.id)

        assert exc_info.value.actor_count == 1
        assert await registry.find_by_id(editor.id) is not None
