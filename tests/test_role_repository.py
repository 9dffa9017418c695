"""Tests for the role and permission stores and the seeded catalog."""

import pytest

from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.models import ConflictError, InvalidInputError, NotFoundError
from rbac_api.db.seeds import seed_rbac


# =============================================================================
# Seeded state
# =============================================================================

class TestSeededCatalog:

    async def test_all_roles_seeded(self, role_repository):
        names = {role.name for role in await role_repository.find_all()}
        assert names == {"super_admin", "admin", "manager", "user", "guest"}

    async def test_super_admin_has_every_permission(self, role_repository):
        permissions = await role_repository.get_permissions("super_admin")
        assert permissions == {p.value for p in Permission}
        assert len(permissions) == 20

    @pytest.mark.parametrize("role,expected", [
        ("admin", {"user:create", "user:read", "user:update", "user:delete", "user:list",
                   "self:read", "self:update"}),
        ("manager", {"user:read", "user:update", "user:list", "self:read", "self:update"}),
        ("user", {"self:read", "self:update"}),
        ("guest", {"self:read"}),
    ])
    async def test_default_matrix(self, role_repository, role, expected):
        assert await role_repository.get_permissions(role) == expected

    async def test_seeding_is_idempotent(self, container, role_repository):
        await seed_rbac(container.session_factory)
        assert len(await role_repository.find_all()) == 5
        assert len(await container.permission_repository.find_all()) == 20

    async def test_reseed_resets_role_permissions(self, container, role_repository):
        await role_repository.add_permissions("user", ["user:list"])
        await seed_rbac(container.session_factory)
        assert await role_repository.get_permissions("user") == {"self:read", "self:update"}


# =============================================================================
# getPermissionsForRoles
# =============================================================================

class TestPermissionsForRoles:

    async def test_union(self, role_repository):
        manager = await role_repository.get_permissions_for_roles({"manager"})
        guest = await role_repository.get_permissions_for_roles({"guest"})
        both = await role_repository.get_permissions_for_roles({"manager", "guest"})
        assert both == manager | guest

    async def test_duplicates_are_idempotent(self, role_repository):
        once = await role_repository.get_permissions_for_roles(["admin"])
        twice = await role_repository.get_permissions_for_roles(["admin", "admin"])
        assert once == twice

    async def test_unknown_roles_are_skipped(self, role_repository):
        assert await role_repository.get_permissions_for_roles({"nope"}) == set()
        assert await role_repository.get_permissions_for_roles({"nope", "guest"}) == {"self:read"}

    async def test_inactive_roles_are_skipped(self, role_repository):
        await role_repository.soft_delete("manager")
        assert await role_repository.get_permissions_for_roles({"manager"}) == set()

    async def test_empty_input(self, role_repository):
        assert await role_repository.get_permissions_for_roles(set()) == set()


# =============================================================================
# Role mutations
# =============================================================================

class TestRoleMutations:

    async def test_create_active_duplicate_is_conflict(self, role_repository):
        with pytest.raises(ConflictError):
            await role_repository.create("admin", "again", [])

    async def test_create_reactivates_soft_deleted_role(self, role_repository):
        await role_repository.soft_delete("guest")
        role = await role_repository.create("guest", "Back again", ["self:read", "self:update"])
        assert role.is_active is True
        assert role.description == "Back again"
        assert set(role.permissions) == {"self:read", "self:update"}
        assert len(await role_repository.find_all()) == 5

    async def test_create_rejects_unknown_permission(self, role_repository):
        await role_repository.soft_delete("guest")
        with pytest.raises(InvalidInputError):
            await role_repository.create("guest", "", ["self:fly"])

    async def test_create_rejects_unknown_role_name(self, role_repository):
        with pytest.raises(InvalidInputError):
            await role_repository.create("wizard", "", [])

    async def test_replace_permissions(self, role_repository):
        role = await role_repository.replace_permissions("guest", [Permission.USER_READ, "user:read"])
        assert role.permissions == ["user:read"]

    async def test_add_permissions_is_a_union(self, role_repository):
        role = await role_repository.add_permissions("user", ["self:read", "user:list"])
        assert sorted(role.permissions) == ["self:read", "self:update", "user:list"]

    async def test_remove_permissions_is_a_difference(self, role_repository):
        role = await role_repository.remove_permissions("user", ["self:update", "user:delete"])
        assert role.permissions == ["self:read"]

    async def test_change_is_visible_on_next_read(self, role_repository):
        await role_repository.remove_permissions("admin", ["user:delete"])
        assert "user:delete" not in await role_repository.get_permissions_for_roles({"admin"})

    async def test_mutating_missing_role_is_not_found(self, role_repository):
        with pytest.raises(NotFoundError):
            await role_repository.add_permissions("nope", ["self:read"])

    async def test_second_soft_delete_is_not_found(self, role_repository):
        deleted = await role_repository.soft_delete(RoleName.GUEST)
        assert deleted.is_active is False
        with pytest.raises(NotFoundError):
            await role_repository.soft_delete(RoleName.GUEST)

    async def test_soft_deleted_role_is_hidden(self, role_repository):
        await role_repository.soft_delete("guest")
        assert await role_repository.find_by_name("guest") is None
        assert await role_repository.exists("guest") is False
        with pytest.raises(NotFoundError):
            await role_repository.get_permissions("guest")

    async def test_updating_soft_deleted_role_is_not_found(self, role_repository):
        await role_repository.soft_delete("guest")
        with pytest.raises(NotFoundError):
            await role_repository.replace_permissions("guest", ["self:read"])


# =============================================================================
# Permission store
# =============================================================================

class TestPermissionRepository:

    async def test_find_by_resource(self, container):
        permissions = await container.permission_repository.find_by_resource("profile")
        assert {p.name for p in permissions} == {"self:read", "self:update", "self:delete"}

    async def test_find_by_resource_and_action(self, container):
        permission = await container.permission_repository.find_by_resource_and_action("role", "assign")
        assert permission.name == "role:assign"

    async def test_find_by_names(self, container):
        permissions = await container.permission_repository.find_by_names(["user:read", "user:list"])
        assert [p.name for p in permissions] == ["user:list", "user:read"]

    async def test_create_existing_is_conflict(self, container):
        with pytest.raises(ConflictError):
            await container.permission_repository.create("user:read")

    async def test_soft_delete_then_bulk_create_restores(self, container):
        repo = container.permission_repository
        await repo.soft_delete("user:read")
        assert await repo.exists("user:read") is False
        with pytest.raises(NotFoundError):
            await repo.soft_delete("user:read")

        created = await repo.bulk_create(["user:read", "user:list"])
        assert [p.name for p in created] == ["user:read"]
        assert await repo.exists("user:read") is True

    async def test_update_description(self, container):
        permission = await container.permission_repository.update("user:read", description="Look at users")
        assert permission.description == "Look at users"
