import logging
from typing import Iterable, Optional, Set

from rbac_api.api.v1.repositories import RoleRepository
from rbac_api.api.v1.shared.rbac_types import DenialReason, PermissionCheckResult

logger = logging.getLogger(__name__)


def _names(values: Optional[Iterable]) -> Set[str]:
    return {str(v) for v in (values or [])}


class AuthorizationEngine:
    """
    Decision functions over a caller's role names.

    Every check returns a ``PermissionCheckResult`` and never raises: an
    empty role list denies, unknown roles or permissions deny, and a
    failing store read denies with a generic reason.
    """

    def __init__(self, role_repository: RoleRepository):
        self.role_repository = role_repository

    async def _resolve(self, roles: Set[str]) -> Optional[Set[str]]:
        """Effective permissions, or None when the store could not be read."""
        try:
            return await self.role_repository.get_permissions_for_roles(roles)
        except Exception as e:
            logger.error(f"Permission lookup failed for roles {sorted(roles)}: {e}", exc_info=True)
            return None

    async def has_permission(self, roles: Iterable, permission) -> PermissionCheckResult:
        return await self.has_all_permissions(roles, [permission])

    async def has_any_permission(self, roles: Iterable, permissions: Iterable) -> PermissionCheckResult:
        roles = _names(roles)
        if not roles:
            return PermissionCheckResult.deny(DenialReason.NO_ROLES_ASSIGNED)

        granted = await self._resolve(roles)
        if granted and granted & _names(permissions):
            return PermissionCheckResult.grant()
        return PermissionCheckResult.deny(DenialReason.INSUFFICIENT_PERMISSIONS)

    async def has_all_permissions(self, roles: Iterable, permissions: Iterable) -> PermissionCheckResult:
        roles = _names(roles)
        if not roles:
            return PermissionCheckResult.deny(DenialReason.NO_ROLES_ASSIGNED)

        required = _names(permissions)
        granted = await self._resolve(roles)
        # An empty requirement is not a blanket grant
        if granted and required and required <= granted:
            return PermissionCheckResult.grant()
        return PermissionCheckResult.deny(DenialReason.INSUFFICIENT_PERMISSIONS)

    def has_role(self, roles: Iterable, role) -> PermissionCheckResult:
        return self.has_any_role(roles, [role])

    def has_any_role(self, roles: Iterable, required_roles: Iterable) -> PermissionCheckResult:
        roles = _names(roles)
        if not roles:
            return PermissionCheckResult.deny(DenialReason.NO_ROLES_ASSIGNED)
        if roles & _names(required_roles):
            return PermissionCheckResult.grant()
        return PermissionCheckResult.deny(DenialReason.ROLE_NOT_FOUND)

    @staticmethod
    def is_owner(user_id, resource_owner_id) -> PermissionCheckResult:
        if user_id is not None and resource_owner_id is not None and str(user_id) == str(resource_owner_id):
            return PermissionCheckResult.grant()
        return PermissionCheckResult.deny(DenialReason.INSUFFICIENT_PERMISSIONS)

    async def get_user_permissions(self, roles: Iterable) -> Set[str]:
        roles = _names(roles)
        if not roles:
            return set()
        return await self._resolve(roles) or set()
