import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_api.api.v1.models import Role as RoleModel
from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.models import ConflictError, NotFoundError
from rbac_api.core.repositories import BaseRepository

logger = logging.getLogger(__name__)


def _permission_values(permissions: Iterable) -> List[str]:
    """Decode, collapse duplicates and keep a stable order."""
    return sorted({p.value for p in Permission.decode_many(permissions)})


class RoleRepository(BaseRepository[RoleModel]):
    """
    Role/Permission store.

    Roles reference permissions by name. Permission-set changes always
    assign a fresh list to the JSON column so the ORM sees the change.
    Inactive roles are invisible to every lookup.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(RoleModel, session_factory)

    def _active(self):
        return select(self.model).where(self.model.is_active.is_(True))

    # --------------
    # LOOKUPS
    # --------------

    async def find_by_name(self, name) -> Optional[RoleModel]:
        return await self._first(self._active().where(self.model.name == str(name)))

    async def find_by_names(self, names: Iterable[str]) -> List[RoleModel]:
        # Raw strings: unknown names simply match nothing
        wanted = {str(n) for n in names}
        if not wanted:
            return []
        return await self._all(
            self._active().where(self.model.name.in_(wanted)).order_by(self.model.name)
        )

    async def find_all(self) -> List[RoleModel]:
        return await self._all(self._active().order_by(self.model.name))

    async def exists(self, name) -> bool:
        return await self.find_by_name(name) is not None

    async def get_permissions(self, name) -> Set[str]:
        role = await self.find_by_name(name)
        if role is None:
            raise NotFoundError(f"Role '{name}' not found")
        return set(role.permissions or [])

    async def get_permissions_for_roles(self, role_names: Iterable[str]) -> Set[str]:
        """
        Union of the permissions of every active role in ``role_names``.

        Unknown or inactive names are skipped, never reported: the result is
        just smaller, which keeps permission checks failing closed.
        """
        permissions: Set[str] = set()
        for role in await self.find_by_names(role_names):
            permissions.update(role.permissions or [])
        return permissions

    # --------------
    # MUTATIONS
    # --------------

    async def _get_active_for_update(self, db: AsyncSession, name) -> RoleModel:
        result = await db.execute(self._active().where(self.model.name == str(name)))
        role = result.scalars().first()
        if role is None:
            raise NotFoundError(f"Role '{name}' not found")
        return role

    async def create(self, name, description: str = "", permissions: Iterable = ()) -> RoleModel:
        """
        Create a role, or bring a soft-deleted one back with the new values.

        Raises:
            ConflictError: an active role with that name already exists.
        """
        role_name = RoleName.decode(name)
        values = _permission_values(permissions)

        async with self._session_factory() as db:
            result = await db.execute(select(self.model).where(self.model.name == role_name.value))
            role = result.scalars().first()
            if role is not None and role.is_active:
                raise ConflictError(f"Role '{role_name}' already exists")

            if role is None:
                role = self.model(
                    name=role_name.value,
                    description=description or "",
                    permissions=values,
                    is_active=True,
                )
                db.add(role)
            else:
                logger.info(f"Reactivating soft-deleted role '{role_name}'")
                role.description = description or ""
                role.permissions = values
                role.is_active = True
            return await self._commit(db, role)

    async def replace_permissions(self, name, permissions: Iterable) -> RoleModel:
        role_name = str(name)
        values = _permission_values(permissions)
        async with self._session_factory() as db:
            role = await self._get_active_for_update(db, role_name)
            role.permissions = values
            return await self._commit(db, role)

    async def add_permissions(self, name, permissions: Iterable) -> RoleModel:
        role_name = str(name)
        values = set(_permission_values(permissions))
        async with self._session_factory() as db:
            role = await self._get_active_for_update(db, role_name)
            role.permissions = sorted(set(role.permissions or []) | values)
            return await self._commit(db, role)

    async def remove_permissions(self, name, permissions: Iterable) -> RoleModel:
        role_name = str(name)
        values = set(_permission_values(permissions))
        async with self._session_factory() as db:
            role = await self._get_active_for_update(db, role_name)
            role.permissions = sorted(set(role.permissions or []) - values)
            return await self._commit(db, role)

    async def soft_delete(self, name) -> RoleModel:
        """Deactivate a role. A second delete of the same name raises NotFoundError."""
        role_name = str(name)
        async with self._session_factory() as db:
            role = await self._get_active_for_update(db, role_name)
            role.is_active = False
            return await self._commit(db, role)
