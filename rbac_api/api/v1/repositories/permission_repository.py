import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_api.api.v1.models import Permission as PermissionModel
from rbac_api.api.v1.shared.rbac_types import (
    PERMISSION_DESCRIPTIONS,
    Action,
    Permission,
    Resource,
    split_permission,
)
from rbac_api.core.models import ConflictError, NotFoundError
from rbac_api.core.repositories import BaseRepository

logger = logging.getLogger(__name__)


class PermissionRepository(BaseRepository[PermissionModel]):
    """
    Store for standalone permission metadata.

    Lookups only ever see active rows; a soft-deleted permission behaves as
    if it did not exist until it is created again.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(PermissionModel, session_factory)

    def _active(self):
        return select(self.model).where(self.model.is_active.is_(True))

    async def find_by_name(self, name) -> Optional[PermissionModel]:
        return await self._first(self._active().where(self.model.name == str(name)))

    async def find_by_names(self, names: Iterable) -> List[PermissionModel]:
        wanted = {Permission.decode(n).value for n in names}
        if not wanted:
            return []
        return await self._all(
            self._active().where(self.model.name.in_(wanted)).order_by(self.model.name)
        )

    async def find_by_resource(self, resource) -> List[PermissionModel]:
        resource = Resource.decode(resource).value
        return await self._all(
            self._active().where(self.model.resource == resource).order_by(self.model.name)
        )

    async def find_by_resource_and_action(self, resource, action) -> Optional[PermissionModel]:
        resource = Resource.decode(resource).value
        action = Action.decode(action).value
        return await self._first(
            self._active().where(self.model.resource == resource, self.model.action == action)
        )

    async def find_all(self) -> List[PermissionModel]:
        return await self._all(self._active().order_by(self.model.resource, self.model.action))

    async def exists(self, name) -> bool:
        return await self.find_by_name(name) is not None

    async def create(self, name, description: Optional[str] = None) -> PermissionModel:
        """
        Create a catalog permission.

        Raises:
            ConflictError: an active permission with that name exists.
        """
        permission = Permission.decode(name)
        resource, action = split_permission(permission)
        description = description or PERMISSION_DESCRIPTIONS[permission]

        async with self._session_factory() as db:
            result = await db.execute(select(self.model).where(self.model.name == permission.value))
            item = result.scalars().first()
            if item is not None and item.is_active:
                raise ConflictError(f"Permission '{permission}' already exists")

            if item is None:
                item = self.model(
                    name=permission.value,
                    resource=resource.value,
                    action=action.value,
                    description=description,
                    is_active=True,
                )
                db.add(item)
            else:
                item.description = description
                item.is_active = True
            return await self._commit(db, item)

    async def bulk_create(self, names: Iterable) -> List[PermissionModel]:
        """Create every permission in ``names`` that is not active yet; return the new rows."""
        created = []
        for permission in Permission.decode_many(names):
            if await self.exists(permission):
                continue
            created.append(await self.create(permission))
        logger.info(f"Created {len(created)} permission(s)")
        return created

    async def update(self, name, description: Optional[str] = None) -> PermissionModel:
        permission = str(name)
        async with self._session_factory() as db:
            result = await db.execute(self._active().where(self.model.name == permission))
            item = result.scalars().first()
            if item is None:
                raise NotFoundError(f"Permission '{permission}' not found")
            if description is not None:
                item.description = description
            return await self._commit(db, item)

    async def soft_delete(self, name) -> PermissionModel:
        permission = str(name)
        async with self._session_factory() as db:
            result = await db.execute(self._active().where(self.model.name == permission))
            item = result.scalars().first()
            if item is None:
                raise NotFoundError(f"Permission '{permission}' not found")
            item.is_active = False
            return await self._commit(db, item)
