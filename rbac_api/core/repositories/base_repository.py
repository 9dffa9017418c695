from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_api.core.models import Base, ConflictError

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """
    Shared plumbing for the stores.

    Every public method opens its own short-lived session from the factory,
    so a write is visible to the very next read. Returned ORM objects are
    detached (``expire_on_commit=False``) and safe to read after the
    session closes.
    """

    def __init__(self, model: Type[T], session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self._session_factory = session_factory

    async def _first(self, statement) -> Optional[T]:
        async with self._session_factory() as db:
            result = await db.execute(statement)
            return result.scalars().first()

    async def _all(self, statement) -> List[T]:
        async with self._session_factory() as db:
            result = await db.execute(statement)
            return list(result.scalars().all())

    async def _commit(self, db: AsyncSession, item: T) -> T:
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(f"{self.model.__name__} violates a unique constraint") from e
        await db.refresh(item)
        return item

    async def get_by_id(self, item_id: Any) -> Optional[T]:
        return await self._first(select(self.model).where(self.model.id == item_id))
