from typing import Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_api.api.v1.models import User as UserModel, UserCredential
from rbac_api.core.models import ConflictError, NotFoundError
from rbac_api.core.repositories import BaseRepository


def _as_uuid(user_id: Union[str, UUID]) -> Optional[UUID]:
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except ValueError:
        return None


class UserRepository(BaseRepository[UserModel]):
    """
    Credential store.

    Users are returned as ORM objects with their ``credentials`` eagerly
    loaded; callers that serialize a user go through ``UserRead``, which
    has no credential fields.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(UserModel, session_factory)

    async def create(
        self,
        email: str,
        username: str,
        password_hash: str,
        password_salt: str,
        roles: Iterable[str],
        firstname: Optional[str] = None,
        last_name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> UserModel:
        """
        Persist a user and its credential record in one transaction.

        Raises:
            ConflictError: the email is already taken.
        """
        async with self._session_factory() as db:
            user = self.model(
                email=email,
                username=username,
                firstname=firstname,
                last_name=last_name,
                image=image,
                roles=[str(r) for r in roles],
            )
            user.credentials = UserCredential(
                password_hash=password_hash,
                password_salt=password_salt,
            )
            db.add(user)
            try:
                return await self._commit(db, user)
            except ConflictError:
                raise ConflictError("User with this email already exists")

    async def list(self, page: int = 1, limit: int = 20) -> List[UserModel]:
        offset = (page - 1) * limit
        return await self._all(
            select(self.model).order_by(self.model.created_at, self.model.email).offset(offset).limit(limit)
        )

    async def get_by_id(self, user_id: Union[str, UUID]) -> Optional[UserModel]:
        """Return the user, or None when the id is unknown or not a UUID."""
        user_uuid = _as_uuid(user_id)
        if user_uuid is None:
            return None
        return await super().get_by_id(user_uuid)

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        return await self._first(select(self.model).where(self.model.email == email))

    async def get_by_refresh_token(self, refresh_token: str) -> Optional[UserModel]:
        """Find the user currently holding exactly this refresh token."""
        if not refresh_token:
            return None
        return await self._first(
            select(self.model)
            .join(UserCredential, UserCredential.user_id == self.model.id)
            .where(UserCredential.refresh_token == refresh_token)
        )

    async def set_refresh_token(self, user_id: Union[str, UUID], refresh_token: Optional[str]) -> None:
        """Store the single live refresh token; ``None`` clears it. Last writer wins."""
        user_uuid = _as_uuid(user_id)
        async with self._session_factory() as db:
            result = await db.execute(select(UserCredential).where(UserCredential.user_id == user_uuid))
            credential = result.scalars().first()
            if credential is None:
                raise NotFoundError("User not found")
            credential.refresh_token = refresh_token
            await db.commit()

    async def delete(self, user_id: Union[str, UUID]) -> UserModel:
        """Physically remove the user and its credentials; return the removed user."""
        user_uuid = _as_uuid(user_id)
        if user_uuid is None:
            raise NotFoundError("User not found")
        async with self._session_factory() as db:
            result = await db.execute(select(self.model).where(self.model.id == user_uuid))
            user = result.scalars().first()
            if user is None:
                raise NotFoundError("User not found")
            await db.delete(user)
            await db.commit()
            return user
