from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from rbac_api.core.models import Base


# ----------------------------------------------------------------------
# Database Manager Class
# ----------------------------------------------------------------------

class DatabaseManager:
    """
    Manages the SQLAlchemy AsyncEngine and the AsyncSession factory.

    Encapsulates database connection setup and session creation logic for
    the application. One instance is built at process start and handed to
    the stores, which open a short-lived session per operation.
    """

    def __init__(self, db_url: str, echo: bool = False, **engine_kwargs):
        """
        Initializes the DatabaseManager with the database connection URL.

        Args:
            db_url (str): The connection string for the asynchronous database driver.
            echo (bool): Log generated SQL. Set to True only for debugging.
            **engine_kwargs: Extra arguments for ``create_async_engine``
                (e.g. ``poolclass`` for in-memory SQLite).
        """
        if not db_url.startswith("sqlite"):
            # Checks connection validity on pool checkout.
            engine_kwargs.setdefault("pool_pre_ping", True)

        self._engine: AsyncEngine = create_async_engine(db_url, echo=echo, **engine_kwargs)

        self._async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            class_=AsyncSession,
            expire_on_commit=False,  # Prevents unnecessary loading of objects after a commit.
            autoflush=False,
            bind=self._engine,
        )

    @property
    def engine(self) -> AsyncEngine:
        """
        Provides access to the configured SQLAlchemy AsyncEngine.

        Returns:
            AsyncEngine: The configured engine instance.
        """
        return self._engine

    @property
    def async_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """
        Provides access to the configured asynchronous session maker.

        Returns:
            async_sessionmaker[AsyncSession]: The session factory.
        """
        return self._async_session_factory

    async def create_all(self) -> None:
        """Create every mapped table that does not exist yet."""
        # Import for side effects: registers the tables on Base.metadata
        from rbac_api.api.v1 import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()
