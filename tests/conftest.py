"""Pytest configuration and fixtures for the RBAC API tests."""

import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"


def pytest_configure(config):
    """Set up test environment before any application module is imported."""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ["ASYNC_DATABASE_URL"] = TEST_DATABASE_URL
    os.environ.setdefault("JWT_SECRET", "test-access-secret")
    os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
    os.environ.setdefault("PWD_SECRET", "test-password-secret")
    os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
    os.environ["SEED_ON_STARTUP"] = "false"


@pytest.fixture(autouse=True, scope="session")
def fast_password_hashing():
    """Lowest bcrypt cost keeps the suite fast; the scheme itself is unchanged."""
    from rbac_api.core.security import pwd_context

    pwd_context.update(bcrypt__rounds=4)
    yield


@pytest.fixture
def settings():
    from rbac_api.core.config import Settings
    return Settings(
        ENVIRONMENT="test",
        JWT_SECRET="test-access-secret",
        JWT_REFRESH_SECRET="test-refresh-secret",
        PWD_SECRET="test-password-secret",
        ASYNC_DATABASE_URL=TEST_DATABASE_URL,
        CREATE_TABLES_ON_STARTUP=False,
        SEED_ON_STARTUP=False,
    )


@pytest.fixture
async def db_manager():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    from rbac_api.db import DatabaseManager

    manager = DatabaseManager(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
async def seeded_db(db_manager):
    from rbac_api.db.seeds import seed_rbac

    await seed_rbac(db_manager.async_session_factory)
    return db_manager


@pytest.fixture
def container(settings, seeded_db):
    from rbac_api.core.container import ServiceContainer
    return ServiceContainer(settings, seeded_db)


@pytest.fixture
def role_repository(container):
    return container.role_repository


@pytest.fixture
def engine(container):
    return container.authorization_engine


@pytest.fixture
def make_user(container, settings):
    """Factory: persist a user with the given roles and a known password."""
    from rbac_api.core.security import generate_salt, get_password_hash

    async def _make_user(email="someone@example.com", roles=("user",), username="someone"):
        salt = generate_salt()
        return await container.user_repository.create(
            email=email,
            username=username,
            password_hash=get_password_hash(salt, TEST_PASSWORD, settings.PWD_SECRET),
            password_salt=salt,
            roles=list(roles),
        )

    return _make_user


@pytest.fixture
def bearer(container):
    """Factory: Authorization header for a persisted user."""

    def _bearer(user):
        token = container.token_service.issue_access_token(str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def app(settings, seeded_db):
    from rbac_api.main import create_app
    return create_app(settings, seeded_db)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
