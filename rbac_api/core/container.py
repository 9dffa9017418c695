from rbac_api.api.v1.repositories import PermissionRepository, RoleRepository, UserRepository
from rbac_api.api.v1.services import AuthorizationEngine, AuthService
from rbac_api.api.v1.shared.guards import RequestGate
from rbac_api.core.config import Settings
from rbac_api.core.helpers.token_helper import TokenService
from rbac_api.db import DatabaseManager


class ServiceContainer:
    """
    Every long-lived object of the application, built once at startup.

    Routers receive the container when they are created and close over the
    instances they need, so no service lives in a module-level global.
    """

    def __init__(self, settings: Settings, db_manager: DatabaseManager = None):
        self.settings = settings
        self.db_manager = db_manager or DatabaseManager(
            settings.ASYNC_DATABASE_URL,
            echo=settings.DB_ECHO,
        )
        session_factory = self.db_manager.async_session_factory

        self.permission_repository = PermissionRepository(session_factory)
        self.role_repository = RoleRepository(session_factory)
        self.user_repository = UserRepository(session_factory)

        self.token_service = TokenService(settings)
        self.authorization_engine = AuthorizationEngine(self.role_repository)
        self.auth_service = AuthService(
            settings,
            self.user_repository,
            self.role_repository,
            self.token_service,
        )
        self.gate = RequestGate(self.token_service, self.user_repository, self.authorization_engine)

    @property
    def session_factory(self):
        return self.db_manager.async_session_factory
