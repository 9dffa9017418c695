from .auth_service import AuthService
from .authorization_service import AuthorizationEngine

__all__ = [
    "AuthService",
    "AuthorizationEngine",
]
