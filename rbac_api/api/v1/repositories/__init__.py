from .permission_repository import PermissionRepository
from .role_repository import RoleRepository
from .user_repository import UserRepository

__all__ = [
    "PermissionRepository",
    "RoleRepository",
    "UserRepository",
]
