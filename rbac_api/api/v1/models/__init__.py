from .permissions import Permission
from .roles import Role
from .users import User
from .user_credentials import UserCredential


__all__ = [
    "Permission",
    "Role",
    "User",
    "UserCredential",
]
