from . import (
    auth,
    permissions,
    roles,
    users,
)

__all__ = [
    "auth",
    "permissions",
    "roles",
    "users",
]
