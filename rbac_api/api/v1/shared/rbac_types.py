"""
RBAC catalog types.

Roles and permissions are persisted as plain strings so that the stored
representation stays forward compatible, but inside the application they
travel as closed enums. ``decode`` is the single place where a stored or
submitted string becomes a catalog member, and it refuses unknown values
instead of letting them through.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from rbac_api.core.models import InvalidInputError


class _CatalogEnum(str, Enum):

    @classmethod
    def decode(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"Invalid {cls._label()} specified: {value!r}")

    @classmethod
    def decode_many(cls, values: Iterable) -> List["_CatalogEnum"]:
        decoded = []
        for value in values:
            item = cls.decode(value)
            if item not in decoded:
                decoded.append(item)
        return decoded

    @classmethod
    def _label(cls) -> str:
        return cls.__name__.lower()

    def __str__(self) -> str:
        return self.value


class RoleName(_CatalogEnum):
    """System-wide roles."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GUEST = "guest"

    @classmethod
    def _label(cls) -> str:
        return "role"


class Permission(_CatalogEnum):
    """Granular permissions, named ``resource:action``."""
    # User management
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_LIST = "user:list"

    # Role management
    ROLE_CREATE = "role:create"
    ROLE_READ = "role:read"
    ROLE_UPDATE = "role:update"
    ROLE_DELETE = "role:delete"
    ROLE_LIST = "role:list"
    ROLE_ASSIGN = "role:assign"

    # Permission management
    PERMISSION_CREATE = "permission:create"
    PERMISSION_READ = "permission:read"
    PERMISSION_UPDATE = "permission:update"
    PERMISSION_DELETE = "permission:delete"
    PERMISSION_LIST = "permission:list"
    PERMISSION_ASSIGN = "permission:assign"

    # Self operations
    SELF_READ = "self:read"
    SELF_UPDATE = "self:update"
    SELF_DELETE = "self:delete"


class Resource(_CatalogEnum):
    USER = "user"
    ROLE = "role"
    PERMISSION = "permission"
    PROFILE = "profile"


class Action(_CatalogEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    ASSIGN = "assign"


class DenialReason(str, Enum):
    NO_ROLES_ASSIGNED = "No roles assigned to user"
    ROLE_NOT_FOUND = "Required role not found"
    INSUFFICIENT_PERMISSIONS = "Insufficient permissions to perform this action"


class PermissionCheckResult(BaseModel):
    """Outcome of a single authorization decision."""
    model_config = ConfigDict(frozen=True)

    granted: bool
    reason: Optional[DenialReason] = None

    @classmethod
    def grant(cls) -> "PermissionCheckResult":
        return cls(granted=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "PermissionCheckResult":
        return cls(granted=False, reason=reason)


# ----------------------------------------------------------------------
# Seed catalog
# ----------------------------------------------------------------------

# ``self:*`` permissions act on the caller's own profile.
_RESOURCE_PREFIXES = {"self": Resource.PROFILE}

PERMISSION_DESCRIPTIONS: Dict[Permission, str] = {
    Permission.USER_CREATE: "Create new users",
    Permission.USER_READ: "Read user information",
    Permission.USER_UPDATE: "Update user information",
    Permission.USER_DELETE: "Delete users",
    Permission.USER_LIST: "List all users",
    Permission.ROLE_CREATE: "Create new roles",
    Permission.ROLE_READ: "Read role information",
    Permission.ROLE_UPDATE: "Update role information",
    Permission.ROLE_DELETE: "Delete roles",
    Permission.ROLE_LIST: "List all roles",
    Permission.ROLE_ASSIGN: "Assign roles to users",
    Permission.PERMISSION_CREATE: "Create new permissions",
    Permission.PERMISSION_READ: "Read permission information",
    Permission.PERMISSION_UPDATE: "Update permission information",
    Permission.PERMISSION_DELETE: "Delete permissions",
    Permission.PERMISSION_LIST: "List all permissions",
    Permission.PERMISSION_ASSIGN: "Assign permissions to roles",
    Permission.SELF_READ: "Read own profile",
    Permission.SELF_UPDATE: "Update own profile",
    Permission.SELF_DELETE: "Delete own account",
}


def split_permission(permission: Permission):
    """Return the ``(Resource, Action)`` pair a permission name encodes."""
    prefix, action = permission.value.split(":", 1)
    resource = _RESOURCE_PREFIXES.get(prefix) or Resource.decode(prefix)
    return resource, Action.decode(action)


PERMISSION_CATALOG: List[Dict] = [
    {
        "name": permission,
        "resource": split_permission(permission)[0],
        "action": split_permission(permission)[1],
        "description": PERMISSION_DESCRIPTIONS[permission],
    }
    for permission in Permission
]

ROLE_CATALOG: Dict[RoleName, str] = {
    RoleName.SUPER_ADMIN: "Super administrator with full system access",
    RoleName.ADMIN: "Administrator with user management capabilities",
    RoleName.MANAGER: "Manager with limited user management capabilities",
    RoleName.USER: "Regular user with self-management capabilities",
    RoleName.GUEST: "Guest user with read-only access",
}

DEFAULT_ROLE_PERMISSIONS: Dict[RoleName, List[Permission]] = {
    RoleName.SUPER_ADMIN: list(Permission),
    RoleName.ADMIN: [
        Permission.USER_CREATE,
        Permission.USER_READ,
        Permission.USER_UPDATE,
        Permission.USER_DELETE,
        Permission.USER_LIST,
        Permission.SELF_READ,
        Permission.SELF_UPDATE,
    ],
    RoleName.MANAGER: [
        Permission.USER_READ,
        Permission.USER_UPDATE,
        Permission.USER_LIST,
        Permission.SELF_READ,
        Permission.SELF_UPDATE,
    ],
    RoleName.USER: [
        Permission.SELF_READ,
        Permission.SELF_UPDATE,
    ],
    RoleName.GUEST: [
        Permission.SELF_READ,
    ],
}

DEFAULT_ROLE = RoleName.USER
