from .permissions import PermissionBulkCreate, PermissionCreate, PermissionRead, PermissionUpdate
from .roles import RoleBase, RoleCreate, RolePermissionsUpdate, RoleRead
from .users import UserRead
from .auth import SignUpRequest, SignInRequest, RefreshTokenRequest
from .token import SignInResult, RefreshResult

__all__ = [
    "PermissionBulkCreate",
    "PermissionCreate",
    "PermissionRead",
    "PermissionUpdate",
    "RefreshResult",
    "RefreshTokenRequest",
    "RoleBase",
    "RoleCreate",
    "RolePermissionsUpdate",
    "RoleRead",
    "SignInRequest",
    "SignInResult",
    "SignUpRequest",
    "UserRead",
]
