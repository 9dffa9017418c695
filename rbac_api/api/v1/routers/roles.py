from typing import Annotated

from fastapi import APIRouter, Depends, status

from rbac_api.api.v1.models import User
from rbac_api.api.v1.schemas import RoleCreate, RolePermissionsUpdate, RoleRead
from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.container import ServiceContainer
from rbac_api.core.models import NotFoundError
from rbac_api.core.schemas import ApiResponse

PREFIX = "/roles"


def create_router(container: ServiceContainer) -> APIRouter:
    gate = container.gate
    role_repository = container.role_repository

    can_list = gate.protect(gate.require_permission(Permission.ROLE_LIST))
    can_read = gate.protect(gate.require_permission(Permission.ROLE_READ))
    can_create = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.ROLE_CREATE),
    )
    can_assign = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.PERMISSION_ASSIGN),
    )
    can_delete = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.ROLE_DELETE),
    )

    router = APIRouter(prefix=PREFIX)

    @router.get("", response_model=ApiResponse)
    async def list_roles(current_user: Annotated[User, Depends(can_list)]):
        """Get every active role with its permissions."""
        roles = await role_repository.find_all()
        return ApiResponse(status_code=status.HTTP_200_OK, data=[RoleRead.model_validate(r) for r in roles])

    @router.get("/{name}", response_model=ApiResponse)
    async def read_role(name: str, current_user: Annotated[User, Depends(can_read)]):
        """Get a role by name."""
        role = await role_repository.find_by_name(name)
        if not role:
            raise NotFoundError("Role not found")
        return ApiResponse(status_code=status.HTTP_200_OK, data=RoleRead.model_validate(role))

    @router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
    async def create_role(role: RoleCreate, current_user: Annotated[User, Depends(can_create)]):
        """Create a new role and return it."""
        created = await role_repository.create(role.name, role.description, role.permissions)
        return ApiResponse(status_code=status.HTTP_201_CREATED, data=RoleRead.model_validate(created))

    @router.put("/{name}/permissions", response_model=ApiResponse)
    async def replace_permissions(
            name: str,
            payload: RolePermissionsUpdate,
            current_user: Annotated[User, Depends(can_assign)],
    ):
        """Replace a role's permission set."""
        role = await role_repository.replace_permissions(name, payload.permissions)
        return ApiResponse(status_code=status.HTTP_200_OK, data=RoleRead.model_validate(role))

    @router.post("/{name}/permissions/add", response_model=ApiResponse)
    async def add_permissions(
            name: str,
            payload: RolePermissionsUpdate,
            current_user: Annotated[User, Depends(can_assign)],
    ):
        """Add permissions to a role; ones it already has are kept once."""
        role = await role_repository.add_permissions(name, payload.permissions)
        return ApiResponse(status_code=status.HTTP_200_OK, data=RoleRead.model_validate(role))

    @router.post("/{name}/permissions/remove", response_model=ApiResponse)
    async def remove_permissions(
            name: str,
            payload: RolePermissionsUpdate,
            current_user: Annotated[User, Depends(can_assign)],
    ):
        """Remove permissions from a role."""
        role = await role_repository.remove_permissions(name, payload.permissions)
        return ApiResponse(status_code=status.HTTP_200_OK, data=RoleRead.model_validate(role))

    @router.delete("/{name}", response_model=ApiResponse)
    async def delete_role(name: str, current_user: Annotated[User, Depends(can_delete)]):
        """Soft-delete a role by name."""
        await role_repository.soft_delete(name)
        return ApiResponse(status_code=status.HTTP_200_OK, data={"message": "Role deleted successfully"})

    return router
