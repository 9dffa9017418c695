from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from rbac_api.api.v1.models import User
from rbac_api.api.v1.schemas import (
    PermissionBulkCreate,
    PermissionCreate,
    PermissionRead,
    PermissionUpdate,
)
from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.container import ServiceContainer
from rbac_api.core.models import InvalidInputError, NotFoundError
from rbac_api.core.schemas import ApiResponse

PREFIX = "/permissions"


def create_router(container: ServiceContainer) -> APIRouter:
    gate = container.gate
    permission_repository = container.permission_repository

    can_list = gate.protect(gate.require_permission(Permission.PERMISSION_LIST))
    can_read = gate.protect(gate.require_permission(Permission.PERMISSION_READ))
    can_create = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.PERMISSION_CREATE),
    )
    can_update = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.PERMISSION_UPDATE),
    )
    can_delete = gate.protect(
        gate.require_role(RoleName.SUPER_ADMIN),
        gate.require_permission(Permission.PERMISSION_DELETE),
    )

    router = APIRouter(prefix=PREFIX)

    @router.get("", response_model=ApiResponse)
    async def list_permissions(
            current_user: Annotated[User, Depends(can_list)],
            resource: Optional[str] = Query(None),
            action: Optional[str] = Query(None),
    ):
        """Get the active permission catalog, optionally narrowed to a resource and action."""
        if action and not resource:
            raise InvalidInputError("Filtering by action requires a resource")

        if resource and action:
            found = await permission_repository.find_by_resource_and_action(resource, action)
            permissions = [found] if found else []
        elif resource:
            permissions = await permission_repository.find_by_resource(resource)
        else:
            permissions = await permission_repository.find_all()
        return ApiResponse(
            status_code=status.HTTP_200_OK,
            data=[PermissionRead.model_validate(p) for p in permissions],
        )

    @router.get("/{name}", response_model=ApiResponse)
    async def read_permission(name: str, current_user: Annotated[User, Depends(can_read)]):
        """Get a permission by its ``resource:action`` name."""
        permission = await permission_repository.find_by_name(name)
        if not permission:
            raise NotFoundError("Permission not found")
        return ApiResponse(status_code=status.HTTP_200_OK, data=PermissionRead.model_validate(permission))

    @router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
    async def create_permission(payload: PermissionCreate, current_user: Annotated[User, Depends(can_create)]):
        """Restore a catalog permission that was deleted."""
        created = await permission_repository.create(payload.name, payload.description)
        return ApiResponse(status_code=status.HTTP_201_CREATED, data=PermissionRead.model_validate(created))

    @router.post("/bulk", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
    async def bulk_create_permissions(
            payload: PermissionBulkCreate,
            current_user: Annotated[User, Depends(can_create)],
    ):
        """Restore several catalog permissions; ones already active are skipped."""
        created = await permission_repository.bulk_create(payload.names)
        return ApiResponse(
            status_code=status.HTTP_201_CREATED,
            data=[PermissionRead.model_validate(p) for p in created],
        )

    @router.put("/{name}", response_model=ApiResponse)
    async def update_permission(
            name: str,
            payload: PermissionUpdate,
            current_user: Annotated[User, Depends(can_update)],
    ):
        """Change a permission's description."""
        permission = await permission_repository.update(name, description=payload.description)
        return ApiResponse(status_code=status.HTTP_200_OK, data=PermissionRead.model_validate(permission))

    @router.delete("/{name}", response_model=ApiResponse)
    async def delete_permission(name: str, current_user: Annotated[User, Depends(can_delete)]):
        """Soft-delete a permission by name."""
        await permission_repository.soft_delete(name)
        return ApiResponse(status_code=status.HTTP_200_OK, data={"message": "Permission deleted successfully"})

    return router
