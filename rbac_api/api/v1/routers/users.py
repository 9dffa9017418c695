from typing import Annotated

from fastapi import APIRouter, Depends, status

from rbac_api.api.v1.models import User
from rbac_api.api.v1.schemas import UserRead
from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.container import ServiceContainer
from rbac_api.core.models import NotFoundError
from rbac_api.core.schemas import ApiResponse, BaseFilter, get_base_filter

PREFIX = "/users"


def create_router(container: ServiceContainer) -> APIRouter:
    gate = container.gate
    user_repository = container.user_repository

    can_list = gate.protect(gate.require_permission(Permission.USER_LIST))
    can_read = gate.protect(gate.ownership_or_permission("user_id", Permission.USER_READ))
    can_delete = gate.protect(
        gate.require_any_role(RoleName.SUPER_ADMIN, RoleName.ADMIN),
        gate.require_permission(Permission.USER_DELETE),
    )

    router = APIRouter(prefix=PREFIX)

    @router.get("", response_model=ApiResponse)
    async def list_users(
            filters: Annotated[BaseFilter, Depends(get_base_filter)],
            current_user: Annotated[User, Depends(can_list)],
    ):
        """Get a paginated list of users."""
        users = await user_repository.list(page=filters.page, limit=filters.limit)
        return ApiResponse(status_code=status.HTTP_200_OK, data=[UserRead.model_validate(u) for u in users])

    @router.get("/{user_id}", response_model=ApiResponse)
    async def read_user(
            user_id: str,
            current_user: Annotated[User, Depends(can_read)],
    ):
        """Get a user by ID. Callers may always read themselves."""
        user = await user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return ApiResponse(status_code=status.HTTP_200_OK, data=UserRead.model_validate(user))

    @router.delete("/{user_id}", response_model=ApiResponse)
    async def delete_user(
            user_id: str,
            current_user: Annotated[User, Depends(can_delete)],
    ):
        """Delete a user by ID and return the removed record."""
        deleted = await user_repository.delete(user_id)
        return ApiResponse(status_code=status.HTTP_200_OK, data=UserRead.model_validate(deleted))

    return router
