from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import Field

from rbac_api.api.v1.shared.rbac_types import Permission, RoleName
from rbac_api.core.schemas import BaseSchema


class RoleBase(BaseSchema):
    name: RoleName
    description: str = Field(default="", max_length=255)


class RoleCreate(RoleBase):
    permissions: List[Permission] = Field(default_factory=list)


class RolePermissionsUpdate(BaseSchema):
    permissions: List[Permission]


class RoleRead(BaseSchema):
    id: UUID
    name: str
    description: str
    permissions: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime
