from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from rbac_api.api.v1.shared.rbac_types import Permission
from rbac_api.core.schemas import BaseSchema


class PermissionRead(BaseSchema):
    id: UUID
    name: str
    resource: str
    action: str
    description: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PermissionCreate(BaseSchema):
    name: Permission
    description: Optional[str] = Field(default=None, max_length=255)


class PermissionBulkCreate(BaseSchema):
    names: List[Permission]


class PermissionUpdate(BaseSchema):
    description: str = Field(max_length=255)
