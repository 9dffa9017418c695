from datetime import datetime
from typing import List, Optional
from uuid import UUID

from rbac_api.core.schemas import BaseSchema


class UserRead(BaseSchema):
    """Sanitized user: credential fields never appear here."""
    id: UUID
    email: str
    username: str
    firstname: Optional[str] = None
    last_name: Optional[str] = None
    image: Optional[str] = None
    roles: List[str]
    created_at: datetime
    updated_at: datetime
