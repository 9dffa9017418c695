from typing import List

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from rbac_api.core.models import TimestampedBase


class Role(TimestampedBase):
    """Named access tier owning a set of permission names.

    Permissions are referenced by name, so changing a role's permission set
    rewrites this row only.
    """
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # JSON list of permission strings; always reassigned, never mutated in place
    permissions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Role(name='{self.name}', active={self.is_active})>"
