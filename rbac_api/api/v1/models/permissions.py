from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from rbac_api.core.models import TimestampedBase


class Permission(TimestampedBase):
    """Defines an atomic action, in RESOURCE:ACTION format."""
    __tablename__ = "permissions"

    # The permission string (e.g., 'user:read', 'role:delete')
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_permissions_resource_action", "resource", "action"),
    )

    def __repr__(self):
        return f"<Permission(name='{self.name}', active={self.is_active})>"
