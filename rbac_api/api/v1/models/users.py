from typing import List, Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rbac_api.core.models import TimestampedBase


class User(TimestampedBase):
    """Core application user model."""
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    firstname: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    image: Mapped[Optional[str]] = mapped_column(String(500))

    # Role names, resolved against the roles table at check time
    roles: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    credentials: Mapped["UserCredential"] = relationship(
        "UserCredential",
        back_populates="user",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
