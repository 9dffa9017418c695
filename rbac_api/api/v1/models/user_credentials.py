from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rbac_api.core.models import TimestampedBase
from rbac_api.core.models.base import _utcnow


class UserCredential(TimestampedBase):
    """
    Secure storage for user authentication secrets.

    This table isolates the password hash, its salt and the live refresh
    token from the main user profile, so none of them is ever serialized
    with the user.

    Each user has at most one credential record (1-to-1 relationship) and
    therefore at most one live refresh token.
    """

    __tablename__ = "user_credentials"

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            name="uq_user_credentials_user_id"
        ),
    )

    # -------------------------------------------------------------------------
    # Foreign Key to User (One-to-One)
    # -------------------------------------------------------------------------
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(
            "users.id",
            ondelete="CASCADE"  # cascade ensures credentials deleted with user
        ),
        nullable=False,
        unique=True,
        index=True,
    )

    # -------------------------------------------------------------------------
    # Security Fields
    # -------------------------------------------------------------------------
    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        doc="bcrypt hash of the salted password digest keyed by the server secret"
    )

    password_salt: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Per-user random salt (base64)."
    )

    refresh_token: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        index=True,
        doc="The single live refresh token; cleared on sign-out."
    )

    last_password_change_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationship Back to User
    # -------------------------------------------------------------------------
    user: Mapped["User"] = relationship(
        "User",
        back_populates="credentials",
    )

    def __repr__(self) -> str:
        return f"<UserCredential(id={self.id}, user_id={self.user_id})>"
