import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------------
# Base Configuration (required for Alembic/SQLAlchemy 2.0)
# -----------------------------------------------------------
class Base(DeclarativeBase):
    """Declarative base shared by every table."""
    pass


class TimestampedBase(Base):
    """Base class which provides a UUID primary key
    and common columns like created_at / updated_at."""
    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
