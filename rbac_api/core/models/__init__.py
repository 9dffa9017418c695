from .base import Base, TimestampedBase
from .exceptions import (
    AppError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)

__all__ = [
    "AppError",
    "Base",
    "ConfigurationError",
    "ConflictError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "InvalidTokenError",
    "NotFoundError",
    "TimestampedBase",
    "UnauthorizedError",
]
