from fastapi import status


class AppError(Exception):
    """Base exception for errors that map onto an API response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Malformed or missing request data."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentialsError(AppError):
    """Sign-in with an unknown email or a wrong password."""
    status_code = status.HTTP_401_UNAUTHORIZED


class UnauthorizedError(AppError):
    """Missing, invalid or expired bearer token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(UnauthorizedError):
    """Raised when a JWT fails signature, expiry or type verification."""
    pass


class ForbiddenError(AppError):
    """Authenticated, but not allowed to perform the action."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Duplicate unique key."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConfigurationError(AppError):
    """Server misconfiguration, e.g. a signing secret that is not set."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
