from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from jose import jwt, JWTError, ExpiredSignatureError

from rbac_api.core.config import Settings
from rbac_api.core.models import ConfigurationError, InvalidTokenError


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


# --------------
# INTERNAL HELPERS
# --------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _generate_jti() -> str:
    """Generate a globally unique token ID."""
    return uuid4().hex


class TokenService:
    """
    Issues and verifies the two JWT kinds.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so neither kind verifies as the other. Tokens are
    stateless here; persisting the refresh token is the caller's job.
    """

    def __init__(self, settings: Settings):
        self._settings = settings

    # --------------
    # CONFIGURATION
    # --------------

    def _secret_for(self, kind: TokenKind) -> str:
        if kind == TokenKind.ACCESS:
            secret, name = self._settings.JWT_SECRET, "JWT_SECRET"
        else:
            secret, name = self._settings.JWT_REFRESH_SECRET, "JWT_REFRESH_SECRET"
        if not secret:
            raise ConfigurationError(f"{name} is not configured")
        return secret

    def _ttl_for(self, kind: TokenKind) -> timedelta:
        if kind == TokenKind.ACCESS:
            return timedelta(minutes=self._settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return timedelta(days=self._settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def ensure_configured(self, kind: TokenKind) -> None:
        """Raise ConfigurationError when the secret for ``kind`` is missing."""
        self._secret_for(kind)

    # --------------
    # CREATE TOKENS
    # --------------

    def _issue(self, subject_id: str, kind: TokenKind) -> str:
        secret = self._secret_for(kind)
        now = _utcnow()
        expire = now + self._ttl_for(kind)

        payload = {
            "sub": str(subject_id),                 # Subject = internal user ID
            "iat": int(now.timestamp()),            # Issued at
            "exp": int(expire.timestamp()),         # Expiration
            "jti": _generate_jti(),                 # Token identifier
            "type": kind.value,                     # Token type
        }
        return jwt.encode(payload, secret, algorithm=self._settings.JWT_ALGORITHM)

    def issue_access_token(self, subject_id: str) -> str:
        """Short-lived bearer token for API calls."""
        return self._issue(subject_id, TokenKind.ACCESS)

    def issue_refresh_token(self, subject_id: str) -> str:
        """Long-lived token; MUST NOT be accepted as a bearer token."""
        return self._issue(subject_id, TokenKind.REFRESH)

    # --------------
    # VERIFY TOKENS
    # --------------

    def decode(self, token: str, kind: TokenKind) -> Dict[str, Any]:
        """
        Verify signature, expiry and type, and return the claims.

        Raises:
            ConfigurationError: the secret for ``kind`` is not configured.
            InvalidTokenError: any other verification failure.
        """
        secret = self._secret_for(kind)
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._settings.JWT_ALGORITHM],
                options={"require_exp": True, "require_sub": True},
            )
        except ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except JWTError as e:
            raise InvalidTokenError(f"Token validation failed: {e}")

        if payload.get("type") != kind.value:
            raise InvalidTokenError(f"Token is not a {kind.value} token")

        return payload

    def verify(self, token: str, kind: TokenKind) -> str:
        """Return the subject id bound to a valid token of the given kind."""
        payload = self.decode(token, kind)
        subject_id = payload.get("sub")
        if not subject_id:
            raise InvalidTokenError("Invalid token payload: missing subject.")
        return subject_id
