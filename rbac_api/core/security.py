import base64
import hashlib
import hmac
import secrets
from typing import Optional

from passlib.context import CryptContext

from rbac_api.core.models import ConfigurationError

SALT_BYTES = 128

# Password hashing setup
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_dummy_hash: Optional[str] = None


def generate_salt() -> str:
    return base64.b64encode(secrets.token_bytes(SALT_BYTES)).decode("ascii")


def _pepper(salt: str, password: str, secret: Optional[str]) -> str:
    """HMAC-SHA256 keyed by ``salt/password`` over the server-side secret."""
    if not secret:
        raise ConfigurationError("PWD_SECRET is not configured")
    key = "/".join([salt, password]).encode("utf-8")
    return hmac.new(key, secret.encode("utf-8"), hashlib.sha256).hexdigest()


def _get_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = pwd_context.hash(secrets.token_hex(32))
    return _dummy_hash


def get_password_hash(salt: str, password: str, secret: Optional[str]) -> str:
    """bcrypt over the peppered digest, so the stored hash needs both the salt and the secret."""
    return pwd_context.hash(_pepper(salt, password, secret))


def verify_password(password: str, stored_hash: str, salt: str, secret: Optional[str]) -> bool:
    """
    Check a submitted password against the stored hash.

    A stored value that is not a bcrypt hash is still run through a full
    verify against a throwaway hash, so a malformed record costs the same
    as a wrong password.
    """
    peppered = _pepper(salt, password, secret)
    if stored_hash and pwd_context.identify(stored_hash, required=False) is not None:
        try:
            return pwd_context.verify(peppered, stored_hash)
        except ValueError:
            pass
    pwd_context.verify(peppered, _get_dummy_hash())
    return False


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
