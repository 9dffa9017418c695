import logging
import re
from typing import Iterable, List, Optional

from rbac_api.api.v1.repositories import RoleRepository, UserRepository
from rbac_api.api.v1.schemas import RefreshResult, SignInResult, UserRead
from rbac_api.api.v1.shared.rbac_types import DEFAULT_ROLE, RoleName
from rbac_api.core.config import Settings
from rbac_api.core.helpers.token_helper import TokenKind, TokenService
from rbac_api.core.models import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
)
from rbac_api.core.security import generate_salt, get_password_hash, verify_password

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _clean(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class AuthService:
    """
    Session establishment: sign-in, registration, sign-out and refresh.

    Holds no per-request state. The user's single live refresh token lives
    in the credential store; issuing a new one replaces the previous one.
    """

    def __init__(
        self,
        settings: Settings,
        user_repository: UserRepository,
        role_repository: RoleRepository,
        token_service: TokenService,
    ):
        self.settings = settings
        self.user_repository = user_repository
        self.role_repository = role_repository
        self.token_service = token_service
        # Used to hash something for unknown emails so both paths cost the same
        self._dummy_salt = generate_salt()

    async def authenticate(self, email, password) -> SignInResult:
        if not email or not password:
            raise InvalidInputError("Email and password are required")
        if not isinstance(email, str) or not isinstance(password, str):
            raise InvalidInputError("Invalid input types")

        normalized_email = _normalize_email(email)
        user = await self.user_repository.get_by_email(normalized_email)

        if user is None or user.credentials is None:
            verify_password(password, None, self._dummy_salt, self.settings.PWD_SECRET)
            logger.warning(f"Sign-in failed: unknown email {normalized_email}")
            raise InvalidCredentialsError("Invalid credentials")

        credentials = user.credentials
        if not verify_password(password, credentials.password_hash, credentials.password_salt,
                               self.settings.PWD_SECRET):
            logger.warning(f"Sign-in failed: wrong password for user {user.id}")
            raise InvalidCredentialsError("Invalid credentials")

        access_token = self.token_service.issue_access_token(str(user.id))
        refresh_token = self.token_service.issue_refresh_token(str(user.id))
        await self.user_repository.set_refresh_token(user.id, refresh_token)

        logger.info(f"User {user.id} signed in")
        return SignInResult(
            user=UserRead.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def _resolve_signup_roles(self, roles: Optional[Iterable]) -> List[str]:
        if roles is None:
            return [DEFAULT_ROLE.value]

        requested = [r.value for r in RoleName.decode_many(roles)]
        if self.settings.VALIDATE_SIGNUP_ROLES and requested:
            active = {role.name for role in await self.role_repository.find_by_names(requested)}
            missing = [r for r in requested if r not in active]
            if missing:
                raise InvalidInputError(f"Invalid role specified: {', '.join(missing)}")
        return requested

    async def register(
        self,
        email,
        password,
        username,
        firstname: Optional[str] = None,
        last_name: Optional[str] = None,
        image: Optional[str] = None,
        roles: Optional[Iterable] = None,
    ) -> UserRead:
        if not email or not password or not username:
            raise InvalidInputError("Email, password, and username are required")
        if not all(isinstance(v, str) for v in (email, password, username)):
            raise InvalidInputError("Invalid input types")
        if not EMAIL_PATTERN.match(email.strip()):
            raise InvalidInputError("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        username = username.strip()
        if len(username) < MIN_USERNAME_LENGTH:
            raise InvalidInputError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")

        normalized_email = _normalize_email(email)
        if await self.user_repository.get_by_email(normalized_email) is not None:
            raise ConflictError("User with this email already exists")

        user_roles = await self._resolve_signup_roles(roles)

        salt = generate_salt()
        password_hash = get_password_hash(salt, password, self.settings.PWD_SECRET)

        user = await self.user_repository.create(
            email=normalized_email,
            username=username,
            password_hash=password_hash,
            password_salt=salt,
            roles=user_roles,
            firstname=_clean(firstname),
            last_name=_clean(last_name),
            image=_clean(image),
        )
        logger.info(f"User registered: {user.id} with roles {user_roles}")
        return UserRead.model_validate(user)

    async def sign_out(self, refresh_token) -> str:
        if not refresh_token or not isinstance(refresh_token, str):
            raise InvalidInputError("Invalid refresh token")

        user = await self.user_repository.get_by_refresh_token(refresh_token)
        if user is None:
            raise NotFoundError("Data not found")

        await self.user_repository.set_refresh_token(user.id, None)
        logger.info(f"User {user.id} signed out")
        return "Successfully logged out"

    async def token_refresh(self, refresh_token) -> RefreshResult:
        if not refresh_token or not isinstance(refresh_token, str):
            raise InvalidInputError("Invalid refresh token")

        self.token_service.ensure_configured(TokenKind.REFRESH)
        try:
            subject_id = self.token_service.verify(refresh_token, TokenKind.REFRESH)
        except InvalidTokenError as e:
            logger.warning(f"Refresh rejected: {e.message}")
            raise InvalidTokenError("Invalid or expired refresh token")

        # Lookup by the stored value, so a token that was replaced is dead
        user = await self.user_repository.get_by_refresh_token(refresh_token)
        if user is None:
            raise NotFoundError("Data not found")
        if str(user.id) != subject_id:
            logger.warning(f"Refresh token subject {subject_id} does not match holder {user.id}")
            raise ForbiddenError("Forbidden")

        access_token = self.token_service.issue_access_token(str(user.id))
        if not self.settings.ROTATE_REFRESH_TOKENS:
            return RefreshResult(access_token=access_token)

        new_refresh_token = self.token_service.issue_refresh_token(str(user.id))
        await self.user_repository.set_refresh_token(user.id, new_refresh_token)
        return RefreshResult(access_token=access_token, refresh_token=new_refresh_token)
