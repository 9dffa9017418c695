"""Tests for registration, sign-in, sign-out and token refresh."""

import pytest

from rbac_api.core.helpers.token_helper import TokenKind, TokenService
from rbac_api.core.models import (
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
)

TEST_PASSWORD = "password123"


@pytest.fixture
def auth_service(container):
    return container.auth_service


async def _register(auth_service, **overrides):
    data = {"email": "a@b.com", "password": "password123", "username": "abc"}
    data.update(overrides)
    return await auth_service.register(**data)


# =============================================================================
# register
# =============================================================================

class TestRegister:

    async def test_defaults_to_user_role(self, auth_service):
        user = await _register(auth_service)
        assert user.roles == ["user"]
        assert user.email == "a@b.com"

    async def test_normalizes_email(self, auth_service, container):
        await _register(auth_service, email="  Mixed@Example.COM ")
        assert await container.user_repository.get_by_email("mixed@example.com") is not None

    async def test_sanitized_output_has_no_credentials(self, auth_service):
        user = await _register(auth_service)
        dumped = user.model_dump()
        assert "password_hash" not in dumped
        assert "password_salt" not in dumped
        assert "credentials" not in dumped

    async def test_stores_salted_hash_not_password(self, auth_service, container):
        user = await _register(auth_service)
        stored = await container.user_repository.get_by_id(user.id)
        assert stored.credentials.password_hash != "password123"
        assert stored.credentials.password_salt

    async def test_explicit_roles(self, auth_service):
        user = await _register(auth_service, roles=["manager", "guest"])
        assert user.roles == ["manager", "guest"]

    async def test_unknown_role_rejected(self, auth_service):
        with pytest.raises(InvalidInputError):
            await _register(auth_service, roles=["wizard"])

    async def test_inactive_role_rejected(self, auth_service, role_repository):
        await role_repository.soft_delete("guest")
        with pytest.raises(InvalidInputError):
            await _register(auth_service, roles=["guest"])

    async def test_inactive_role_accepted_when_validation_disabled(self, auth_service, role_repository):
        auth_service.settings = auth_service.settings.model_copy(update={"VALIDATE_SIGNUP_ROLES": False})
        await role_repository.soft_delete("guest")
        user = await _register(auth_service, roles=["guest"])
        assert user.roles == ["guest"]

    @pytest.mark.parametrize("overrides,message", [
        ({"email": None}, "Email, password, and username are required"),
        ({"password": ""}, "Email, password, and username are required"),
        ({"username": None}, "Email, password, and username are required"),
        ({"email": 42}, "Invalid input types"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"email": "a@b"}, "Invalid email format"),
        ({"password": "short"}, "Password must be at least 8 characters long"),
        ({"username": "ab"}, "Username must be at least 3 characters long"),
        ({"username": "  a  "}, "Username must be at least 3 characters long"),
    ])
    async def test_validation(self, auth_service, overrides, message):
        with pytest.raises(InvalidInputError) as exc_info:
            await _register(auth_service, **overrides)
        assert exc_info.value.message == message

    async def test_username_is_stored_trimmed(self, auth_service):
        user = await _register(auth_service, username="  abc  ")
        assert user.username == "abc"

    async def test_duplicate_email_is_conflict(self, auth_service):
        await _register(auth_service)
        with pytest.raises(ConflictError):
            await _register(auth_service, email="A@B.com")


# =============================================================================
# authenticate
# =============================================================================

class TestAuthenticate:

    async def test_success_issues_both_tokens(self, auth_service, container):
        user = await _register(auth_service)
        result = await auth_service.authenticate("a@b.com", "password123")

        assert result.user.id == user.id
        assert container.token_service.verify(result.access_token, TokenKind.ACCESS) == str(user.id)
        assert container.token_service.verify(result.refresh_token, TokenKind.REFRESH) == str(user.id)

        holder = await container.user_repository.get_by_refresh_token(result.refresh_token)
        assert holder.id == user.id

    async def test_email_lookup_is_case_insensitive(self, auth_service):
        await _register(auth_service)
        result = await auth_service.authenticate("  A@B.COM", "password123")
        assert result.user.email == "a@b.com"

    async def test_new_sign_in_replaces_refresh_token(self, auth_service, container):
        await _register(auth_service)
        first = await auth_service.authenticate("a@b.com", "password123")
        second = await auth_service.authenticate("a@b.com", "password123")
        assert await container.user_repository.get_by_refresh_token(first.refresh_token) is None
        assert await container.user_repository.get_by_refresh_token(second.refresh_token) is not None

    async def test_wrong_password(self, auth_service):
        await _register(auth_service)
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate("a@b.com", "password124")

    async def test_wrong_password_of_different_length(self, auth_service):
        await _register(auth_service)
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate("a@b.com", "p")

    async def test_unknown_email(self, auth_service):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.authenticate("ghost@b.com", "password123")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.parametrize("email,password,message", [
        (None, "password123", "Email and password are required"),
        ("a@b.com", "", "Email and password are required"),
        (["a@b.com"], "password123", "Invalid input types"),
    ])
    async def test_invalid_input(self, auth_service, email, password, message):
        with pytest.raises(InvalidInputError) as exc_info:
            await auth_service.authenticate(email, password)
        assert exc_info.value.message == message

    async def test_seeded_user_can_sign_in(self, auth_service, make_user):
        await make_user(email="admin@example.com", roles=["admin"])
        result = await auth_service.authenticate("admin@example.com", TEST_PASSWORD)
        assert result.user.roles == ["admin"]


# =============================================================================
# sign_out / token_refresh
# =============================================================================

class TestSignOutAndRefresh:

    async def test_sign_out_clears_token(self, auth_service, container):
        await _register(auth_service)
        session = await auth_service.authenticate("a@b.com", "password123")

        assert await auth_service.sign_out(session.refresh_token) == "Successfully logged out"
        assert await container.user_repository.get_by_refresh_token(session.refresh_token) is None

        with pytest.raises(NotFoundError):
            await auth_service.sign_out(session.refresh_token)

    @pytest.mark.parametrize("token", [None, "", 123])
    async def test_sign_out_requires_token(self, auth_service, token):
        with pytest.raises(InvalidInputError):
            await auth_service.sign_out(token)

    async def test_refresh_issues_access_token_only(self, auth_service, container):
        user = await _register(auth_service)
        session = await auth_service.authenticate("a@b.com", "password123")

        result = await auth_service.token_refresh(session.refresh_token)
        assert result.refresh_token is None
        assert container.token_service.verify(result.access_token, TokenKind.ACCESS) == str(user.id)
        # Not rotated: the same refresh token keeps working
        assert (await auth_service.token_refresh(session.refresh_token)).access_token

    async def test_refresh_with_rotation(self, auth_service, container):
        auth_service.settings = auth_service.settings.model_copy(update={"ROTATE_REFRESH_TOKENS": True})
        await _register(auth_service)
        session = await auth_service.authenticate("a@b.com", "password123")

        result = await auth_service.token_refresh(session.refresh_token)
        assert result.refresh_token and result.refresh_token != session.refresh_token
        with pytest.raises(NotFoundError):
            await auth_service.token_refresh(session.refresh_token)

    async def test_refresh_rejects_access_token(self, auth_service):
        await _register(auth_service)
        session = await auth_service.authenticate("a@b.com", "password123")
        with pytest.raises(InvalidTokenError) as exc_info:
            await auth_service.token_refresh(session.access_token)
        assert exc_info.value.message == "Invalid or expired refresh token"

    async def test_refresh_after_sign_out_is_not_found(self, auth_service):
        await _register(auth_service)
        session = await auth_service.authenticate("a@b.com", "password123")
        await auth_service.sign_out(session.refresh_token)
        with pytest.raises(NotFoundError):
            await auth_service.token_refresh(session.refresh_token)

    async def test_refresh_subject_mismatch_is_forbidden(self, auth_service, container, make_user):
        await _register(auth_service)
        other = await make_user(email="other@example.com")
        session = await auth_service.authenticate("a@b.com", "password123")

        # A validly signed token for another subject, planted on this user
        forged = container.token_service.issue_refresh_token(str(other.id))
        await container.user_repository.set_refresh_token(session.user.id, forged)

        with pytest.raises(ForbiddenError):
            await auth_service.token_refresh(forged)

    async def test_refresh_requires_token(self, auth_service):
        with pytest.raises(InvalidInputError):
            await auth_service.token_refresh(None)

    async def test_refresh_without_secret_is_configuration_error(self, auth_service, settings):
        auth_service.token_service = TokenService(settings.model_copy(update={"JWT_REFRESH_SECRET": None}))
        with pytest.raises(ConfigurationError) as exc_info:
            await auth_service.token_refresh("anything")
        assert exc_info.value.message == "JWT_REFRESH_SECRET is not configured"
