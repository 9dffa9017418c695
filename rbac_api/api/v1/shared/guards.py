"""
Request gate.

A guard is a single ``check(context) -> GuardDecision`` step. Guards are
composed into an ordered ``GuardChain`` that FastAPI runs as a route
dependency: the first denial short-circuits with its ``AppError``, and
when every guard allows, the chain returns the authenticated user.

``Authenticate`` must come first. It is the only guard that attaches a
user to the context; every other guard denies with ``UnauthorizedError``
when it finds none.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fastapi import Request

from rbac_api.api.v1.models import User
from rbac_api.api.v1.repositories import UserRepository
from rbac_api.api.v1.services.authorization_service import AuthorizationEngine
from rbac_api.api.v1.shared.rbac_types import Permission, PermissionCheckResult, RoleName
from rbac_api.core.helpers.token_helper import TokenKind, TokenService
from rbac_api.core.models import (
    AppError,
    ConfigurationError,
    ForbiddenError,
    InvalidTokenError,
    UnauthorizedError,
)
from rbac_api.core.security import extract_bearer_token

logger = logging.getLogger(__name__)

ELEVATED_ROLES = (RoleName.SUPER_ADMIN, RoleName.ADMIN)


@dataclass
class RequestContext:
    """What the guards may see of a request, plus the identity slot."""
    headers: Mapping[str, str] = field(default_factory=dict)
    path_params: Dict[str, Any] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    user: Optional[User] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            headers=request.headers,
            path_params=dict(request.path_params),
            cookies=dict(request.cookies),
        )


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    error: Optional[AppError] = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: AppError) -> "GuardDecision":
        return cls(allowed=False, error=error)


def _unauthorized() -> GuardDecision:
    return GuardDecision.deny(UnauthorizedError("Unauthorized access"))


def _from_check(result: PermissionCheckResult) -> GuardDecision:
    if result.granted:
        return GuardDecision.allow()
    return GuardDecision.deny(ForbiddenError(result.reason.value))


class Guard(ABC):

    @abstractmethod
    async def check(self, context: RequestContext) -> GuardDecision:
        ...

    def __repr__(self):
        return f"<{type(self).__name__}>"


# --------------
# AUTHENTICATION
# --------------

class Authenticate(Guard):
    """Resolve the bearer token to a live user and attach it to the context."""

    def __init__(self, token_service: TokenService, user_repository: UserRepository):
        self.token_service = token_service
        self.user_repository = user_repository

    async def check(self, context: RequestContext) -> GuardDecision:
        token = extract_bearer_token(context.headers.get("authorization"))
        if not token:
            return _unauthorized()

        try:
            subject_id = self.token_service.verify(token, TokenKind.ACCESS)
        except ConfigurationError as e:
            logger.error(e.message)
            return GuardDecision.deny(e)
        except InvalidTokenError as e:
            logger.info(f"Rejected access token: {e.message}")
            return GuardDecision.deny(InvalidTokenError("Invalid or expired token"))

        try:
            user = await self.user_repository.get_by_id(subject_id)
        except Exception as e:
            logger.error(f"User lookup failed during authentication: {e}", exc_info=True)
            return GuardDecision.deny(UnauthorizedError("Authentication failed"))

        if user is None:
            return _unauthorized()

        context.user = user
        return GuardDecision.allow()


# --------------
# AUTHORIZATION
# --------------

class _AuthorizationGuard(Guard):
    """Base for guards that read the identity attached by ``Authenticate``."""

    def __init__(self, engine: AuthorizationEngine):
        self.engine = engine

    async def check(self, context: RequestContext) -> GuardDecision:
        if context.user is None:
            return _unauthorized()
        return await self._check_user(context.user, context)

    @abstractmethod
    async def _check_user(self, user: User, context: RequestContext) -> GuardDecision:
        ...


class RequirePermission(_AuthorizationGuard):

    def __init__(self, engine: AuthorizationEngine, permission):
        super().__init__(engine)
        self.permission = Permission.decode(permission)

    async def _check_user(self, user, context):
        return _from_check(await self.engine.has_permission(user.roles, self.permission))

    def __repr__(self):
        return f"<RequirePermission {self.permission}>"


class RequireAnyPermission(_AuthorizationGuard):

    def __init__(self, engine: AuthorizationEngine, permissions: Iterable):
        super().__init__(engine)
        self.permissions = Permission.decode_many(permissions)

    async def _check_user(self, user, context):
        return _from_check(await self.engine.has_any_permission(user.roles, self.permissions))


class RequireAllPermissions(_AuthorizationGuard):

    def __init__(self, engine: AuthorizationEngine, permissions: Iterable):
        super().__init__(engine)
        self.permissions = Permission.decode_many(permissions)

    async def _check_user(self, user, context):
        return _from_check(await self.engine.has_all_permissions(user.roles, self.permissions))


class RequireRole(_AuthorizationGuard):

    def __init__(self, engine: AuthorizationEngine, role):
        super().__init__(engine)
        self.role = RoleName.decode(role)

    async def _check_user(self, user, context):
        return _from_check(self.engine.has_role(user.roles, self.role))

    def __repr__(self):
        return f"<RequireRole {self.role}>"


class RequireAnyRole(_AuthorizationGuard):

    def __init__(self, engine: AuthorizationEngine, roles: Iterable):
        super().__init__(engine)
        self.roles = RoleName.decode_many(roles)

    async def _check_user(self, user, context):
        return _from_check(self.engine.has_any_role(user.roles, self.roles))


class _OwnershipGuard(_AuthorizationGuard):
    """Allow the owner of the resource named by a path parameter, else fall back."""

    def __init__(self, engine: AuthorizationEngine, param: str = "id"):
        super().__init__(engine)
        self.param = param

    async def _check_user(self, user, context):
        owner_id = context.path_params.get(self.param)
        if self.engine.is_owner(user.id, owner_id).granted:
            return GuardDecision.allow()
        return await self._fallback(user)

    @abstractmethod
    async def _fallback(self, user: User) -> GuardDecision:
        ...


class OwnershipOrAdmin(_OwnershipGuard):

    async def _fallback(self, user):
        return _from_check(self.engine.has_any_role(user.roles, ELEVATED_ROLES))


class OwnershipOrPermission(_OwnershipGuard):

    def __init__(self, engine: AuthorizationEngine, param: str, permission):
        super().__init__(engine, param)
        self.permission = Permission.decode(permission)

    async def _fallback(self, user):
        return _from_check(await self.engine.has_permission(user.roles, self.permission))


# --------------
# COMPOSITION
# --------------

class GuardChain:
    """
    Ordered guard list usable as a FastAPI dependency.

    Example:
        user = Depends(gate.chain(gate.authenticate(), gate.require_permission("user:list")))
    """

    def __init__(self, guards: Iterable[Guard]):
        self.guards: List[Guard] = list(guards)
        for position, guard in enumerate(self.guards):
            if isinstance(guard, Authenticate) and position != 0:
                raise ValueError("Authenticate must be the first guard in a chain")

    async def run(self, context: RequestContext) -> Optional[User]:
        for guard in self.guards:
            decision = await guard.check(context)
            if not decision.allowed:
                logger.warning(f"{guard!r} denied request: {decision.error.message}")
                raise decision.error
        return context.user

    async def __call__(self, request: Request) -> Optional[User]:
        return await self.run(RequestContext.from_request(request))


class RequestGate:
    """Builds guards wired to the services created at startup."""

    def __init__(
        self,
        token_service: TokenService,
        user_repository: UserRepository,
        engine: AuthorizationEngine,
    ):
        self.token_service = token_service
        self.user_repository = user_repository
        self.engine = engine

    def authenticate(self) -> Authenticate:
        return Authenticate(self.token_service, self.user_repository)

    def require_permission(self, permission) -> RequirePermission:
        return RequirePermission(self.engine, permission)

    def require_any_permission(self, *permissions) -> RequireAnyPermission:
        return RequireAnyPermission(self.engine, permissions)

    def require_all_permissions(self, *permissions) -> RequireAllPermissions:
        return RequireAllPermissions(self.engine, permissions)

    def require_role(self, role) -> RequireRole:
        return RequireRole(self.engine, role)

    def require_any_role(self, *roles) -> RequireAnyRole:
        return RequireAnyRole(self.engine, roles)

    def ownership_or_admin(self, param: str = "id") -> OwnershipOrAdmin:
        return OwnershipOrAdmin(self.engine, param)

    def ownership_or_permission(self, param: str, permission) -> OwnershipOrPermission:
        return OwnershipOrPermission(self.engine, param, permission)

    def chain(self, *guards: Guard) -> GuardChain:
        return GuardChain(guards)

    def protect(self, *guards: Guard) -> GuardChain:
        """Chain with ``Authenticate`` prepended."""
        return GuardChain([self.authenticate(), *guards])
