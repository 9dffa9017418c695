"""
Authentication Router Module

Registration, sign-in, sign-out, access-token refresh and identity
endpoints. The refresh token travels both in the response body and in an
HttpOnly cookie scoped to the auth routes; refresh prefers the cookie,
sign-out prefers the body.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from rbac_api.api.v1.models import User
from rbac_api.api.v1.schemas import RefreshTokenRequest, SignInRequest, SignUpRequest, UserRead
from rbac_api.core.container import ServiceContainer
from rbac_api.core.helpers.cookie_helper import clear_refresh_cookie, set_refresh_cookie
from rbac_api.core.schemas import ApiResponse

logger = logging.getLogger(__name__)

PREFIX = "/auth"


def create_router(container: ServiceContainer) -> APIRouter:
    settings = container.settings
    auth_service = container.auth_service
    engine = container.authorization_engine
    authenticated = container.gate.protect()

    router = APIRouter(
        prefix=PREFIX,
        responses={
            401: {"description": "Unauthorized - Invalid or missing credentials"},
            500: {"description": "Internal Server Error"},
        },
    )

    # ============================================================================
    # SESSION ENDPOINTS
    # ============================================================================

    @router.post(
        "/signup",
        response_model=ApiResponse,
        status_code=status.HTTP_200_OK,
        summary="Register a new user",
    )
    async def sign_up(payload: SignUpRequest) -> ApiResponse:
        """Create an account. Roles default to ``user`` when none are given."""
        user = await auth_service.register(
            email=payload.email,
            password=payload.password,
            username=payload.username,
            firstname=payload.firstname,
            last_name=payload.last_name,
            image=payload.image,
            roles=payload.roles,
        )
        return ApiResponse(status_code=status.HTTP_200_OK, data=user)

    @router.post(
        "/signin",
        response_model=ApiResponse,
        status_code=status.HTTP_200_OK,
        summary="Sign in with email and password",
    )
    async def sign_in(payload: SignInRequest, response: Response) -> ApiResponse:
        result = await auth_service.authenticate(payload.email, payload.password)
        set_refresh_cookie(response, result.refresh_token, settings)
        return ApiResponse(status_code=status.HTTP_200_OK, data=result)

    @router.post(
        "/signout",
        response_model=ApiResponse,
        status_code=status.HTTP_200_OK,
        summary="Invalidate the current refresh token",
    )
    async def sign_out(
        request: Request,
        response: Response,
        payload: Optional[RefreshTokenRequest] = None,
    ) -> ApiResponse:
        refresh_token = (payload.refresh_token if payload else None) or \
            request.cookies.get(settings.REFRESH_COOKIE_NAME)
        message = await auth_service.sign_out(refresh_token)
        clear_refresh_cookie(response, settings)
        return ApiResponse(status_code=status.HTTP_200_OK, data={"message": message})

    @router.post(
        "/refresh",
        response_model=ApiResponse,
        status_code=status.HTTP_200_OK,
        summary="Issue a new access token",
    )
    async def refresh(
        request: Request,
        response: Response,
        payload: Optional[RefreshTokenRequest] = None,
    ) -> ApiResponse:
        refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME) or \
            (payload.refresh_token if payload else None)
        result = await auth_service.token_refresh(refresh_token)
        if result.refresh_token:
            set_refresh_cookie(response, result.refresh_token, settings)
        return ApiResponse(
            status_code=status.HTTP_200_OK,
            data=result.model_dump(by_alias=True, exclude_none=True),
        )

    # ============================================================================
    # IDENTITY ENDPOINTS
    # ============================================================================

    @router.get("/me", response_model=ApiResponse, summary="Current user")
    async def me(current_user: Annotated[User, Depends(authenticated)]) -> ApiResponse:
        return ApiResponse(status_code=status.HTTP_200_OK, data=UserRead.model_validate(current_user))

    @router.get("/me/permissions", response_model=ApiResponse, summary="Effective permissions")
    async def my_permissions(current_user: Annotated[User, Depends(authenticated)]) -> ApiResponse:
        permissions = await engine.get_user_permissions(current_user.roles)
        return ApiResponse(
            status_code=status.HTTP_200_OK,
            data={"roles": current_user.roles, "permissions": sorted(permissions)},
        )

    return router
