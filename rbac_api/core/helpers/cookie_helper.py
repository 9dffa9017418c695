# --- Cookie Management ---
from rbac_api.core.config import Settings


def _cookie_path(settings: Settings) -> str:
    # Limits the cookie scope to the auth endpoints
    return f"{settings.API_PREFIX}/auth"


def set_refresh_cookie(response, refresh_token: str, settings: Settings):
    """
        Set an HttpOnly refresh cookie.
        - HttpOnly: True (not accessible to JavaScript)
        - Secure / SameSite=strict in production, relaxed elsewhere for local testing
        - Max age from REFRESH_COOKIE_MAX_AGE_DAYS, independent of the token's own expiry
    """
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        max_age=settings.REFRESH_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,  # Convert days to seconds
        path=_cookie_path(settings),
    )


def clear_refresh_cookie(response, settings: Settings):
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path=_cookie_path(settings),
    )
