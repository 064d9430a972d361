"""HTTP-only cookie transport for access and refresh tokens."""

from datetime import datetime

from starlette.responses import Response

from app.core.config import Settings
from app.core.security import TokenKind, TokenPair, TokenService


def _set_token_cookie(
    response: Response, name: str, token: str, expires: datetime, settings: Settings
) -> None:
    response.set_cookie(
        key=name,
        value=token,
        expires=expires,
        path=settings.COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )


def set_access_cookie(
    response: Response, token: str, expires: datetime, settings: Settings
) -> None:
    _set_token_cookie(response, settings.COOKIE_NAME, token, expires, settings)


def set_refresh_cookie(
    response: Response, token: str, expires: datetime, settings: Settings
) -> None:
    _set_token_cookie(response, settings.COOKIE_REFRESH_NAME, token, expires, settings)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Expire both token cookies on the client."""
    for name in (settings.COOKIE_NAME, settings.COOKIE_REFRESH_NAME):
        response.delete_cookie(
            key=name,
            path=settings.COOKIE_PATH,
            domain=settings.COOKIE_DOMAIN,
            httponly=True,
        )


def set_auth_cookies(
    response: Response, pair: TokenPair, tokens: TokenService, settings: Settings
) -> None:
    """Set both token cookies, each expiring with its token."""
    set_access_cookie(response, pair.access_token, tokens.expires_at(TokenKind.ACCESS), settings)
    set_refresh_cookie(response, pair.refresh_token, tokens.expires_at(TokenKind.REFRESH), settings)
