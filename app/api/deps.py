"""Request dependencies: services, current user (with silent refresh), admin gate."""

import logging
from typing import Annotated

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.cookies import set_auth_cookies
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import (
    AppError,
    ForbiddenError,
    InvalidTokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.core.security import TokenClaims, TokenService
from app.models.user import ADMIN_ROLES
from app.repositories.ports import UserRepository
from app.repositories.users import SqlAlchemyUserRepository
from app.schemas.auth import CurrentUser
from app.services.auth_service import AuthService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

REFRESH_TOKEN_HEADER = "X-Refresh-Token"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    return SqlAlchemyUserRepository(db)


def get_user_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserService:
    return UserService(users, password_rounds=settings.BCRYPT_ROUNDS)


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(users, tokens)


def _try_refresh(
    request: Request,
    response: Response,
    tokens: TokenService,
    settings: Settings,
) -> TokenClaims | None:
    """Validate the refresh token and, if good, mint and set a fresh token pair."""
    refresh_token = request.headers.get(REFRESH_TOKEN_HEADER) or request.cookies.get(
        settings.COOKIE_REFRESH_NAME
    )
    if not refresh_token:
        return None
    try:
        claims = tokens.validate(refresh_token)
    except AppError as e:
        logger.debug("Refresh token rejected", extra={"reason": e.code})
        return None

    pair = tokens.issue_pair(claims.user_id, claims.username, claims.role)
    set_auth_cookies(response, pair, tokens, settings)
    # Error responses replace `response`; render_error re-applies the pair from here.
    request.state.refreshed_tokens = pair
    logger.debug("Session refreshed", extra={"user_id": claims.user_id})
    return claims


def get_current_user(
    request: Request,
    response: Response,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """
    Dependency: establish the caller's identity.

    Reads the access token from the Bearer header, falling back to the access
    cookie. When it is missing or fails validation (expired or otherwise
    invalid), a valid refresh token silently yields a new token pair. If no
    identity can be established both cookies are cleared and 401 is raised.
    """
    token = credentials.credentials if credentials else request.cookies.get(settings.COOKIE_NAME)

    claims: TokenClaims | None = None
    if token:
        try:
            claims = tokens.validate(token)
        except (TokenExpiredError, InvalidTokenError) as e:
            logger.debug(
                "Token validation failed, trying refresh",
                extra={"path": request.url.path, "reason": e.code},
            )
    else:
        logger.debug("No access token, trying refresh", extra={"path": request.url.path})

    if claims is None:
        claims = _try_refresh(request, response, tokens, settings)
    if claims is None:
        request.state.clear_auth_cookies = True
        raise UnauthorizedError()

    request.state.user_id = claims.user_id
    request.state.username = claims.username
    request.state.role = claims.role
    return CurrentUser(id=claims.user_id, username=claims.username, role=claims.role)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require ADMIN or SYSTEM_ADMIN. Raises 403 otherwise."""
    if current_user.role not in ADMIN_ROLES:
        raise ForbiddenError("Admin access required")
    return current_user
