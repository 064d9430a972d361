"""Login, logout and current-user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from app.api.cookies import clear_auth_cookies, set_access_cookie, set_refresh_cookie
from app.api.deps import (
    get_app_settings,
    get_auth_service,
    get_current_user,
    get_token_service,
    get_user_service,
)
from app.core.config import Settings
from app.core.security import TokenKind, TokenService
from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse
from app.schemas.common import APIResponse
from app.schemas.user import UserResponse
from app.services.auth_service import AuthService
from app.services.user_service import UserService

router = APIRouter()


@router.post(
    "/login",
    response_model=APIResponse[LoginResponse],
    response_model_exclude_none=True,
)
def login(
    body: LoginRequest,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> APIResponse[LoginResponse]:
    """
    Authenticate with username and password.

    Returns the user plus access and refresh tokens, and sets both as
    HTTP-only cookies. Send the access token as `Authorization: Bearer <token>`
    or rely on the cookie.
    """
    result = auth.login(body.username, body.password)
    set_access_cookie(response, result.access_token, tokens.expires_at(TokenKind.ACCESS), settings)
    set_refresh_cookie(
        response, result.refresh_token, tokens.expires_at(TokenKind.REFRESH), settings
    )
    return APIResponse(
        is_success=True,
        data=LoginResponse(
            user=UserResponse.model_validate(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        ),
        message="Logged in successfully",
    )


@router.post("/logout", response_model=APIResponse[None], response_model_exclude_none=True)
def logout(
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> APIResponse[None]:
    """Clear both auth cookies. Issued tokens stay valid until they expire."""
    auth.logout()
    clear_auth_cookies(response, settings)
    return APIResponse(is_success=True, message="Logged out successfully")


@router.get("/me", response_model=APIResponse[UserResponse], response_model_exclude_none=True)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> APIResponse[UserResponse]:
    """Return the authenticated user's account."""
    user = users.get_by_id(current_user.id)
    return APIResponse(is_success=True, data=UserResponse.model_validate(user))
