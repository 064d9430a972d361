"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from app.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    """Tokens returned after successful login; also set as HTTP-only cookies."""

    user: UserResponse
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class CurrentUser(BaseModel):
    """Identity taken from a validated token."""

    id: int
    username: str
    role: str
