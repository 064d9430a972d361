"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse
from app.schemas.common import APIResponse, ErrorBody, FieldError, ListResponse
from app.schemas.health import HealthResponse
from app.schemas.user import CreateUserRequest, UpdateUserRequest, UserResponse

__all__ = [
    "APIResponse",
    "CreateUserRequest",
    "CurrentUser",
    "ErrorBody",
    "FieldError",
    "HealthResponse",
    "ListResponse",
    "LoginRequest",
    "LoginResponse",
    "UpdateUserRequest",
    "UserResponse",
]
