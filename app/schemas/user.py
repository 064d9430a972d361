"""Request/response schemas for user management endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: str | None = Field(default=None, description="USER, ADMIN or SYSTEM_ADMIN; defaults to USER")


class UpdateUserRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: EmailStr | None = None
    role: str | None = None
    status: str | None = Field(default=None, description="ACTIVE or INACTIVE")

    @field_validator("username", "email", "role", "status", mode="before")
    @classmethod
    def empty_as_unset(cls, v: object) -> object:
        # An empty string leaves the field unchanged, same as omitting it
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserResponse(BaseModel):
    """User as returned to clients (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
