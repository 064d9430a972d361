"""Response envelope shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FieldError(BaseModel):
    field: str
    message: str


class ErrorBody(BaseModel):
    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., description="Human-readable message")
    fields: list[FieldError] | None = None


class APIResponse(BaseModel, Generic[T]):
    """
    Envelope: {is_success, data?, message?, error?}.

    Serialized with exclude_none so absent parts are omitted.
    """

    is_success: bool
    data: T | None = None
    message: str | None = None
    error: ErrorBody | None = None


class ListResponse(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int
