"""
Application error taxonomy.

Every failure surfaced to a client is one of these. Each carries a stable
code, a human-readable message, and the HTTP status it maps to. Handlers in
app.api.errors render them into the response envelope.
"""

from typing import Any


class AppError(Exception):
    """Base error: code, message and HTTP status, plus optional field errors."""

    code: str = "INTERNAL_ERROR"
    message: str = "An internal server error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        *,
        fields: list[dict[str, str]] | None = None,
    ) -> None:
        self.message = message or type(self).message
        self.fields = fields
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.fields:
            body["fields"] = self.fields
        return body

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"{self.code}: {self.message} ({self.__cause__})"
        return f"{self.code}: {self.message}"


class BadRequestError(AppError):
    code = "BAD_REQUEST"
    message = "Invalid request"
    status_code = 400


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    message = "Invalid data"
    status_code = 400


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    message = "Not authenticated"
    status_code = 401


class InvalidTokenError(UnauthorizedError):
    """Token is malformed, badly signed, uses the wrong algorithm or lacks claims."""

    message = "Invalid token"


class InvalidCredentialsError(AppError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid username or password"
    status_code = 401


class TokenExpiredError(AppError):
    code = "TOKEN_EXPIRED"
    message = "Token has expired"
    status_code = 401


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    message = "Access denied"
    status_code = 403


class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Resource not found"
    status_code = 404


class ConflictError(AppError):
    code = "CONFLICT"
    message = "Resource already exists"
    status_code = 409


class UsernameExistsError(ConflictError):
    code = "USERNAME_EXISTS"
    message = "Username already exists"


class EmailExistsError(ConflictError):
    code = "EMAIL_EXISTS"
    message = "Email already exists"


class TooManyRequestsError(AppError):
    code = "TOO_MANY_REQUESTS"
    message = "Too many requests, please try again later"
    status_code = 429


class InternalError(AppError):
    pass
