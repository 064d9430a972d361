"""
Centralized error handlers.

Maps the app.core.errors taxonomy, request validation failures, framework
HTTP errors and unexpected exceptions onto the response envelope. Nothing
internal (messages of unexpected exceptions, stack traces) reaches clients.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.cookies import clear_auth_cookies, set_auth_cookies
from app.core.errors import AppError, InternalError, ValidationError

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    429: "TOO_MANY_REQUESTS",
}


def request_context(request: Request) -> dict[str, Any]:
    """Fields attached to every error log line."""
    context: dict[str, Any] = {
        "path": request.url.path,
        "method": request.method,
        "client_ip": request.client.host if request.client else None,
    }
    request_id = request.headers.get("x-request-id")
    if request_id:
        context["request_id"] = request_id
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        context["user_id"] = user_id
    return context


def envelope(body: dict[str, Any], status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"is_success": False, "error": body},
        headers=headers,
    )


def render_error(request: Request, exc: AppError) -> JSONResponse:
    """Log an AppError by severity and build its envelope response."""
    extra = request_context(request)
    extra.update(
        {"error_code": exc.code, "error_message": exc.message, "http_status": exc.status_code}
    )
    if exc.__cause__ is not None:
        extra["cause"] = repr(exc.__cause__)
    if exc.status_code >= 500:
        logger.error("Server error", extra=extra, exc_info=exc)
    else:
        logger.warning("Client error", extra=extra)

    response = envelope(exc.to_dict(), exc.status_code)
    if getattr(request.state, "clear_auth_cookies", False):
        clear_auth_cookies(response, request.app.state.settings)
    elif getattr(request.state, "refreshed_tokens", None) is not None:
        # A refresh happened before the failure; the client still gets the new pair
        set_auth_cookies(
            response,
            request.state.refreshed_tokens,
            request.app.state.token_service,
            request.app.state.settings,
        )
    return response


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return fields


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        return render_error(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return render_error(request, ValidationError(fields=_field_errors(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code >= 500:
            code = "INTERNAL_ERROR"
        else:
            code = _HTTP_STATUS_CODES.get(exc.status_code, "BAD_REQUEST")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        logger.warning("HTTP error", extra={**request_context(request), "http_status": exc.status_code})
        return envelope(
            {"code": code, "message": message},
            exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all recovery boundary. Never exposes internals."""
        logger.exception(
            "Unexpected error: %s", type(exc).__name__, extra=request_context(request)
        )
        return envelope(InternalError().to_dict(), 500)
