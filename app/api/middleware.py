"""
Cross-cutting HTTP middleware: recovery, request logging and per-client rate limiting.

No business logic here.
"""

import logging
import time

from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.api.errors import envelope, render_error, request_context
from app.core.errors import InternalError, TooManyRequestsError

logger = logging.getLogger(__name__)

# Paths skipped by request logging and rate limiting.
UNMETERED_PATHS = frozenset({"/health"})

RATE_LIMIT_WINDOW_SEC = 60


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status and latency."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "status": response.status_code,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                "client_ip": request.client.host if request.client else None,
            },
        )
        return response


class RedisRateLimiter:
    """
    Fixed-window request counter per key, stored in Redis.

    The count is read, compared, then incremented in a separate round trip,
    so concurrent requests can each pass the check before any increment
    lands: up to `limit + (concurrency - 1)` requests may be admitted in one
    window. Accepted as an approximation.
    """

    def __init__(self, client: Redis, limit: int, window_sec: int = RATE_LIMIT_WINDOW_SEC) -> None:
        self._client = client
        self._limit = limit
        self._window_sec = window_sec

    @staticmethod
    def key_for(client_ip: str) -> str:
        return f"rate_limit:{client_ip}"

    async def hit(self, client_ip: str) -> bool:
        """Count one request; return False when the client is over the limit."""
        key = self.key_for(client_ip)
        raw = await self._client.get(key)
        count = int(raw) if raw is not None else 0
        if count >= self._limit:
            return False
        pipe = self._client.pipeline()
        pipe.incr(key)
        pipe.expire(key, self._window_sec)
        await pipe.execute()
        return True


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients over RATE_LIMIT_REQUESTS_PER_MIN with 429. Fails open if Redis is down."""

    def __init__(self, app: ASGIApp, limiter: RedisRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)
        client_ip = request.client.host if request.client else "unknown"
        try:
            allowed = await self.limiter.hit(client_ip)
        except (RedisError, OSError) as e:
            logger.warning("Rate limiter unavailable, allowing request: %s", type(e).__name__)
            allowed = True
        if not allowed:
            return render_error(request, TooManyRequestsError())
        return await call_next(request)


class RecoveryMiddleware(BaseHTTPMiddleware):
    """
    Turn an unhandled exception into the generic 500 envelope.

    Installed innermost so the response still passes through CORS and request
    logging. The app-level Exception handler only sees errors raised by the
    middleware stack itself.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unexpected error: %s", type(e).__name__, extra=request_context(request)
            )
            return envelope(InternalError().to_dict(), 500)
