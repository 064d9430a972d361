"""FastAPI application factory. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from app.api import health
from app.api.deps import REFRESH_TOKEN_HEADER
from app.api.errors import register_error_handlers
from app.api.middleware import (
    RateLimitMiddleware,
    RecoveryMiddleware,
    RedisRateLimiter,
    RequestLoggingMiddleware,
)
from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory
from app.core.logging import configure_logging
from app.core.security import TokenService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info(
        "Starting server",
        extra={
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "env": settings.APP_ENV,
        },
    )
    yield
    logger.info("Shutting down server")
    if app.state.redis is not None:
        await app.state.redis.aclose()
    app.state.engine.dispose()
    logger.info("Server exited gracefully")


def create_app(settings: Settings | None = None, redis_client: Redis | None = None) -> FastAPI:
    """
    Build the application from one Settings value.

    Everything request handlers need (settings, engine, session factory, token
    service, Redis client) hangs off app.state; nothing reads a global.
    """
    if settings is None:
        load_dotenv()
        settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService.from_settings(settings)
    app.state.redis = None

    # Added innermost first: CORS ends up outermost, recovery innermost.
    app.add_middleware(RecoveryMiddleware)
    if settings.RATE_LIMIT_ENABLED:
        if redis_client is None:
            redis_client = Redis.from_url(settings.REDIS_URL, socket_timeout=1.0)
        app.state.redis = redis_client
        app.add_middleware(
            RateLimitMiddleware,
            limiter=RedisRateLimiter(redis_client, settings.RATE_LIMIT_REQUESTS_PER_MIN),
        )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Origin",
            "Content-Type",
            "Accept",
            "Authorization",
            "X-Requested-With",
            REFRESH_TOKEN_HEADER,
        ],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=12 * 60 * 60,
    )

    register_error_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
    return app
