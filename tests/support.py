"""Shared builders for tests: settings, in-memory databases, apps and seeded users."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.main import create_app
from app.models import Base, User
from app.repositories.users import SqlAlchemyUserRepository
from app.services.user_service import CreateUserCommand, UserService

TEST_SECRET = "test-secret-for-unit-tests-0123456789abcdef"
TEST_BCRYPT_ROUNDS = 4
DEFAULT_PASSWORD = "s3cret-pass"


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, no rate limiting, no .env."""
    values: dict[str, Any] = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": TEST_BCRYPT_ROUNDS,
        "RATE_LIMIT_ENABLED": False,
        "LOG_LEVEL": "WARNING",
        "CORS_ALLOWED_ORIGINS": "*",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session() -> Session:
    """A session on a fresh in-memory database with the schema created."""
    engine = build_engine(make_settings())
    Base.metadata.create_all(engine)
    return build_session_factory(engine)()


def make_user_service(session: Session) -> UserService:
    return UserService(SqlAlchemyUserRepository(session), password_rounds=TEST_BCRYPT_ROUNDS)


def seed_user(
    service: UserService,
    username: str,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    role: str = "USER",
) -> User:
    return service.create(
        CreateUserCommand(
            username=username,
            email=email or f"{username}@example.com",
            password=password,
            role=role,
        )
    )


def make_app(redis_client: Any = None, **overrides: Any) -> FastAPI:
    """App on its own in-memory database with the schema created."""
    app = create_app(make_settings(**overrides), redis_client=redis_client)
    Base.metadata.create_all(app.state.engine)
    return app


def seed_app_user(app: FastAPI, username: str, role: str = "USER", **kwargs: Any) -> User:
    session = app.state.session_factory()
    try:
        return seed_user(make_user_service(session), username, role=role, **kwargs)
    finally:
        session.close()


def login(client: TestClient, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Log in and return the access token."""
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["access_token"]


def set_cookie_headers(resp: Any, name: str) -> list[str]:
    return [h for h in resp.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


def fake_redis(store: dict[str, int]) -> MagicMock:
    """Async Redis double backed by `store`: supports get and pipelined incr/expire."""
    client = MagicMock()

    async def get(key: str) -> int | None:
        return store.get(key)

    def pipeline() -> MagicMock:
        queued: list[str] = []
        pipe = MagicMock()
        pipe.incr.side_effect = queued.append

        async def execute() -> list[Any]:
            for key in queued:
                store[key] = store.get(key, 0) + 1
            return []

        pipe.execute = AsyncMock(side_effect=execute)
        return pipe

    client.get = AsyncMock(side_effect=get)
    client.pipeline.side_effect = pipeline
    client.aclose = AsyncMock()
    return client
