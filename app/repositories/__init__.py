"""Storage ports and their SQLAlchemy adapters."""

from app.repositories.ports import UserRepository
from app.repositories.users import USER_ALLOWED_FIELDS, SqlAlchemyUserRepository

__all__ = ["USER_ALLOWED_FIELDS", "SqlAlchemyUserRepository", "UserRepository"]
