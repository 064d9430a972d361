"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import ADMIN_ROLES, User, UserRole, UserStatus

__all__ = ["ADMIN_ROLES", "Base", "User", "UserRole", "UserStatus"]
