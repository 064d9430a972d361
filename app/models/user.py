"""ORM model for application users (auth and RBAC)."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from app.models.base import Base


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls._value2member_map_


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls._value2member_map_


# Roles allowed through the admin gate.
ADMIN_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SYSTEM_ADMIN.value})


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    Rows are soft-deleted: deleted_at is set and normal lookups skip the row,
    but the unique username/email indexes still cover it.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
