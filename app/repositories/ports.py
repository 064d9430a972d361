"""
Port interfaces (ABCs) for persistence.

Services depend on these contracts only; app.repositories.users holds the
SQLAlchemy adapter. Lookups raise NotFoundError on a miss, writes raise
ConflictError when a unique constraint is hit.
"""

from abc import ABC, abstractmethod

from app.models.user import User
from app.services.query import QueryOptions


class UserRepository(ABC):
    """Port for storing and querying user accounts."""

    @abstractmethod
    def create(self, user: User) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, user_id: int) -> User:
        """Return a non-deleted user by id."""
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> User:
        """Return a non-deleted user by exact username."""
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_by_username_including_deleted(self, username: str) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_by_email_including_deleted(self, email: str) -> User:
        raise NotImplementedError

    @abstractmethod
    def update(self, user: User) -> User:
        raise NotImplementedError

    @abstractmethod
    def soft_delete(self, user_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def restore(self, user_id: int) -> None:
        """Clear deleted_at on a soft-deleted user."""
        raise NotImplementedError

    @abstractmethod
    def exists(self, user_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_filtered(
        self, offset: int, limit: int, options: QueryOptions
    ) -> tuple[list[User], int]:
        """Return one page of non-deleted users and the total matching count."""
        raise NotImplementedError
