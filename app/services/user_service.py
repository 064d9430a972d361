"""User account business rules: validation, uniqueness, soft delete."""

import logging
from dataclasses import dataclass

from app.core.errors import (
    EmailExistsError,
    NotFoundError,
    UsernameExistsError,
    ValidationError,
)
from app.core.security import BCRYPT_ROUNDS, hash_password
from app.models.user import User, UserRole, UserStatus
from app.repositories.ports import UserRepository
from app.services.query import QueryOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateUserCommand:
    username: str
    email: str
    password: str
    role: str | None = None


@dataclass(frozen=True)
class UpdateUserCommand:
    """Partial update: None or empty fields are left unchanged."""

    id: int
    username: str | None = None
    email: str | None = None
    role: str | None = None
    status: str | None = None


class UserService:
    def __init__(self, users: UserRepository, password_rounds: int = BCRYPT_ROUNDS) -> None:
        self._users = users
        self._password_rounds = password_rounds

    def _username_taken(self, username: str) -> bool:
        # Soft-deleted rows count: a deleted account's identity is not reusable.
        try:
            self._users.get_by_username_including_deleted(username)
        except NotFoundError:
            return False
        return True

    def _email_taken(self, email: str) -> bool:
        try:
            self._users.get_by_email_including_deleted(email)
        except NotFoundError:
            return False
        return True

    def create(self, cmd: CreateUserCommand) -> User:
        role = UserRole.USER.value
        if cmd.role:
            if not UserRole.is_valid(cmd.role):
                raise ValidationError("Invalid role")
            role = cmd.role

        if self._username_taken(cmd.username):
            logger.debug("Create user failed: username exists", extra={"username": cmd.username})
            raise UsernameExistsError()
        if self._email_taken(cmd.email):
            logger.debug("Create user failed: email exists", extra={"email": cmd.email})
            raise EmailExistsError()

        user = User(
            username=cmd.username,
            email=cmd.email,
            password_hash=hash_password(cmd.password, rounds=self._password_rounds),
            role=role,
            status=UserStatus.ACTIVE.value,
        )
        user = self._users.create(user)
        logger.info("User created", extra={"user_id": user.id, "username": user.username})
        return user

    def get_by_id(self, user_id: int) -> User:
        return self._users.get_by_id(user_id)

    def update(self, cmd: UpdateUserCommand) -> User:
        user = self._users.get_by_id(cmd.id)

        if cmd.username and cmd.username != user.username:
            if self._username_taken(cmd.username):
                logger.debug(
                    "Update user failed: username exists",
                    extra={"user_id": cmd.id, "username": cmd.username},
                )
                raise UsernameExistsError()
            user.username = cmd.username

        if cmd.email and cmd.email != user.email:
            if self._email_taken(cmd.email):
                logger.debug(
                    "Update user failed: email exists",
                    extra={"user_id": cmd.id, "email": cmd.email},
                )
                raise EmailExistsError()
            user.email = cmd.email

        if cmd.role:
            if not UserRole.is_valid(cmd.role):
                raise ValidationError("Invalid role")
            user.role = cmd.role

        if cmd.status:
            if not UserStatus.is_valid(cmd.status):
                raise ValidationError("Invalid status")
            user.status = cmd.status

        user = self._users.update(user)
        logger.info("User updated", extra={"user_id": user.id})
        return user

    def delete(self, user_id: int) -> None:
        if not self._users.exists(user_id):
            raise NotFoundError("User not found")
        self._users.soft_delete(user_id)
        logger.info("User deleted", extra={"user_id": user_id})

    def restore(self, user_id: int) -> None:
        """Undo a soft delete. Not routed over HTTP; used from admin tooling."""
        self._users.restore(user_id)
        logger.info("User restored", extra={"user_id": user_id})

    def list(
        self, offset: int, limit: int, options: QueryOptions
    ) -> tuple[list[User], int]:
        return self._users.list_filtered(offset, limit, options)
