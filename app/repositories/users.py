"""
Adapter: user persistence on SQLAlchemy.

Implements the UserRepository port. Database errors are translated here;
nothing above this layer sees a SQLAlchemy exception.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InternalError, NotFoundError
from app.models.user import User
from app.repositories.ports import UserRepository
from app.services.query import (
    QueryOptions,
    apply_default_sort,
    apply_filters,
    apply_sort,
)

logger = logging.getLogger(__name__)

# Columns list requests may filter and sort on.
USER_ALLOWED_FIELDS = frozenset(
    {"id", "username", "email", "role", "status", "created_at", "updated_at"}
)

# Free-text filter matched against username and email; not a column.
SEARCH_FIELD = "search"

_COLUMNS = {c.key: c for c in User.__table__.c}


class SqlAlchemyUserRepository(UserRepository):
    """UserRepository backed by one SQLAlchemy session (one per request)."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _first(self, stmt) -> User:
        try:
            user = self._session.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise InternalError("Could not query user") from e
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _commit(self, action: str) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise ConflictError("User already exists") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            raise InternalError(f"Could not {action} user") from e

    def _execute(self, stmt, action: str):
        try:
            return self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._session.rollback()
            raise InternalError(f"Could not {action} user") from e

    def create(self, user: User) -> User:
        self._session.add(user)
        self._commit("create")
        self._session.refresh(user)
        return user

    def get_by_id(self, user_id: int) -> User:
        return self._first(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )

    def get_by_username(self, username: str) -> User:
        return self._first(
            select(User).where(User.username == username, User.deleted_at.is_(None))
        )

    def get_by_email(self, email: str) -> User:
        return self._first(
            select(User).where(User.email == email, User.deleted_at.is_(None))
        )

    def get_by_username_including_deleted(self, username: str) -> User:
        return self._first(select(User).where(User.username == username))

    def get_by_email_including_deleted(self, email: str) -> User:
        return self._first(select(User).where(User.email == email))

    def update(self, user: User) -> User:
        self._session.add(user)
        self._commit("update")
        self._session.refresh(user)
        return user

    def soft_delete(self, user_id: int) -> None:
        self._execute(
            update(User)
            .where(User.id == user_id, User.deleted_at.is_(None))
            .values(deleted_at=datetime.now(UTC)),
            "delete",
        )
        self._commit("delete")

    def restore(self, user_id: int) -> None:
        result = self._execute(
            update(User).where(User.id == user_id).values(deleted_at=None), "restore"
        )
        if result.rowcount == 0:
            self._session.rollback()
            raise NotFoundError("User not found")
        self._commit("restore")

    def exists(self, user_id: int) -> bool:
        try:
            count = self._session.scalar(
                select(func.count())
                .select_from(User)
                .where(User.id == user_id, User.deleted_at.is_(None))
            )
        except SQLAlchemyError as e:
            raise InternalError("Could not query user") from e
        return bool(count)

    def list_filtered(
        self, offset: int, limit: int, options: QueryOptions
    ) -> tuple[list[User], int]:
        search, options = options.extract(SEARCH_FIELD)

        stmt = select(User).where(User.deleted_at.is_(None))
        if search is not None:
            term = search.value if isinstance(search.value, str) else ",".join(search.value)
            stmt = stmt.where(
                or_(
                    User.username.icontains(term, autoescape=True),
                    User.email.icontains(term, autoescape=True),
                )
            )
        stmt = apply_filters(stmt, _COLUMNS, options, USER_ALLOWED_FIELDS)

        try:
            total = self._session.scalar(
                select(func.count()).select_from(stmt.subquery())
            )
            page_stmt = apply_sort(stmt, _COLUMNS, options, USER_ALLOWED_FIELDS)
            page_stmt = apply_default_sort(page_stmt, options, User.created_at)
            users = list(self._session.scalars(page_stmt.offset(offset).limit(limit)))
        except SQLAlchemyError as e:
            raise InternalError("Could not list users") from e
        logger.debug("Listed users", extra={"total": total, "offset": offset, "limit": limit})
        return users, int(total or 0)
