"""Login/logout: credential verification and token issuance."""

import logging
from dataclasses import dataclass

from app.core.errors import ForbiddenError, InvalidCredentialsError, NotFoundError
from app.core.security import TokenService, verify_password
from app.models.user import User, UserStatus
from app.repositories.ports import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    def __init__(self, users: UserRepository, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens

    def login(self, username: str, password: str) -> LoginResult:
        """
        Verify credentials and issue an access/refresh token pair.

        An unknown username and a wrong password raise the same
        InvalidCredentialsError so callers cannot tell which accounts exist.
        Inactive accounts get ForbiddenError.
        """
        try:
            user = self._users.get_by_username(username)
        except NotFoundError:
            logger.debug("Login failed: user not found", extra={"username": username})
            raise InvalidCredentialsError() from None

        if not verify_password(password, user.password_hash):
            logger.debug("Login failed: invalid password", extra={"username": username})
            raise InvalidCredentialsError()

        if user.status != UserStatus.ACTIVE.value:
            logger.debug("Login failed: user inactive", extra={"username": username})
            raise ForbiddenError("Account is disabled")

        pair = self._tokens.issue_pair(user.id, user.username, user.role)
        logger.info("User logged in", extra={"user_id": user.id, "username": user.username})
        return LoginResult(
            user=user,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    def logout(self) -> None:
        # Tokens are stateless; the handler clears the cookies.
        return None
