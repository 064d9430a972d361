"""Password hashing and JWT issuance/validation for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.core.errors import InvalidTokenError, TokenExpiredError

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Claims every token must carry to be accepted.
REQUIRED_CLAIMS = ("exp", "iat", "sub")


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors.
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenKind(str, Enum):
    """Access tokens are short-lived; refresh tokens live for hours."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """
    Issues and validates HMAC-signed session tokens.

    Both token kinds share one secret and one claim shape; only the expiry
    window differs. Validation raises TokenExpiredError for an expired token
    and InvalidTokenError for anything else wrong with it.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(hours=12),
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttls = {TokenKind.ACCESS: access_ttl, TokenKind.REFRESH: refresh_ttl}

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES),
            refresh_ttl=timedelta(hours=settings.JWT_REFRESH_EXPIRE_HOURS),
        )

    def ttl(self, kind: TokenKind) -> timedelta:
        return self._ttls[kind]

    def expires_at(self, kind: TokenKind) -> datetime:
        """Expiry a token of this kind would get if issued now."""
        return datetime.now(UTC) + self._ttls[kind]

    def issue(self, kind: TokenKind, user_id: int, username: str, role: str) -> str:
        """Create a signed token with user_id, username, role, sub, iat and exp."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "user_id": user_id,
            "username": username,
            "role": role,
            "sub": username,
            "iat": now,
            "exp": now + self._ttls[kind],
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_pair(self, user_id: int, username: str, role: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue(TokenKind.ACCESS, user_id, username, role),
            refresh_token=self.issue(TokenKind.REFRESH, user_id, username, role),
        )

    def validate(self, token: str) -> TokenClaims:
        """Decode and verify a token; return its claims."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e

        user_id = payload.get("user_id")
        username = payload.get("username")
        role = payload.get("role")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidTokenError("Invalid token payload")
        if not isinstance(username, str) or not isinstance(role, str):
            raise InvalidTokenError("Invalid token payload")
        return TokenClaims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
