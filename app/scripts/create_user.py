"""
Create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user admin admin@example.com your-secure-password ADMIN
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.errors import AppError
from app.models.user import UserRole
from app.repositories.users import SqlAlchemyUserRepository
from app.services.user_service import CreateUserCommand, UserService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user account (no registration endpoint).")
    parser.add_argument("username", help="Username (3-50 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (at least 6 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not 3 <= len(username) <= 50:
        print("Username must be 3-50 characters.", file=sys.stderr)
        return 1
    if len(args.password) < 6:
        print("Password must be at least 6 characters.", file=sys.stderr)
        return 1

    load_dotenv()
    settings = get_settings()
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        service = UserService(SqlAlchemyUserRepository(db), password_rounds=settings.BCRYPT_ROUNDS)
        try:
            user = service.create(
                CreateUserCommand(
                    username=username,
                    email=args.email.strip(),
                    password=args.password,
                    role=args.role,
                )
            )
        except AppError as e:
            print(f"Could not create user '{username}': {e.message}", file=sys.stderr)
            return 1
        print(f"Created user '{user.username}' (id={user.id}) with role '{user.role}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
