"""
Create the bootstrap admin. Run from project root:
  python -m peninsula.scripts.create_admin [USERNAME] [PASSWORD]
Defaults to admin / admin123; change the password right after first login.
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from peninsula.core.database import SessionLocal
from peninsula.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from peninsula.models.user import ROLE_ADMIN, User

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the Peninsula admin account.")
    parser.add_argument("username", nargs="?", default="admin", help="Username (3-255 chars)")
    parser.add_argument("password", nargs="?", default="admin123", help="Password (6-128 chars)")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print("Password must be 6-128 characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            logger.info("Admin already exists: %s", username)
            return 0
        db.add(
            User(
                username=username,
                password_hash=hash_password(args.password),
                role=ROLE_ADMIN,
            )
        )
        db.commit()
        logger.info("Admin created: %s", username)
        return 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Admin creation failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
