"""Password hashing and JWT creation/verification for access and refresh tokens."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import bcrypt
import jwt
import pydantic

from peninsula.core.config import settings
from peninsula.schemas.auth import AccessTokenClaims, RefreshTokenClaims

# Bcrypt cost (rounds).
BCRYPT_ROUNDS = 10

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
# Login only requires a non-empty password; PASSWORD_MIN_LEN applies when one is set.
LOGIN_PASSWORD_MIN_LEN = 1


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class InvalidToken(Exception):
    """Raised when a token is malformed, expired, or signed with the wrong secret."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Compared against when the username is unknown so both failure paths cost one bcrypt check.
DUMMY_PASSWORD_HASH = hash_password("peninsula-timing-dummy")


def _secret_for(kind: TokenKind) -> str:
    if kind is TokenKind.ACCESS:
        return settings.JWT_ACCESS_SECRET.get_secret_value()
    return settings.JWT_REFRESH_SECRET.get_secret_value()


def _encode(kind: TokenKind, claims: dict[str, Any], lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, _secret_for(kind), algorithm=settings.JWT_ALGORITHM)


def create_access_token(sub: int, role: str, username: str) -> str:
    """Create a short-lived access token carrying sub, role, username and exp."""
    return _encode(
        TokenKind.ACCESS,
        {"sub": str(sub), "role": role, "username": username},
        timedelta(minutes=settings.JWT_ACCESS_TTL_MINUTES),
    )


def create_refresh_token(sub: int, role: str) -> str:
    """Create a long-lived refresh token carrying sub, role and exp."""
    return _encode(
        TokenKind.REFRESH,
        {"sub": str(sub), "role": role},
        timedelta(days=settings.JWT_REFRESH_TTL_DAYS),
    )


def refresh_token_expiry(now: datetime | None = None) -> datetime:
    """Expiry for a persisted refresh token record; same lifetime as the signed token."""
    return (now or datetime.now(UTC)) + timedelta(days=settings.JWT_REFRESH_TTL_DAYS)


def decode_token(
    kind: TokenKind, token: str
) -> AccessTokenClaims | RefreshTokenClaims:
    """
    Verify signature and expiry for the given token kind and return its claims.
    Raises InvalidToken on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            _secret_for(kind),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidToken(f"Invalid {kind.value} token: {e}", cause=e) from e

    model = AccessTokenClaims if kind is TokenKind.ACCESS else RefreshTokenClaims
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise InvalidToken(f"Invalid {kind.value} token payload", cause=e) from e
