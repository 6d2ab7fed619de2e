"""Login and refresh flows: credential verification, token issuance and refresh-token persistence checks."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from peninsula.core.errors import AuthenticationError, ValidationError
from peninsula.core.security import (
    DUMMY_PASSWORD_HASH,
    LOGIN_PASSWORD_MIN_LEN,
    PASSWORD_MAX_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    InvalidToken,
    TokenKind,
    create_access_token,
    create_refresh_token,
    decode_token,
    refresh_token_expiry,
    verify_password,
)
from peninsula.models import RefreshToken, User
from peninsula.schemas.auth import AccessTokenResponse, TokenPairResponse
from peninsula.services.audit import AuditAction, write_audit

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid_credentials"
INVALID_REFRESH = "invalid_refresh"


def _validate_credentials_shape(username: str, password: str) -> None:
    # A short password is not a payload error at login; it just fails to match.
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        raise ValidationError("invalid_payload")
    if not (LOGIN_PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError("invalid_payload")


def login(db: Session, username: str, password: str) -> TokenPairResponse:
    """
    Authenticate with username and password and issue an access/refresh pair.

    Unknown username and wrong password fail with the same error; each writes one
    login_failed audit entry (actor is null when the user does not exist).
    """
    _validate_credentials_shape(username, password)

    user = db.query(User).filter(User.username == username).first()
    if user is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        write_audit(db, None, AuditAction.LOGIN_FAILED, {"username": username})
        logger.info("Login failed", extra={"username": username, "reason": "unknown_user"})
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        write_audit(db, user.id, AuditAction.LOGIN_FAILED, {"username": username})
        logger.info("Login failed", extra={"username": username, "reason": "bad_password"})
        raise AuthenticationError(INVALID_CREDENTIALS)

    access_token = create_access_token(sub=user.id, role=user.role, username=user.username)
    refresh_token = create_refresh_token(sub=user.id, role=user.role)
    db.add(
        RefreshToken(
            user_id=user.id,
            token=refresh_token,
            expires_at=refresh_token_expiry(),
        )
    )
    db.commit()
    write_audit(db, user.id, AuditAction.LOGIN_SUCCESS, {"username": username})
    logger.info("Login succeeded", extra={"username": username, "user_id": user.id})
    return TokenPairResponse(access_token=access_token, refresh_token=refresh_token)


def refresh(db: Session, token: str | None) -> AccessTokenResponse:
    """
    Exchange a refresh token for a new access token.

    The token must verify cryptographically AND have a matching unexpired row in
    refresh_tokens AND its subject must still exist. All failures look the same
    to the caller. The refresh token itself is not rotated.
    """
    if not token:
        raise ValidationError("missing_refresh")

    try:
        claims = decode_token(TokenKind.REFRESH, token)
    except InvalidToken as e:
        logger.info("Refresh rejected", extra={"reason": e.message})
        raise AuthenticationError(INVALID_REFRESH) from e

    now = datetime.now(UTC)
    record = (
        db.query(RefreshToken.id)
        .filter(RefreshToken.token == token, RefreshToken.expires_at > now)
        .first()
    )
    if record is None:
        logger.info("Refresh rejected", extra={"reason": "no_active_record", "user_id": claims.sub})
        raise AuthenticationError(INVALID_REFRESH)

    user = db.query(User).filter(User.id == claims.sub).first()
    if user is None:
        logger.info("Refresh rejected", extra={"reason": "user_gone", "user_id": claims.sub})
        raise AuthenticationError(INVALID_REFRESH)

    access_token = create_access_token(sub=user.id, role=user.role, username=user.username)
    return AccessTokenResponse(access_token=access_token)
