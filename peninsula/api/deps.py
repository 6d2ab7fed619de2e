"""Authorization gate: authenticate (valid access token) then authorize (admin role)."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from peninsula.core.errors import AuthenticationError, AuthorizationError
from peninsula.core.security import InvalidToken, TokenKind, decode_token
from peninsula.models.user import ROLE_ADMIN
from peninsula.schemas.auth import AccessTokenClaims

security = HTTPBearer(auto_error=False)


def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AccessTokenClaims:
    """
    Dependency: require a valid Bearer access token and return its claims.
    Claims come from the signed token alone; the store is not consulted.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing_token")
    try:
        return decode_token(TokenKind.ACCESS, credentials.credentials)
    except InvalidToken as e:
        raise AuthenticationError("invalid_token") from e


def require_admin(
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> AccessTokenClaims:
    """Dependency: require authenticated claims with role 'admin'. Raises 403 otherwise."""
    if claims.role != ROLE_ADMIN:
        raise AuthorizationError("admin_required")
    return claims
