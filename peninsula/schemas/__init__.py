"""Pydantic request/response schemas."""

from peninsula.schemas.auth import (
    AccessTokenClaims,
    AccessTokenResponse,
    LoginRequest,
    RefreshRequest,
    RefreshTokenClaims,
    TokenPairResponse,
)
from peninsula.schemas.health import HealthResponse
from peninsula.schemas.update import RepoState, UpdateApplyResponse, UpdateCheckResult
from peninsula.schemas.users import (
    CreateUserRequest,
    DeleteUserRequest,
    UpdateUserRequest,
    UserItem,
    UsersListResponse,
)

__all__ = [
    "AccessTokenClaims",
    "AccessTokenResponse",
    "CreateUserRequest",
    "DeleteUserRequest",
    "HealthResponse",
    "LoginRequest",
    "RefreshRequest",
    "RefreshTokenClaims",
    "RepoState",
    "TokenPairResponse",
    "UpdateApplyResponse",
    "UpdateCheckResult",
    "UpdateUserRequest",
    "UserItem",
    "UsersListResponse",
]
