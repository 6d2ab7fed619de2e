"""Login and token refresh endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from peninsula.core.database import get_db
from peninsula.schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshRequest,
    TokenPairResponse,
)
from peninsula.services import auth as auth_service

router = APIRouter()


@router.post("/login", response_model=TokenPairResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenPairResponse:
    """
    Authenticate with username and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return auth_service.login(db, body.username, body.password)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh(
    db: Annotated[Session, Depends(get_db)],
    body: RefreshRequest | None = None,
) -> AccessTokenResponse:
    """Exchange a persisted, unexpired refresh token for a new access token."""
    return auth_service.refresh(db, body.refresh_token if body else None)
