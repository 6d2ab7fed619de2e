"""Admin user directory endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from peninsula.api.deps import require_admin
from peninsula.core.database import get_db
from peninsula.schemas.auth import AccessTokenClaims
from peninsula.schemas.users import (
    CreateUserRequest,
    DeleteUserRequest,
    SuccessResponse,
    UpdateUserRequest,
    UserItem,
    UserResponse,
    UsersListResponse,
)
from peninsula.services import users as users_service
from peninsula.services.audit import AuditAction, write_audit

router = APIRouter()


@router.get("/list", response_model=UsersListResponse)
def list_users(
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    users = users_service.list_users(db)
    write_audit(db, admin.sub, AuditAction.USERS_LIST)
    return UsersListResponse(users=[UserItem.model_validate(u) for u in users])


@router.post("/create", response_model=UserResponse)
def create_user(
    body: CreateUserRequest,
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Create a user; 409 user_exists when the username is taken."""
    user = users_service.create_user(db, body)
    write_audit(
        db, admin.sub, AuditAction.USER_CREATED, {"username": body.username, "role": body.role}
    )
    return UserResponse(user=UserItem.model_validate(user))


@router.post("/update", response_model=UserResponse)
def update_user(
    body: UpdateUserRequest,
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Change a user's password and/or role."""
    user = users_service.update_user(db, body)
    write_audit(db, admin.sub, AuditAction.USER_UPDATED, {"id": body.id, "role": body.role})
    return UserResponse(user=UserItem.model_validate(user))


@router.post("/delete", response_model=SuccessResponse)
def delete_user(
    body: DeleteUserRequest,
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    """Delete a user. An admin can never delete their own account (400 cannot_delete_self)."""
    users_service.delete_user(db, body.id, actor_user_id=admin.sub)
    write_audit(db, admin.sub, AuditAction.USER_DELETED, {"id": body.id})
    return SuccessResponse(success=True)
