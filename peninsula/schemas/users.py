"""Request/response schemas for the admin user directory."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserItem(BaseModel):
    """User entry returned to admins (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    created_at: datetime | None = None


class UsersListResponse(BaseModel):
    """Response for GET /admin/users/list."""

    users: list[UserItem]


class UserResponse(BaseModel):
    user: UserItem


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    role: Literal["admin", "user"] = "user"


class UpdateUserRequest(BaseModel):
    """Either field may be omitted, but not both."""

    id: int
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: Literal["admin", "user"] | None = None


class DeleteUserRequest(BaseModel):
    id: int


class SuccessResponse(BaseModel):
    success: bool = True
