"""API v1 routes."""

from fastapi import APIRouter

from peninsula.api.v1 import auth, update, users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/admin/users", tags=["users"])
router.include_router(update.router, prefix="/admin/update", tags=["update"])
