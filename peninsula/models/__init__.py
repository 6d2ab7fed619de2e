"""SQLAlchemy ORM models."""

from peninsula.models.audit import Audit
from peninsula.models.base import Base
from peninsula.models.refresh_token import RefreshToken
from peninsula.models.user import User

__all__ = ["Audit", "Base", "RefreshToken", "User"]
