"""ORM model for operator accounts (auth and RBAC)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from peninsula.models.base import Base

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


class User(Base):
    """
    Operator account for JWT authentication and role-based access control.

    role: 'admin' or 'user'. username is unique and case-sensitive.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
