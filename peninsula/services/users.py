"""User directory operations for admins: list, create, update, delete."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from peninsula.core.errors import ConflictError, NotFoundError, ValidationError
from peninsula.core.security import hash_password
from peninsula.models import User
from peninsula.schemas.users import CreateUserRequest, UpdateUserRequest

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def create_user(db: Session, body: CreateUserRequest) -> User:
    """Insert a user. Username uniqueness is enforced by the store; a duplicate maps to 409."""
    user = User(
        username=body.username,
        password_hash=hash_password(body.password),
        role=body.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("User create rejected: duplicate username", extra={"username": body.username})
        raise ConflictError("user_exists") from e
    db.refresh(user)
    return user


def update_user(db: Session, body: UpdateUserRequest) -> User:
    if body.password is None and body.role is None:
        raise ValidationError("no_updates")

    user = db.query(User).filter(User.id == body.id).first()
    if user is None:
        raise NotFoundError("not_found")
    if body.password is not None:
        user.password_hash = hash_password(body.password)
    if body.role is not None:
        user.role = body.role
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, actor_user_id: int) -> None:
    """Delete a user (refresh tokens cascade). Admins can never delete themselves."""
    if user_id == actor_user_id:
        raise ValidationError("cannot_delete_self")

    deleted = (
        db.query(User)
        .filter(User.id == user_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise NotFoundError("not_found")
    db.commit()
