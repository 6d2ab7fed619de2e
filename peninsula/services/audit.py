"""Audit sink: append-only log of security-relevant actions. Written, never read, by the core."""

import logging
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peninsula.models import Audit

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    LOGIN_FAILED = "login_failed"
    LOGIN_SUCCESS = "login_success"
    USERS_LIST = "users_list"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    UPDATE_CHECK = "update_check"
    UPDATE_APPLY = "update_apply"


def write_audit(
    db: Session,
    actor_user_id: int | None,
    action: AuditAction,
    details: dict[str, Any] | None = None,
) -> None:
    """
    Append one audit entry and commit.

    Fire-and-forget: a failed insert is rolled back and logged, and never changes
    the outcome of the operation being audited.
    """
    entry = Audit(
        actor_user_id=actor_user_id,
        action=action.value,
        details=details or {},
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Audit write failed",
            extra={"action": action.value, "actor_user_id": actor_user_id},
        )
