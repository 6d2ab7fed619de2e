"""ORM model for the append-only audit log."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB

from peninsula.models.base import Base


class Audit(Base):
    """
    Immutable record of a security-relevant action.

    actor_user_id is null for unauthenticated actions (e.g. login with an
    unknown username) and is set to null when the actor is deleted.
    """

    __tablename__ = "audits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action = Column(String(64), nullable=False, index=True)
    details = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
