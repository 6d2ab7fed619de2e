"""ORM model for issued refresh tokens; a token is redeemable only while its row exists and is unexpired."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func

from peninsula.models.base import Base


class RefreshToken(Base):
    """One row per successful login. Never mutated; removed with its user."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
