"""PollVote model."""
from datetime import datetime, timezone as tz
from sqlalchemy import (
    Boolean, Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint, text
)
from sqlalchemy.orm import relationship

from agora.db.base import Base

# Names of the unique indexes that guard one vote per identity; the vote
# service matches them in IntegrityError messages.
USER_VOTE_INDEX = "uq_poll_votes_user_rank"
DEVICE_VOTE_INDEX = "uq_poll_votes_device_rank"


def _utcnow():
    return datetime.now(tz.utc)


class PollVote(Base):
    __tablename__ = "poll_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    option_id = Column(Integer, ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=True)
    free_text = Column(Text, nullable=True)
    rank_position = Column(Integer, nullable=False, default=1)

    # Identity: user_id when authenticated, otherwise the device fingerprint
    user_id = Column(Integer, nullable=True)
    is_authenticated = Column(Boolean, nullable=False)
    session_id = Column(String(128), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    poll = relationship("Poll", back_populates="votes")
    option = relationship("PollOption", back_populates="votes")

    __table_args__ = (
        Index("idx_poll_votes_poll", "poll_id"),
        Index("idx_poll_votes_option", "option_id"),
        Index(
            USER_VOTE_INDEX,
            "poll_id", "user_id", "rank_position",
            unique=True,
            postgresql_where=text("user_id IS NOT NULL"),
            sqlite_where=text("user_id IS NOT NULL"),
        ),
        Index(
            DEVICE_VOTE_INDEX,
            "poll_id", "ip_address", "user_agent", "rank_position",
            unique=True,
            postgresql_where=text("user_id IS NULL"),
            sqlite_where=text("user_id IS NULL"),
        ),
        CheckConstraint("rank_position >= 1", name="ck_poll_votes_rank_position"),
        CheckConstraint(
            "(user_id IS NOT NULL) OR (ip_address IS NOT NULL AND user_agent IS NOT NULL)",
            name="ck_poll_votes_identity",
        ),
    )
