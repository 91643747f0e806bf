"""Poll model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship

from agora.db.base import Base


def _utcnow():
    return datetime.now(tz.utc)


class Poll(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    question_type = Column(String(20), nullable=False, default="single-choice")
    poll_type = Column(String(20), nullable=False, default="simple")
    allow_unauthenticated_voting = Column(Boolean, nullable=False, default=False)
    allow_user_add_options = Column(Boolean, nullable=False, default=False)
    results_visibility = Column(String(20), nullable=False, default="always")
    status = Column(String(20), nullable=False, default="active")
    deadline = Column(DateTime(timezone=True), nullable=True)
    creator_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    options = relationship(
        "PollOption",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="(PollOption.order, PollOption.id)",
    )
    votes = relationship("PollVote", back_populates="poll", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_polls_status", "status"),
        CheckConstraint(
            "question_type IN ('single-choice', 'ranked-choice', 'free-text')",
            name="ck_polls_question_type",
        ),
        CheckConstraint("status IN ('active', 'closed', 'archived')", name="ck_polls_status"),
    )

    def __repr__(self) -> str:
        return f"<Poll {self.id} {self.question_type} {self.status}>"
