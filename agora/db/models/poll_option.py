"""PollOption model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from agora.db.base import Base


class PollOption(Base):
    __tablename__ = "poll_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=True)
    answer_type = Column(String(20), nullable=True)  # person, article, custom (complex polls)
    image_url = Column(String(500), nullable=True)
    link_url = Column(String(500), nullable=True)
    display_text = Column(String(500), nullable=True)
    created_by_id = Column(Integer, nullable=True)  # set for user-contributed options
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    poll = relationship("Poll", back_populates="options")
    votes = relationship("PollVote", back_populates="option", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_poll_options_poll", "poll_id"),)

    @property
    def label(self) -> str:
        """Human-readable label for results and logs."""
        return self.text or self.display_text or f"Option {self.id}"
