"""Location model."""
from datetime import datetime, timezone as tz
from sqlalchemy import BigInteger, Column, Integer, String, DateTime

from agora.db.base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True, nullable=False, index=True)
    wikipedia_url = Column(String(500), nullable=True)

    # Cached Wikipedia data; population None means unknown
    wikipedia_image_url = Column(String(500), nullable=True)
    population = Column(BigInteger, nullable=True)
    wikipedia_data_updated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    def __repr__(self) -> str:
        return f"<Location {self.slug}>"
