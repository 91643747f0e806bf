"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from agora.db.models.poll import Poll  # noqa: F401, E402
from agora.db.models.poll_option import PollOption  # noqa: F401, E402
from agora.db.models.poll_vote import PollVote  # noqa: F401, E402
from agora.db.models.location import Location  # noqa: F401, E402
