from datetime import timedelta
from typing import Optional

import jwt
from sqlalchemy.orm import Session

from agora.core.config import settings
from agora.core.utils import utcnow
from agora.db.models import Poll, PollVote
from agora.services.vote import AnonymousIdentity, AuthenticatedIdentity


def make_token(user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign an access token the way the account service does."""
    payload = {"sub": str(user_id), "exp": utcnow() + expires_in}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def user(user_id: int) -> AuthenticatedIdentity:
    return AuthenticatedIdentity(user_id=user_id)


def device(n: int, session_id: Optional[str] = None) -> AnonymousIdentity:
    """A distinct anonymous device per n."""
    return AnonymousIdentity(
        ip_address=f"203.0.113.{n}",
        user_agent=f"Mozilla/5.0 (device {n})",
        session_id=session_id,
    )


def option_ids(poll: Poll) -> list:
    """Option ids in display order."""
    return [option.id for option in poll.options]


def insert_vote(session: Session, poll: Poll, **fields) -> PollVote:
    """Insert a vote row directly, bypassing the vote service.

    Args:
        session: SQLAlchemy session
        poll: Poll the vote belongs to
        fields: PollVote columns; user_id makes it authenticated
    """
    fields.setdefault("rank_position", 1)
    if fields.get("user_id") is not None:
        fields.setdefault("is_authenticated", True)
    else:
        fields.setdefault("is_authenticated", False)
        fields.setdefault("ip_address", "198.51.100.1")
        fields.setdefault("user_agent", "pytest")
    vote = PollVote(poll_id=poll.id, **fields)
    session.add(vote)
    session.commit()
    return vote
