"""Database models."""
from agora.db.models.poll import Poll
from agora.db.models.poll_option import PollOption
from agora.db.models.poll_vote import PollVote
from agora.db.models.location import Location

__all__ = ["Poll", "PollOption", "PollVote", "Location"]
