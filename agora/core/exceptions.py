"""Voting errors.

Every failure a voter can run into has its own class, a stable machine code
and the HTTP status the API answers with. They subclass ValueError so callers
that only care about "bad request" can keep catching ValueError.
"""


class VoteError(ValueError):
    """Base class for user-presentable vote submission failures."""

    code = "vote_error"
    status_code = 400
    default_message = "Vote could not be recorded."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class PollClosed(VoteError):
    code = "poll_closed"
    status_code = 409
    default_message = "This poll is not active."


class PollExpired(VoteError):
    code = "poll_expired"
    status_code = 409
    default_message = "This poll has expired."


class UnauthenticatedVotingDisabled(VoteError):
    code = "unauthenticated_voting_disabled"
    status_code = 401
    default_message = "Authentication required to vote on this poll."


class InvalidOption(VoteError):
    code = "invalid_option"
    default_message = "Invalid option for this poll."


class InvalidRankSequence(VoteError):
    code = "invalid_rank_sequence"
    default_message = "Rankings must be numbered 1..n without gaps or repeated options."


class EmptyFreeTextResponse(VoteError):
    code = "empty_free_text_response"
    default_message = "Response text cannot be empty."


class DuplicateVoteRace(VoteError):
    """Concurrent first votes from one identity could not be reconciled."""

    code = "duplicate_vote_race"
    status_code = 409
    default_message = "Another vote from this voter is being recorded. Please retry."
