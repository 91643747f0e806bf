"""Poll results.

Tallies are never stored. They are recomputed from the vote rows every time,
so computing them must not touch the rows it reads.
"""
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from agora.core.constants import (
    DEFAULT_RANK_POSITION,
    POLL_STATUS_ACTIVE,
    QUESTION_FREE_TEXT,
    RESULTS_AFTER_DEADLINE,
    RESULTS_AFTER_VOTE,
    RESULTS_ALWAYS,
)
from agora.core.utils import is_past, to_utc
from agora.db.models import Poll, PollVote
from agora.schemas.results import FreeTextResponse, OptionResult, PollResults
from agora.services.poll import get_poll


def _submission_order(vote: PollVote):
    # Rows not flushed yet have no timestamp and sort last
    created = to_utc(vote.created_at) if vote.created_at is not None else datetime.max.replace(tzinfo=timezone.utc)
    return created, vote.id or 0


def _percentage(count: int, total: int) -> float:
    if total == 0:
        return 0
    return round(count / total * 100, 1)


def _option_results(poll: Poll, counted: List[PollVote]) -> List[OptionResult]:
    totals = Counter(vote.option_id for vote in counted)
    authenticated = Counter(vote.option_id for vote in counted if vote.is_authenticated)
    total_votes = len(counted)

    results = [
        OptionResult(
            option_id=option.id,
            label=option.label,
            text=option.text,
            display_text=option.display_text,
            image_url=option.image_url,
            link_url=option.link_url,
            order=option.order,
            vote_count=totals[option.id],
            authenticated_votes=authenticated[option.id],
            unauthenticated_votes=totals[option.id] - authenticated[option.id],
            percentage=_percentage(totals[option.id], total_votes),
        )
        for option in poll.options
    ]
    results.sort(key=lambda r: (-r.vote_count, r.order, r.option_id))
    return results


def compute_results(poll: Poll, votes: Iterable[PollVote]) -> PollResults:
    """
    Tally a poll from its vote rows.

    Choice polls count first preferences only: every single-choice row and
    the rank 1 row of each ranked ballot. Rows pointing at options outside
    the poll are ignored. Free-text polls list responses in submission
    order (creation time, then id) instead of counting.
    """
    votes = list(votes)

    if poll.question_type == QUESTION_FREE_TEXT:
        counted = sorted(
            (vote for vote in votes if vote.free_text is not None),
            key=_submission_order,
        )
        options = []
        responses = [
            FreeTextResponse(
                text=vote.free_text,
                is_authenticated=vote.is_authenticated,
                submitted_at=vote.created_at,
            )
            for vote in counted
        ]
    else:
        option_ids = {option.id for option in poll.options}
        counted = [
            vote for vote in votes
            if vote.option_id in option_ids and vote.rank_position == DEFAULT_RANK_POSITION
        ]
        options = _option_results(poll, counted)
        responses = []

    authenticated_count = sum(1 for vote in counted if vote.is_authenticated)

    return PollResults(
        poll_id=poll.id,
        question_type=poll.question_type,
        total_votes=len(counted),
        authenticated_vote_count=authenticated_count,
        unauthenticated_vote_count=len(counted) - authenticated_count,
        options=options,
        responses=responses,
    )


def get_poll_results(db: Session, poll_id: int) -> PollResults:
    """Load a poll with its votes and tally it."""
    poll = get_poll(db, poll_id)
    votes = db.query(PollVote).filter(PollVote.poll_id == poll_id).all()
    return compute_results(poll, votes)


def can_view_results(poll: Poll, has_voted: bool, now: Optional[datetime] = None) -> bool:
    """
    Apply the poll's results visibility rule.

    - always: anyone
    - after_vote: only callers who have voted
    - after_deadline: once the deadline passed, or once a poll without a
      deadline stops being active
    """
    if poll.results_visibility == RESULTS_ALWAYS:
        return True

    if poll.results_visibility == RESULTS_AFTER_VOTE:
        return has_voted

    if poll.results_visibility == RESULTS_AFTER_DEADLINE:
        if poll.deadline is not None:
            return is_past(poll.deadline, now)
        return poll.status != POLL_STATUS_ACTIVE

    return False
