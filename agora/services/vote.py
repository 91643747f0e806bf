"""Vote business logic.

A voter is either a logged-in user or an anonymous device. Each identity owns
at most one row per rank position in a poll; resubmitting rewrites those rows
in place instead of adding new ones.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.core.constants import (
    DEFAULT_RANK_POSITION,
    POLL_STATUS_ACTIVE,
    QUESTION_FREE_TEXT,
    QUESTION_RANKED_CHOICE,
    QUESTION_SINGLE_CHOICE,
)
from agora.core.exceptions import (
    DuplicateVoteRace,
    EmptyFreeTextResponse,
    InvalidOption,
    InvalidRankSequence,
    PollClosed,
    PollExpired,
    UnauthenticatedVotingDisabled,
)
from agora.core.logging_config import get_logger
from agora.core.utils import is_past
from agora.db.models import Poll, PollVote
from agora.db.models.poll_vote import DEVICE_VOTE_INDEX, USER_VOTE_INDEX

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: int


@dataclass(frozen=True)
class AnonymousIdentity:
    """Device fingerprint; uniqueness is keyed on ip_address + user_agent."""

    ip_address: str
    user_agent: str
    session_id: Optional[str] = None


Identity = Union[AuthenticatedIdentity, AnonymousIdentity]


@dataclass(frozen=True)
class SingleChoice:
    option_id: int


@dataclass(frozen=True)
class RankedChoice:
    rankings: Tuple[Tuple[int, int], ...]  # (option_id, rank_position)

    @classmethod
    def from_order(cls, option_ids: Sequence[int]) -> "RankedChoice":
        """Rank options in the given order, most preferred first."""
        return cls(tuple((option_id, rank) for rank, option_id in enumerate(option_ids, start=1)))


@dataclass(frozen=True)
class FreeText:
    text: str


Selection = Union[SingleChoice, RankedChoice, FreeText]


@dataclass(frozen=True)
class _BallotRow:
    rank_position: int
    option_id: Optional[int] = None
    free_text: Optional[str] = None


@dataclass
class VoteResult:
    created: bool
    votes: List[PollVote]


def check_eligibility(poll: Poll, identity: Identity, now=None) -> None:
    """Raise the first eligibility failure for this voter, if any."""
    if poll.status != POLL_STATUS_ACTIVE:
        raise PollClosed()

    if is_past(poll.deadline, now):
        raise PollExpired()

    if isinstance(identity, AnonymousIdentity) and not poll.allow_unauthenticated_voting:
        raise UnauthenticatedVotingDisabled()


def _require_options(poll: Poll, option_ids: Sequence[int]) -> None:
    valid_ids = {option.id for option in poll.options}
    for option_id in option_ids:
        if option_id not in valid_ids:
            raise InvalidOption()


def _single_choice_rows(poll: Poll, selection: Selection) -> List[_BallotRow]:
    if not isinstance(selection, SingleChoice):
        raise InvalidOption("This poll expects a single option.")
    _require_options(poll, [selection.option_id])
    return [_BallotRow(DEFAULT_RANK_POSITION, option_id=selection.option_id)]


def _ranked_choice_rows(poll: Poll, selection: Selection) -> List[_BallotRow]:
    if not isinstance(selection, RankedChoice):
        raise InvalidOption("This poll expects a ranked list of options.")

    option_ids = [option_id for option_id, _ in selection.rankings]
    _require_options(poll, option_ids)

    ranks = sorted(rank for _, rank in selection.rankings)
    if not ranks or ranks != list(range(1, len(ranks) + 1)):
        raise InvalidRankSequence()
    if len(set(option_ids)) != len(option_ids):
        raise InvalidRankSequence("An option can only be ranked once.")

    return [
        _BallotRow(rank, option_id=option_id)
        for option_id, rank in sorted(selection.rankings, key=lambda pair: pair[1])
    ]


def _free_text_rows(poll: Poll, selection: Selection) -> List[_BallotRow]:
    if not isinstance(selection, FreeText):
        raise InvalidOption("This poll expects a written response.")
    text = (selection.text or "").strip()
    if not text:
        raise EmptyFreeTextResponse()
    return [_BallotRow(DEFAULT_RANK_POSITION, free_text=text)]


_BALLOT_BUILDERS = {
    QUESTION_SINGLE_CHOICE: _single_choice_rows,
    QUESTION_RANKED_CHOICE: _ranked_choice_rows,
    QUESTION_FREE_TEXT: _free_text_rows,
}


def build_ballot(poll: Poll, selection: Selection) -> List[_BallotRow]:
    """Validate a selection against the poll's question type."""
    try:
        builder = _BALLOT_BUILDERS[poll.question_type]
    except KeyError:
        raise ValueError(f"Unsupported question type: {poll.question_type}")
    return builder(poll, selection)


def get_identity_votes(db: Session, poll_id: int, identity: Identity) -> List[PollVote]:
    """Current vote rows of one voter in a poll, most preferred first."""
    query = db.query(PollVote).filter(PollVote.poll_id == poll_id)

    if isinstance(identity, AuthenticatedIdentity):
        query = query.filter(PollVote.user_id == identity.user_id)
    else:
        query = query.filter(
            PollVote.user_id.is_(None),
            PollVote.ip_address == identity.ip_address,
            PollVote.user_agent == identity.user_agent,
        )

    return query.order_by(PollVote.rank_position).all()


def _new_vote(poll_id: int, identity: Identity, row: _BallotRow) -> PollVote:
    vote = PollVote(
        poll_id=poll_id,
        option_id=row.option_id,
        free_text=row.free_text,
        rank_position=row.rank_position,
    )
    if isinstance(identity, AuthenticatedIdentity):
        vote.user_id = identity.user_id
        vote.is_authenticated = True
    else:
        vote.user_id = None
        vote.is_authenticated = False
        vote.session_id = identity.session_id
        vote.ip_address = identity.ip_address
        vote.user_agent = identity.user_agent
    return vote


def _write_ballot(db: Session, poll_id: int, identity: Identity, rows: List[_BallotRow]) -> bool:
    """
    Replace the voter's rows with the ballot in one commit.

    Rows are matched by rank position so no statement ever holds two rows
    with the same uniqueness key. Returns True if the voter had no rows yet.
    """
    existing = {vote.rank_position: vote for vote in get_identity_votes(db, poll_id, identity)}
    wanted = set()

    for row in rows:
        wanted.add(row.rank_position)
        vote = existing.get(row.rank_position)
        if vote is None:
            db.add(_new_vote(poll_id, identity, row))
            continue
        vote.option_id = row.option_id
        vote.free_text = row.free_text
        if isinstance(identity, AnonymousIdentity):
            vote.session_id = identity.session_id

    for rank_position, vote in existing.items():
        if rank_position not in wanted:
            db.delete(vote)

    db.commit()
    return not existing


def _is_duplicate_vote_error(error: IntegrityError) -> bool:
    message = str(error.orig if error.orig is not None else error)
    if USER_VOTE_INDEX in message or DEVICE_VOTE_INDEX in message:
        return True
    # SQLite reports the columns instead of the index name
    lowered = message.lower()
    return "unique constraint failed: poll_votes." in lowered


def submit_vote(
    db: Session,
    poll: Poll,
    identity: Identity,
    selection: Selection,
    now=None,
) -> VoteResult:
    """
    Cast or change a vote.

    Eligibility and ballot validation happen before anything is written. When
    a concurrent first vote from the same identity wins the insert, the
    ballot is retried once as an update.

    Raises:
        PollClosed, PollExpired, UnauthenticatedVotingDisabled, InvalidOption,
        InvalidRankSequence, EmptyFreeTextResponse, DuplicateVoteRace
    """
    check_eligibility(poll, identity, now)
    rows = build_ballot(poll, selection)
    poll_id = poll.id

    try:
        created = _write_ballot(db, poll_id, identity, rows)
    except IntegrityError as e:
        db.rollback()
        if not _is_duplicate_vote_error(e):
            raise
        logger.info("vote_race_retry", poll_id=poll_id)
        try:
            created = _write_ballot(db, poll_id, identity, rows)
        except IntegrityError as retry_error:
            db.rollback()
            if not _is_duplicate_vote_error(retry_error):
                raise
            logger.warning("vote_race_unresolved", poll_id=poll_id)
            raise DuplicateVoteRace()

    votes = get_identity_votes(db, poll_id, identity)
    logger.info(
        "vote_recorded",
        poll_id=poll_id,
        created=created,
        authenticated=isinstance(identity, AuthenticatedIdentity),
        rows=len(votes),
    )
    return VoteResult(created=created, votes=votes)
