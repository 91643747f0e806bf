"""Poll business logic."""
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from agora.core.constants import (
    ANSWER_TYPES,
    MIN_POLL_OPTIONS,
    POLL_STATUS_ACTIVE,
    POLL_STATUS_ARCHIVED,
    POLL_STATUSES,
    POLL_TYPES,
    QUESTION_FREE_TEXT,
    QUESTION_TYPES,
    RESULTS_VISIBILITIES,
)
from agora.core.logging_config import get_logger
from agora.core.sanitization import sanitize_option_text, sanitize_poll_title
from agora.core.utils import is_past
from agora.db.models import Poll, PollOption, PollVote

logger = get_logger(__name__)


def _build_option(poll: Poll, data: dict, order: int, created_by_id: Optional[int] = None) -> PollOption:
    """Validate option fields for the poll kind and build the row."""
    text = data.get("text")
    if text is not None:
        text = sanitize_option_text(text)

    if poll.poll_type == "simple" and not text:
        raise ValueError("Option text is required for simple polls")

    answer_type = data.get("answer_type")
    if answer_type is not None and answer_type not in ANSWER_TYPES:
        raise ValueError(f"Answer type must be one of: {', '.join(ANSWER_TYPES)}")

    if not any([text, data.get("display_text"), data.get("link_url"), data.get("image_url")]):
        raise ValueError("Option must have text, display text, a link or an image")

    return PollOption(
        text=text,
        answer_type=answer_type,
        image_url=data.get("image_url"),
        link_url=data.get("link_url"),
        display_text=data.get("display_text"),
        created_by_id=created_by_id,
        order=order,
    )


def create_poll(
    db: Session,
    *,
    title: str,
    options: Sequence[dict] = (),
    question_type: str = "single-choice",
    poll_type: str = "simple",
    description: Optional[str] = None,
    allow_unauthenticated_voting: bool = False,
    allow_user_add_options: bool = False,
    results_visibility: str = "always",
    deadline: Optional[datetime] = None,
    creator_id: Optional[int] = None,
) -> Poll:
    """
    Create a new poll with its options.

    Choice polls need at least two options unless voters may add their own.
    Free-text polls take no options.

    Raises:
        ValueError: If any field is invalid
    """
    title = sanitize_poll_title(title or "")

    if question_type not in QUESTION_TYPES:
        raise ValueError(f"Question type must be one of: {', '.join(QUESTION_TYPES)}")
    if poll_type not in POLL_TYPES:
        raise ValueError(f"Poll type must be one of: {', '.join(POLL_TYPES)}")
    if results_visibility not in RESULTS_VISIBILITIES:
        raise ValueError(f"Results visibility must be one of: {', '.join(RESULTS_VISIBILITIES)}")
    if deadline is not None and is_past(deadline):
        raise ValueError("Deadline must be in the future")

    if question_type == QUESTION_FREE_TEXT:
        if options:
            raise ValueError("Free-text polls cannot have options")
    else:
        min_options = 0 if allow_user_add_options else MIN_POLL_OPTIONS
        if len(options) < min_options:
            raise ValueError(f"At least {min_options} options are required")

    poll = Poll(
        title=title,
        description=description,
        question_type=question_type,
        poll_type=poll_type,
        allow_unauthenticated_voting=allow_unauthenticated_voting,
        allow_user_add_options=allow_user_add_options,
        results_visibility=results_visibility,
        status=POLL_STATUS_ACTIVE,
        deadline=deadline,
        creator_id=creator_id,
    )
    poll.options = [_build_option(poll, dict(data), order) for order, data in enumerate(options)]

    db.add(poll)
    db.commit()
    db.refresh(poll)

    logger.info("poll_created", poll_id=poll.id, question_type=question_type, options=len(poll.options))
    return poll


def get_poll(db: Session, poll_id: int) -> Poll:
    """Get a poll by id."""
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise LookupError("Poll not found")
    return poll


def add_poll_option(db: Session, poll_id: int, user_id: int, **data) -> PollOption:
    """
    Add a user-contributed option to an active poll.

    Raises:
        LookupError: If the poll does not exist
        ValueError: If the poll does not accept contributions or the option is invalid
    """
    poll = get_poll(db, poll_id)

    if not poll.allow_user_add_options:
        raise ValueError("This poll does not allow user-contributed options")
    if poll.status != POLL_STATUS_ACTIVE:
        raise ValueError("Cannot add options to an inactive poll")
    if poll.question_type == QUESTION_FREE_TEXT:
        raise ValueError("Free-text polls cannot have options")

    option = _build_option(poll, data, order=len(poll.options), created_by_id=user_id)
    poll.options.append(option)
    db.commit()
    db.refresh(option)

    logger.info("poll_option_added", poll_id=poll_id, option_id=option.id, user_id=user_id)
    return option


def set_poll_status(db: Session, poll_id: int, status: str) -> Poll:
    """
    Move a poll forward in its lifecycle (active -> closed -> archived).

    Skipping a step is allowed; going back is not. Setting the current
    status again changes nothing.
    """
    if status not in POLL_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(POLL_STATUSES)}")

    poll = get_poll(db, poll_id)
    current = POLL_STATUSES.index(poll.status)
    target = POLL_STATUSES.index(status)

    if target < current:
        raise ValueError(f"Cannot change poll status from {poll.status} to {status}")
    if target == current:
        return poll

    previous = poll.status
    poll.status = status
    db.commit()
    db.refresh(poll)

    logger.info("poll_status_changed", poll_id=poll_id, previous=previous, status=status)
    return poll


def poll_has_votes(db: Session, poll_id: int) -> bool:
    return db.query(PollVote.id).filter(PollVote.poll_id == poll_id).first() is not None


def delete_poll(db: Session, poll_id: int) -> str:
    """
    Delete a poll, or archive it if anyone has voted.

    Returns:
        "archived" or "deleted"
    """
    poll = get_poll(db, poll_id)

    if poll_has_votes(db, poll_id):
        poll.status = POLL_STATUS_ARCHIVED
        db.commit()
        logger.info("poll_archived", poll_id=poll_id)
        return "archived"

    # Options go with the poll via cascade
    db.delete(poll)
    db.commit()
    logger.info("poll_deleted", poll_id=poll_id)
    return "deleted"


def list_polls(db: Session, status: str = POLL_STATUS_ACTIVE) -> List[Poll]:
    """Polls in the given status, newest first."""
    if status not in POLL_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(POLL_STATUSES)}")
    return db.query(Poll).filter(Poll.status == status).order_by(Poll.created_at.desc(), Poll.id.desc()).all()
