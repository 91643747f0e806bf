"""Poll endpoints."""
from dataclasses import replace
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from agora.api.deps import get_db, get_voter_identity, require_user_id
from agora.core.exceptions import VoteError
from agora.core.logging_config import get_logger
from agora.core.rate_limit import limiter, RATE_LIMITS
from agora.schemas import (
    ErrorResponse,
    PollCreate,
    PollDeleteResponse,
    PollDetail,
    PollOptionCreate,
    PollOptionDetail,
    PollResponse,
    PollResults,
    PollStatusUpdate,
    VoteRequest,
    VoteResponse,
    VoteRow,
)
from agora.services.poll import (
    add_poll_option,
    create_poll,
    delete_poll,
    get_poll,
    list_polls,
    set_poll_status,
)
from agora.services.results import can_view_results, get_poll_results
from agora.services.vote import (
    AnonymousIdentity,
    FreeText,
    Identity,
    RankedChoice,
    SingleChoice,
    get_identity_votes,
    submit_vote,
)

logger = get_logger(__name__)
router = APIRouter()


def _load_poll(db: Session, poll_id: int):
    try:
        return get_poll(db, poll_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _require_creator(poll, user_id: int) -> None:
    if poll.creator_id != user_id:
        raise HTTPException(status_code=403, detail="Only the poll creator can do this")


def _selection_from_request(vote_request: VoteRequest):
    if vote_request.option_id is not None:
        return SingleChoice(option_id=vote_request.option_id)
    if vote_request.ranked_option_ids is not None:
        return RankedChoice.from_order(vote_request.ranked_option_ids)
    return FreeText(text=vote_request.text)


@router.get("", response_model=List[PollDetail])
@limiter.limit(RATE_LIMITS["poll_read"])
async def list_polls_endpoint(
    request: Request,
    status: str = "active",
    db: Session = Depends(get_db)
):
    """List polls in a lifecycle status (active by default), newest first."""
    try:
        return list_polls(db, status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("", response_model=PollResponse, status_code=201)
@limiter.limit(RATE_LIMITS["poll_write"])
async def create_poll_endpoint(
    request: Request,
    poll: PollCreate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db)
):
    """
    Create a poll (logged-in users only).

    Choice polls need at least two options unless voters may add their own;
    free-text polls take none.

    Raises:
        HTTPException: 400 if the poll definition is invalid
        HTTPException: 401 if not authenticated
    """
    try:
        created = create_poll(
            db,
            title=poll.title,
            description=poll.description,
            question_type=poll.question_type,
            poll_type=poll.poll_type,
            allow_unauthenticated_voting=poll.allow_unauthenticated_voting,
            allow_user_add_options=poll.allow_user_add_options,
            results_visibility=poll.results_visibility,
            deadline=poll.deadline,
            options=[option.model_dump() for option in poll.options],
            creator_id=user_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PollResponse(poll_id=created.id)


@router.get("/{poll_id}", response_model=PollDetail)
@limiter.limit(RATE_LIMITS["poll_read"])
async def get_poll_endpoint(
    request: Request,
    poll_id: int,
    identity: Identity = Depends(get_voter_identity),
    db: Session = Depends(get_db)
):
    """Poll with its options and, if the caller has voted, their current vote."""
    poll = _load_poll(db, poll_id)
    detail = PollDetail.model_validate(poll)
    detail.user_vote = [VoteRow.model_validate(v) for v in get_identity_votes(db, poll_id, identity)]
    return detail


@router.post("/{poll_id}/options", response_model=PollOptionDetail, status_code=201)
@limiter.limit(RATE_LIMITS["poll_write"])
async def add_option_endpoint(
    request: Request,
    poll_id: int,
    option: PollOptionCreate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db)
):
    """Add a user-contributed option to a poll that allows it."""
    try:
        return add_poll_option(db, poll_id, user_id, **option.model_dump())
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{poll_id}/status", response_model=PollDetail)
async def update_status_endpoint(
    poll_id: int,
    update: PollStatusUpdate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db)
):
    """Move a poll forward in its lifecycle (creator only)."""
    _require_creator(_load_poll(db, poll_id), user_id)
    try:
        return set_poll_status(db, poll_id, update.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{poll_id}", response_model=PollDeleteResponse)
async def delete_poll_endpoint(
    poll_id: int,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db)
):
    """Delete a poll, or archive it when it already has votes (creator only)."""
    _require_creator(_load_poll(db, poll_id), user_id)
    outcome = delete_poll(db, poll_id)
    return PollDeleteResponse(poll_id=poll_id, outcome=outcome)


@router.post(
    "/{poll_id}/votes",
    response_model=VoteResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["vote"])
async def vote_endpoint(
    request: Request,
    poll_id: int,
    vote_request: VoteRequest,
    identity: Identity = Depends(get_voter_identity),
    db: Session = Depends(get_db)
) -> VoteResponse:
    """
    Cast or change a vote.

    Send exactly one of `option_id`, `ranked_option_ids` (most preferred
    first) or `text`, matching the poll's question type. Logged-in users
    vote as themselves; anonymous voters are identified by IP address and
    User-Agent, and may pass a `session_id`. Voting again replaces the
    previous vote.

    Raises:
        HTTPException: 404 if the poll does not exist
        HTTPException: 400/401/409 with `{"code", "message"}` for vote errors
    """
    poll = _load_poll(db, poll_id)

    if isinstance(identity, AnonymousIdentity) and vote_request.session_id:
        identity = replace(identity, session_id=vote_request.session_id)

    try:
        result = submit_vote(db, poll, identity, _selection_from_request(vote_request))
    except VoteError as e:
        logger.info("vote_rejected", poll_id=poll_id, code=e.code)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return VoteResponse(
        created=result.created,
        votes=[VoteRow.model_validate(vote) for vote in result.votes],
    )


@router.get("/{poll_id}/results", response_model=PollResults)
@limiter.limit(RATE_LIMITS["poll_read"])
async def results_endpoint(
    request: Request,
    poll_id: int,
    identity: Identity = Depends(get_voter_identity),
    db: Session = Depends(get_db)
) -> PollResults:
    """
    Current tally of a poll.

    Raises:
        HTTPException: 403 if the poll's results visibility hides them from the caller
    """
    poll = _load_poll(db, poll_id)
    has_voted = bool(get_identity_votes(db, poll_id, identity))

    if not can_view_results(poll, has_voted):
        raise HTTPException(status_code=403, detail="Results are not yet available for viewing.")

    return get_poll_results(db, poll_id)
