from .locations import create_location, get_location, refresh_location_wikipedia_data
from .poll import add_poll_option, create_poll, delete_poll, get_poll, list_polls, set_poll_status
from .results import can_view_results, compute_results, get_poll_results
from .vote import (
    AnonymousIdentity,
    AuthenticatedIdentity,
    FreeText,
    RankedChoice,
    SingleChoice,
    VoteResult,
    get_identity_votes,
    submit_vote,
)
from .wikipedia import extract_population, fetch_wikipedia_data

__all__ = [
    # polls
    "add_poll_option",
    "create_poll",
    "delete_poll",
    "get_poll",
    "list_polls",
    "set_poll_status",
    # votes
    "AnonymousIdentity",
    "AuthenticatedIdentity",
    "FreeText",
    "RankedChoice",
    "SingleChoice",
    "VoteResult",
    "get_identity_votes",
    "submit_vote",
    # results
    "can_view_results",
    "compute_results",
    "get_poll_results",
    # locations
    "create_location",
    "get_location",
    "refresh_location_wikipedia_data",
    "extract_population",
    "fetch_wikipedia_data",
]
