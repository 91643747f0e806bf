"""Pydantic schemas for request/response validation."""
from agora.schemas.poll import (
    PollCreate,
    PollOptionCreate,
    PollResponse,
    PollDetail,
    PollOptionDetail,
    PollStatusUpdate,
    PollDeleteResponse,
)
from agora.schemas.vote import VoteRequest, VoteRow, VoteResponse
from agora.schemas.results import OptionResult, FreeTextResponse, PollResults
from agora.schemas.location import LocationWikipediaData, LocationRefreshResponse
from agora.schemas.common import ErrorResponse, ErrorDetail

__all__ = [
    "PollCreate",
    "PollOptionCreate",
    "PollResponse",
    "PollDetail",
    "PollOptionDetail",
    "PollStatusUpdate",
    "PollDeleteResponse",
    "VoteRequest",
    "VoteRow",
    "VoteResponse",
    "OptionResult",
    "FreeTextResponse",
    "PollResults",
    "LocationWikipediaData",
    "LocationRefreshResponse",
    "ErrorResponse",
    "ErrorDetail",
]
