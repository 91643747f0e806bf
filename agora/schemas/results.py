"""Poll results schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class OptionResult(BaseModel):
    option_id: int
    label: str
    text: Optional[str] = None
    display_text: Optional[str] = None
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    order: int
    vote_count: int
    authenticated_votes: int
    unauthenticated_votes: int
    percentage: float


class FreeTextResponse(BaseModel):
    text: str
    is_authenticated: bool
    submitted_at: Optional[datetime] = None


class PollResults(BaseModel):
    poll_id: int
    question_type: str
    total_votes: int
    authenticated_vote_count: int
    unauthenticated_vote_count: int
    options: List[OptionResult] = []
    responses: List[FreeTextResponse] = []
