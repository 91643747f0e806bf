"""Poll schemas."""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from agora.core.constants import DESCRIPTION_MAX_LENGTH
from agora.core.sanitization import sanitize_option_text, sanitize_poll_title, sanitize_text
from agora.schemas.vote import VoteRow

QuestionType = Literal["single-choice", "ranked-choice", "free-text"]
PollType = Literal["simple", "complex"]
PollStatus = Literal["active", "closed", "archived"]
ResultsVisibility = Literal["always", "after_vote", "after_deadline"]
AnswerType = Literal["person", "article", "custom"]


class PollOptionCreate(BaseModel):
    text: Optional[str] = None
    answer_type: Optional[AnswerType] = None
    image_url: Optional[str] = Field(None, max_length=500)
    link_url: Optional[str] = Field(None, max_length=500)
    display_text: Optional[str] = Field(None, max_length=500)

    @field_validator('text')
    @classmethod
    def sanitize_text_field(cls, v: Optional[str]) -> Optional[str]:
        """Sanitize option text if provided."""
        if v is not None:
            return sanitize_option_text(v)
        return v


class PollCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    question_type: QuestionType = "single-choice"
    poll_type: PollType = "simple"
    allow_unauthenticated_voting: bool = False
    allow_user_add_options: bool = False
    results_visibility: ResultsVisibility = "always"
    deadline: Optional[datetime] = None
    options: List[PollOptionCreate] = []

    @field_validator('title')
    @classmethod
    def sanitize_title_field(cls, v: str) -> str:
        """Sanitize and validate poll title."""
        return sanitize_poll_title(v)

    @field_validator('description')
    @classmethod
    def sanitize_description_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            return sanitize_text(v, max_length=DESCRIPTION_MAX_LENGTH) or None
        return v


class PollResponse(BaseModel):
    poll_id: int


class PollOptionDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: Optional[str] = None
    answer_type: Optional[str] = None
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    display_text: Optional[str] = None
    order: int


class PollDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    question_type: str
    poll_type: str
    status: str
    results_visibility: str
    allow_unauthenticated_voting: bool
    allow_user_add_options: bool
    deadline: Optional[datetime] = None
    options: List[PollOptionDetail]
    user_vote: List[VoteRow] = []


class PollStatusUpdate(BaseModel):
    status: PollStatus


class PollDeleteResponse(BaseModel):
    poll_id: int
    outcome: Literal["archived", "deleted"]
