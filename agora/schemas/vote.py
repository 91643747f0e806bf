"""Vote schemas."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from agora.core.constants import FREE_TEXT_MAX_LENGTH
from agora.core.sanitization import sanitize_free_text, validate_session_id


class VoteRequest(BaseModel):
    """
    Exactly one of option_id (single-choice), ranked_option_ids
    (ranked-choice, most preferred first) or text (free-text).
    """

    option_id: Optional[int] = Field(None, ge=1)
    ranked_option_ids: Optional[List[int]] = None
    text: Optional[str] = Field(None, max_length=FREE_TEXT_MAX_LENGTH)
    session_id: Optional[str] = Field(None, max_length=128)

    @field_validator('text')
    @classmethod
    def sanitize_text_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            return sanitize_free_text(v)
        return v

    @field_validator('session_id')
    @classmethod
    def validate_session_id_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            return validate_session_id(v) or None
        return v

    @model_validator(mode='after')
    def check_single_selection(self):
        provided = [
            value for value in (self.option_id, self.ranked_option_ids, self.text)
            if value is not None
        ]
        if len(provided) != 1:
            raise ValueError("Provide exactly one of option_id, ranked_option_ids or text")
        return self


class VoteRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    option_id: Optional[int] = None
    free_text: Optional[str] = None
    rank_position: int
    is_authenticated: bool


class VoteResponse(BaseModel):
    created: bool
    votes: List[VoteRow]
