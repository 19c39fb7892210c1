from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime

from studysheet.models.attempt import AttemptOutcome

class UserCreate(BaseModel):
    """Schema for creating a user"""
    name: str = Field(min_length=1)

class ProblemCreate(BaseModel):
    """Schema for adding a problem to the sheet"""
    title: str = Field(min_length=1)
    question_number: Optional[int] = None
    difficulty: Optional[str] = None
    topic_category: Optional[str] = None
    companies: Optional[str] = None
    link: Optional[str] = None
    link_gfg: Optional[str] = None
    frequency_score: Optional[float] = None
    comment: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

class ProblemUpdate(BaseModel):
    """Editable sheet columns. Schedule fields are owned by the attempt logger."""
    title: Optional[str] = Field(default=None, min_length=1)
    question_number: Optional[int] = None
    difficulty: Optional[str] = None
    topic_category: Optional[str] = None
    companies: Optional[str] = None
    link: Optional[str] = None
    link_gfg: Optional[str] = None
    frequency_score: Optional[float] = None
    comment: Optional[str] = None

class ProblemResponse(ProblemCreate):
    """Schema for problem response"""
    id: int
    user_id: int
    is_completed: bool
    completion_date: Optional[date] = None
    srs_bucket: int
    next_review_at: Optional[datetime] = None
    difficulty_personal: Optional[int] = None

    class Config:
        from_attributes = True

class AttemptCreate(BaseModel):
    """Schema for logging a practice attempt"""
    problem_id: int
    outcome: AttemptOutcome
    confidence_rating: int = Field(ge=1, le=5, strict=True)
    time_taken_seconds: Optional[int] = Field(default=None, ge=0)
    notes_markdown: Optional[str] = None
    code_snippet: Optional[str] = None

    @field_validator("outcome", mode="before")
    @classmethod
    def normalize_outcome(cls, value):
        # Accept "solved", "hint used", "HintUsed" and the like
        if isinstance(value, str) and not isinstance(value, AttemptOutcome):
            key = value.strip().replace(" ", "").replace("_", "").replace("-", "").lower()
            for outcome in AttemptOutcome:
                if outcome.value.replace("_", "").lower() == key:
                    return outcome
        return value

class AttemptResult(BaseModel):
    """Outcome of a logged attempt: the problem's new schedule"""
    attempt_id: int
    next_bucket: int
    next_review_at: datetime
    interval_days: int
    personal_difficulty: int
