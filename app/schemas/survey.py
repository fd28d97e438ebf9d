"""
Survey Schemas
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Any
from enum import Enum


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    RATING = "rating"
    YES_NO = "yes_no"


class SurveyStatus(str, Enum):
    DRAFT = "draft"
    LIVE = "live"


# Question / Answer shapes (stored as JSON on the survey and response rows)

class Question(BaseModel):
    """A single survey question.

    ``type`` is kept as a plain string: stored surveys may carry types the
    aggregator does not recognise, and those are reported as "no data" rather
    than rejected.
    """
    id: str
    text: str
    type: str = QuestionType.TEXT.value
    options: Optional[list[str]] = None


class Answer(BaseModel):
    """One answer inside a submitted response."""
    question_id: str
    response: str

    @field_validator("response", mode="before")
    @classmethod
    def coerce_response(cls, v: Any) -> str:
        # Rating answers arrive as numbers from some clients
        if v is None:
            return ""
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, (int, float)):
            return str(int(v)) if float(v).is_integer() else str(v)
        return str(v)


# Survey Schemas

class SurveyDraft(BaseModel):
    """A parsed or generated survey that has not been saved yet."""
    title: str
    description: str
    questions: list[Question] = []


class SurveyCreate(SurveyDraft):
    """Schema for saving a survey."""
    user_id: Optional[str] = None


class SurveyUpdate(BaseModel):
    """Schema for editing a survey. ``questions`` replaces the stored array."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    questions: Optional[list[Question]] = None


class SurveyOut(SurveyDraft):
    """Stored survey."""
    id: str
    user_id: str
    status: SurveyStatus = SurveyStatus.DRAFT
    created_at: Optional[datetime] = None
    share_url: Optional[str] = None

    class Config:
        from_attributes = True


class SurveySummary(BaseModel):
    """Survey list entry."""
    id: str
    title: str
    status: SurveyStatus = SurveyStatus.DRAFT
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveyListResponse(BaseModel):
    items: list[SurveySummary]
    total: int


# Responses

class ResponseSubmission(BaseModel):
    """Schema for a respondent submitting a survey."""
    answers: list[Answer]


class SurveyResponseOut(BaseModel):
    id: str
    survey_id: Optional[str] = None
    answers: list[Answer] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResponseListResponse(BaseModel):
    items: list[SurveyResponseOut]
    total: int


class ResolvedAnswer(BaseModel):
    """Answer joined to the question it refers to."""
    question: str
    response: str
    type: str = QuestionType.TEXT.value


class ResponseWithSurvey(BaseModel):
    """Entry of the cross-survey responses listing."""
    id: str
    survey_id: Optional[str] = None
    survey_title: Optional[str] = None
    created_at: Optional[datetime] = None
    answers: list[ResolvedAnswer] = []


class ResponseWithSurveyList(BaseModel):
    items: list[ResponseWithSurvey]
    total: int


# Results

class ChartPoint(BaseModel):
    name: str
    value: int


class QuestionResult(BaseModel):
    """Aggregated answers for one question."""
    question_id: str
    text: str
    type: str
    data: list[ChartPoint] = []
    responses: Optional[list[str]] = None
    scale: Optional[list[int]] = None


class ScoreCard(BaseModel):
    """Standardised score for a recognised survey type; ``score`` is None when no answer qualifies."""
    survey_type: str
    label: str
    formula: str
    score: Optional[float] = None
    is_percentage: bool = False


class SurveyResults(BaseModel):
    survey_id: str
    title: str
    total_responses: int
    questions: list[QuestionResult] = []
    score: Optional[ScoreCard] = None


# Creation flow

class FlowStep(BaseModel):
    id: str
    label: str
    can_access: bool
    completed: bool = False


class CreationFlowOut(BaseModel):
    active_tab: str
    status: SurveyStatus
    steps: list[FlowStep]
