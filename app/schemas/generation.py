"""
Generation Schemas

Request/response models for the LLM-backed endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.survey import Question


class GenerateSurveyRequest(BaseModel):
    """Natural-language description of the survey to build."""
    prompt: str = Field(..., description="What the survey should cover")
    survey_type: Optional[str] = Field(
        None, description="One of nps, sus, csat, ces, tsm; omit for a free-form survey"
    )


class ParseTextRequest(BaseModel):
    """Freeform survey text to convert without calling the model."""
    text: str = ""


class RegenerateQuestionRequest(BaseModel):
    question: Question


class SynthesisResponse(BaseModel):
    """Narrative analysis of a survey's responses."""
    survey_id: Optional[str] = None
    result: str
    response_count: int = 0


class ReportResponse(BaseModel):
    title: str
    result: str


class SurveyTypeInfo(BaseModel):
    id: str
    label: str
    description: str
    formula: str


class GatewayHealth(BaseModel):
    status: str
    model: Optional[str] = None
    base_url: Optional[str] = None
    error: Optional[str] = None


class ReportRequest(BaseModel):
    """Survey whose responses should be written up as a markdown report."""
    survey_id: str
