from app.schemas.survey import (
    Question,
    Answer,
    SurveyDraft,
    SurveyCreate,
    SurveyUpdate,
    SurveyOut,
    SurveyListResponse,
    ResponseSubmission,
    SurveyResponseOut,
    SurveyResults,
)
from app.schemas.generation import (
    GenerateSurveyRequest,
    ParseTextRequest,
    RegenerateQuestionRequest,
    SynthesisResponse,
)

__all__ = [
    "Question",
    "Answer",
    "SurveyDraft",
    "SurveyCreate",
    "SurveyUpdate",
    "SurveyOut",
    "SurveyListResponse",
    "ResponseSubmission",
    "SurveyResponseOut",
    "SurveyResults",
    "GenerateSurveyRequest",
    "ParseTextRequest",
    "RegenerateQuestionRequest",
    "SynthesisResponse",
]
