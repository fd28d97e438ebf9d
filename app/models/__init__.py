from app.models.survey import Survey, SurveyResponse

__all__ = [
    "Survey",
    "SurveyResponse",
]
