# Services module
from app.services.survey_parser import convert_text_to_survey
from app.services.survey_scoring import aggregate_responses, score_survey, detect_survey_type
from app.services.creation_flow import CreationFlow

__all__ = [
    "convert_text_to_survey",
    "aggregate_responses",
    "score_survey",
    "detect_survey_type",
    "CreationFlow",
]
