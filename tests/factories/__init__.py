"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .survey import (
    QuestionFactory,
    RatingQuestionFactory,
    ChoiceQuestionFactory,
    SurveyFactory,
    ResponseFactory,
)

__all__ = [
    "QuestionFactory",
    "RatingQuestionFactory",
    "ChoiceQuestionFactory",
    "SurveyFactory",
    "ResponseFactory",
]
