"""
Generation API Endpoints

- POST /generate/survey               - Natural-language prompt -> survey draft (LLM)
- POST /generate/parse-text           - Freeform text -> survey draft (no LLM)
- POST /generate/regenerate-question  - Re-word one question (LLM)
- GET  /generate/survey-types         - Standardised survey types and formulas
- GET  /generate/health               - Generation service status
"""

from fastapi import APIRouter
import logging

from app.api.deps import Gateway
from app.exceptions import ValidationError
from app.schemas.survey import SurveyDraft, Question
from app.schemas.generation import (
    GenerateSurveyRequest, ParseTextRequest, RegenerateQuestionRequest,
    SurveyTypeInfo, GatewayHealth,
)
from app.services.survey_generation import generate_survey, regenerate_question
from app.services.survey_parser import convert_text_to_survey
from app.services.survey_scoring import SURVEY_TYPES, get_survey_type

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/survey", response_model=SurveyDraft)
async def generate(data: GenerateSurveyRequest, gateway: Gateway):
    """Generate a survey from a description."""
    if data.survey_type and not get_survey_type(data.survey_type):
        raise ValidationError(f"Unknown survey type: {data.survey_type}")
    return await generate_survey(gateway, data.prompt, data.survey_type)


@router.post("/parse-text", response_model=SurveyDraft)
async def parse_text(data: ParseTextRequest):
    """Build a survey preview from freeform text."""
    return convert_text_to_survey(data.text)


@router.post("/regenerate-question", response_model=Question)
async def regenerate(data: RegenerateQuestionRequest, gateway: Gateway):
    return await regenerate_question(gateway, data.question)


@router.get("/survey-types", response_model=list[SurveyTypeInfo])
async def list_survey_types():
    return [
        SurveyTypeInfo(id=t.id, label=t.label, description=t.description, formula=t.formula)
        for t in SURVEY_TYPES.values()
    ]


@router.get("/health", response_model=GatewayHealth)
async def generation_health(gateway: Gateway):
    return GatewayHealth(**await gateway.health_check())
