"""
Cross-survey Responses Endpoints

- GET  /responses             - Every response with its survey title and question text
- POST /responses/synthesize  - Markdown report for one survey's responses (LLM)
"""

from fastapi import APIRouter
import logging

from app.api.deps import DbSession, Gateway
from app.exceptions import BusinessRuleError
from app.schemas.survey import (
    Question, SurveyResponseOut, ResolvedAnswer, ResponseWithSurvey, ResponseWithSurveyList,
)
from app.schemas.generation import ReportRequest, ReportResponse
from app.services import survey_store
from app.services.survey_generation import build_synthesis_payload, synthesize_markdown_report

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=ResponseWithSurveyList)
async def list_all_responses(db: DbSession):
    """All responses, newest first, with answers resolved to question text."""
    surveys = {s.id: s for s in await survey_store.list_surveys(db)}
    rows = await survey_store.list_all_responses(db)

    items = []
    for row in rows:
        response = SurveyResponseOut.model_validate(row)
        survey = surveys.get(response.survey_id)
        questions = [Question.model_validate(q) for q in survey.questions or []] if survey else []
        resolved = build_synthesis_payload(questions, [response])[0]
        items.append(ResponseWithSurvey(
            id=response.id,
            survey_id=response.survey_id,
            survey_title=survey.title if survey else None,
            created_at=response.created_at,
            answers=[ResolvedAnswer(**answer) for answer in resolved["answers"]],
        ))

    return ResponseWithSurveyList(items=items, total=len(items))


@router.post("/synthesize", response_model=ReportResponse)
async def synthesize_report(data: ReportRequest, db: DbSession, gateway: Gateway):
    """Comprehensive markdown synthesis of one survey's responses."""
    survey = await survey_store.get_survey(db, data.survey_id)
    responses = [SurveyResponseOut.model_validate(r) for r in await survey_store.list_responses(db, survey.id)]
    if not responses:
        raise BusinessRuleError("No responses collected yet")

    questions = [Question.model_validate(q) for q in survey.questions or []]
    result = await synthesize_markdown_report(gateway, survey.title, questions, responses)
    return ReportResponse(title=survey.title, result=result)
