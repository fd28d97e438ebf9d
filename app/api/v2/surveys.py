"""
Survey API Endpoints

Survey CRUD, publishing, response collection, results and synthesis.

- GET    /surveys                     - List saved surveys (newest first)
- POST   /surveys                     - Save a parsed survey as a draft
- GET    /surveys/{id}                - Get a survey with its questions
- PATCH  /surveys/{id}                - Edit (questions replaced wholesale)
- DELETE /surveys/{id}                - Delete survey and its responses
- POST   /surveys/{id}/live           - Publish (draft -> live)
- POST   /surveys/{id}/toggle-status  - Flip draft <-> live
- POST   /surveys/{id}/duplicate      - Copy into a new draft
- GET    /surveys/{id}/responses      - List responses
- POST   /surveys/{id}/responses      - Submit a response
- GET    /surveys/{id}/results        - Aggregated answers and score card
- POST   /surveys/{id}/synthesize     - LLM narrative analysis
- GET    /surveys/{id}/flow           - Creation tabs available for this survey
"""

from fastapi import APIRouter, status, Query
from typing import Optional
import logging

from app.api.deps import DbSession, Gateway, OwnerId
from app.config import settings
from app.exceptions import BusinessRuleError
from app.models.survey import Survey, SurveyResponse
from app.schemas.survey import (
    SurveyCreate, SurveyUpdate, SurveyOut, SurveySummary, SurveyListResponse, SurveyDraft,
    ResponseSubmission, SurveyResponseOut, ResponseListResponse, SurveyResults, CreationFlowOut,
)
from app.schemas.generation import SynthesisResponse
from app.services import survey_store
from app.services.creation_flow import CreationFlow
from app.services.survey_generation import synthesize_results
from app.services.survey_scoring import aggregate_responses, build_score_card, detect_survey_type

logger = logging.getLogger(__name__)
router = APIRouter()


def share_url(survey_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/respond/{survey_id}"


def to_survey_out(survey: Survey) -> SurveyOut:
    out = SurveyOut.model_validate(survey)
    out.share_url = share_url(survey.id)
    return out


def to_draft(survey: Survey) -> SurveyDraft:
    return SurveyDraft(title=survey.title, description=survey.description, questions=survey.questions or [])


def to_response_outs(rows: list[SurveyResponse]) -> list[SurveyResponseOut]:
    return [SurveyResponseOut.model_validate(row) for row in rows]


# Survey CRUD

@router.get("/", response_model=SurveyListResponse)
async def list_surveys(db: DbSession):
    """List saved surveys."""
    surveys = await survey_store.list_surveys(db)
    return SurveyListResponse(
        items=[SurveySummary.model_validate(s) for s in surveys],
        total=len(surveys),
    )


@router.post("/", response_model=SurveyOut, status_code=status.HTTP_201_CREATED)
async def create_survey(data: SurveyCreate, db: DbSession, owner_id: OwnerId):
    """Save a survey as a draft."""
    draft = SurveyDraft(title=data.title, description=data.description, questions=data.questions)
    survey = await survey_store.create_survey(db, draft, user_id=data.user_id or owner_id)
    return to_survey_out(survey)


@router.get("/{survey_id}", response_model=SurveyOut)
async def get_survey(survey_id: str, db: DbSession):
    """Get a survey with its questions."""
    return to_survey_out(await survey_store.get_survey(db, survey_id))


@router.patch("/{survey_id}", response_model=SurveyOut)
async def update_survey(survey_id: str, data: SurveyUpdate, db: DbSession):
    """Edit a survey."""
    return to_survey_out(await survey_store.update_survey(db, survey_id, data))


@router.delete("/{survey_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_survey(survey_id: str, db: DbSession):
    """Delete a survey together with its responses."""
    await survey_store.delete_survey(db, survey_id)


@router.post("/{survey_id}/live", response_model=SurveyOut)
async def set_survey_live(survey_id: str, db: DbSession):
    """Publish a survey so it can collect responses."""
    return to_survey_out(await survey_store.set_live(db, survey_id))


@router.post("/{survey_id}/toggle-status", response_model=SurveyOut)
async def toggle_survey_status(survey_id: str, db: DbSession):
    return to_survey_out(await survey_store.toggle_status(db, survey_id))


@router.post("/{survey_id}/duplicate", response_model=SurveyOut, status_code=status.HTTP_201_CREATED)
async def duplicate_survey(survey_id: str, db: DbSession):
    """Copy a survey into a new draft."""
    return to_survey_out(await survey_store.duplicate_survey(db, survey_id))


# Responses

@router.get("/{survey_id}/responses", response_model=ResponseListResponse)
async def list_survey_responses(survey_id: str, db: DbSession):
    """List a survey's responses, newest first."""
    await survey_store.get_survey(db, survey_id)
    rows = await survey_store.list_responses(db, survey_id)
    return ResponseListResponse(items=to_response_outs(rows), total=len(rows))


@router.post("/{survey_id}/responses", response_model=SurveyResponseOut, status_code=status.HTTP_201_CREATED)
async def submit_survey_response(survey_id: str, data: ResponseSubmission, db: DbSession):
    """Submit one respondent's answers."""
    response = await survey_store.submit_response(db, survey_id, data.answers)
    return SurveyResponseOut.model_validate(response)


# Results

@router.get("/{survey_id}/results", response_model=SurveyResults)
async def get_survey_results(
    survey_id: str,
    db: DbSession,
    survey_type: Optional[str] = Query(None, description="nps, sus, csat, ces or tsm; detected when omitted"),
):
    """Per-question aggregates and, for standardised surveys, the score."""
    survey = await survey_store.get_survey(db, survey_id)
    draft = to_draft(survey)
    responses = to_response_outs(await survey_store.list_responses(db, survey_id))

    aggregated = aggregate_responses(responses, draft.questions)
    type_id = survey_type or detect_survey_type(draft.questions)

    return SurveyResults(
        survey_id=survey.id,
        title=survey.title,
        total_responses=len(responses),
        questions=[aggregated[q.id] for q in draft.questions if q.id in aggregated],
        score=build_score_card(type_id, responses) if type_id else None,
    )


@router.post("/{survey_id}/synthesize", response_model=SynthesisResponse)
async def synthesize_survey_results(survey_id: str, db: DbSession, gateway: Gateway):
    """Ask the model for a plain-text analysis of the responses."""
    survey = await survey_store.get_survey(db, survey_id)
    draft = to_draft(survey)
    responses = to_response_outs(await survey_store.list_responses(db, survey_id))
    if not responses:
        raise BusinessRuleError("No responses collected yet")

    result = await synthesize_results(gateway, draft.title, draft.questions, responses)
    return SynthesisResponse(survey_id=survey.id, result=result, response_count=len(responses))


@router.get("/{survey_id}/flow", response_model=CreationFlowOut)
async def get_creation_flow(survey_id: str, db: DbSession):
    """Which creation tabs a stored survey can open."""
    survey = await survey_store.get_survey(db, survey_id)
    flow = CreationFlow()
    flow.loaded(survey.id, to_draft(survey), survey.status)
    return flow.to_schema()
