"""
Survey persistence operations.

Every function takes the session it should use; nothing here holds a
module-level database handle. Each operation commits its own work, so a
failure aborts only the user action that triggered it. There is no
transaction spanning the two tables: deleting a survey and its responses is
a sequence of independent statements with a best-effort fallback.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import NotFoundError, PersistenceError
from app.models.survey import Survey, SurveyResponse
from app.schemas.survey import (
    Answer, Question, SurveyDraft, SurveyUpdate, SurveyStatus,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _dump_questions(questions: Sequence[Question]) -> list[dict]:
    return [q.model_dump(exclude_none=True) for q in questions]


# Surveys

async def create_survey(db: AsyncSession, draft: SurveyDraft, user_id: Optional[str] = None) -> Survey:
    """Save a parsed survey as a new draft."""
    survey = Survey(
        id=str(uuid.uuid4()),
        title=draft.title,
        description=draft.description,
        questions=_dump_questions(draft.questions),
        created_at=_now(),
        user_id=user_id or settings.DEFAULT_OWNER_ID,
        status=SurveyStatus.DRAFT.value,
    )
    db.add(survey)
    await db.commit()
    await db.refresh(survey)
    logger.info(f"Saved survey {survey.id} with {len(draft.questions)} questions")
    return survey


async def get_survey(db: AsyncSession, survey_id: str) -> Survey:
    result = await db.execute(select(Survey).where(Survey.id == survey_id))
    survey = result.scalar_one_or_none()
    if not survey:
        raise NotFoundError("Survey", survey_id)
    return survey


async def list_surveys(db: AsyncSession) -> list[Survey]:
    """All surveys, newest first."""
    result = await db.execute(select(Survey).order_by(Survey.created_at.desc()))
    return list(result.scalars().all())


async def update_survey(db: AsyncSession, survey_id: str, data: SurveyUpdate) -> Survey:
    """Edit title/description; a new questions list replaces the old one."""
    survey = await get_survey(db, survey_id)

    update_data = data.model_dump(exclude_unset=True, exclude={"questions"})
    for field, value in update_data.items():
        if value is not None:
            setattr(survey, field, value)
    if data.questions is not None:
        survey.questions = _dump_questions(data.questions)

    await db.commit()
    await db.refresh(survey)
    return survey


async def set_status(db: AsyncSession, survey_id: str, status: SurveyStatus) -> Survey:
    survey = await get_survey(db, survey_id)
    survey.status = status.value
    await db.commit()
    await db.refresh(survey)
    logger.info(f"Survey {survey_id} status set to {status.value}")
    return survey


async def set_live(db: AsyncSession, survey_id: str) -> Survey:
    """Publish a survey. Already-live surveys are left as they are."""
    return await set_status(db, survey_id, SurveyStatus.LIVE)


async def toggle_status(db: AsyncSession, survey_id: str) -> Survey:
    """Flip draft <-> live."""
    survey = await get_survey(db, survey_id)
    new_status = SurveyStatus.DRAFT if survey.status == SurveyStatus.LIVE.value else SurveyStatus.LIVE
    return await set_status(db, survey_id, new_status)


async def duplicate_survey(db: AsyncSession, survey_id: str) -> Survey:
    """Copy a survey's content into a new draft titled "<title> (Copy)"."""
    original = await get_survey(db, survey_id)
    copy = Survey(
        id=str(uuid.uuid4()),
        title=f"{original.title} (Copy)",
        description=original.description,
        questions=list(original.questions or []),
        created_at=_now(),
        user_id=original.user_id,
        status=SurveyStatus.DRAFT.value,
    )
    db.add(copy)
    await db.commit()
    await db.refresh(copy)
    return copy


# Responses

async def submit_response(db: AsyncSession, survey_id: str, answers: Sequence[Answer]) -> SurveyResponse:
    """Store one respondent's answers. Answers are not checked against the survey's options."""
    await get_survey(db, survey_id)
    response = SurveyResponse(
        id=str(uuid.uuid4()),
        survey_id=survey_id,
        answers=[a.model_dump() for a in answers],
        created_at=_now(),
    )
    db.add(response)
    await db.commit()
    await db.refresh(response)
    return response


async def list_responses(db: AsyncSession, survey_id: str) -> list[SurveyResponse]:
    """A survey's responses, newest first."""
    result = await db.execute(
        select(SurveyResponse)
        .where(SurveyResponse.survey_id == survey_id)
        .order_by(SurveyResponse.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all_responses(db: AsyncSession) -> list[SurveyResponse]:
    result = await db.execute(select(SurveyResponse).order_by(SurveyResponse.created_at.desc()))
    return list(result.scalars().all())


async def count_responses(db: AsyncSession, survey_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(SurveyResponse).where(SurveyResponse.survey_id == survey_id)
    )
    return result.scalar() or 0


# Deletion

async def _delete_responses_for(db: AsyncSession, survey_id: str) -> None:
    await db.execute(delete(SurveyResponse).where(SurveyResponse.survey_id == survey_id))
    await db.commit()


async def _delete_survey_row(db: AsyncSession, survey_id: str) -> None:
    await db.execute(delete(Survey).where(Survey.id == survey_id))
    await db.commit()


async def _release_remaining_responses(db: AsyncSession, survey_id: str) -> int:
    """Detach or delete, one by one, responses still pointing at the survey.

    Returns how many were found. Individual failures are logged and skipped.
    """
    result = await db.execute(select(SurveyResponse.id).where(SurveyResponse.survey_id == survey_id))
    remaining = list(result.scalars().all())
    logger.info(f"Found {len(remaining)} remaining responses for survey {survey_id}")

    for response_id in remaining:
        try:
            await db.execute(
                update(SurveyResponse).where(SurveyResponse.id == response_id).values(survey_id=None)
            )
            await db.commit()
            continue
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error updating response reference {response_id}: {e}")

        try:
            await db.execute(delete(SurveyResponse).where(SurveyResponse.id == response_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to delete individual response {response_id}: {e}")

    return len(remaining)


async def delete_survey(db: AsyncSession, survey_id: str) -> None:
    """Delete a survey and its responses.

    1. Delete the survey's responses; a failure here is logged and ignored.
    2. Delete the survey.
    3. If that hits a foreign-key constraint, detach (or delete) each
       remaining response individually and retry the survey delete once.

    Not atomic: a failure part-way leaves whatever already succeeded.
    """
    await get_survey(db, survey_id)
    logger.info(f"Starting delete process for survey {survey_id}")

    try:
        await _delete_responses_for(db, survey_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting responses for survey {survey_id}: {e}")

    try:
        await _delete_survey_row(db, survey_id)
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Error deleting survey {survey_id}: {e}")
        if "foreign key" not in str(e).lower():
            raise PersistenceError(f"Cannot delete survey: {e.orig}")

        logger.info("Foreign key constraint issue detected, cleaning up responses individually")
        if not await _release_remaining_responses(db, survey_id):
            # Something other than responses references the survey
            raise PersistenceError(f"Cannot delete survey: {e.orig}")

        try:
            await _delete_survey_row(db, survey_id)
        except SQLAlchemyError as retry_error:
            await db.rollback()
            logger.error(f"Failed to delete survey {survey_id} after cleanup: {retry_error}")
            raise PersistenceError(f"Failed to delete survey: {retry_error}")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting survey {survey_id}: {e}")
        raise PersistenceError(f"Failed to delete survey: {e}")

    logger.info(f"Successfully deleted survey {survey_id}")
