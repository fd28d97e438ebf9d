"""Tests for survey persistence, including the delete fallback."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import NotFoundError, PersistenceError
from app.models.survey import Survey, SurveyResponse
from app.schemas.survey import Answer, Question, SurveyDraft, SurveyUpdate
from app.services import survey_store


def make_draft(title="Team Pulse"):
    return SurveyDraft(
        title=title,
        description="Monthly check-in",
        questions=[
            Question(id="q1", text="How would you rate this month?", type="rating"),
            Question(id="q2", text="Which team are you on?", type="multiple_choice", options=["Eng", "Ops"]),
        ],
    )


def make_answers(rating="4", team="Eng"):
    return [Answer(question_id="q1", response=rating), Answer(question_id="q2", response=team)]


async def remaining_responses(db, survey_id):
    result = await db.execute(select(SurveyResponse).where(SurveyResponse.survey_id == survey_id))
    return list(result.scalars().all())


class TestSurveys:
    @pytest.mark.asyncio
    async def test_create_defaults(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft())

        assert survey.id
        assert survey.status == "draft"
        assert survey.user_id == "anonymous"
        assert survey.created_at is not None
        # options only stored where present
        assert survey.questions[0] == {"id": "q1", "text": "How would you rate this month?", "type": "rating"}
        assert survey.questions[1]["options"] == ["Eng", "Ops"]

    @pytest.mark.asyncio
    async def test_create_with_owner(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft(), user_id="user-7")
        assert survey.user_id == "user-7"

    @pytest.mark.asyncio
    async def test_get_missing(self, test_db):
        with pytest.raises(NotFoundError):
            await survey_store.get_survey(test_db, "does-not-exist")

    @pytest.mark.asyncio
    async def test_list_newest_first(self, test_db):
        first = await survey_store.create_survey(test_db, make_draft("First"))
        second = await survey_store.create_survey(test_db, make_draft("Second"))

        surveys = await survey_store.list_surveys(test_db)
        assert [s.id for s in surveys] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_replaces_questions(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft())
        updated = await survey_store.update_survey(
            test_db,
            survey.id,
            SurveyUpdate(title="Renamed", questions=[Question(id="q1", text="Why?")]),
        )

        assert updated.title == "Renamed"
        assert updated.description == "Monthly check-in"
        assert updated.questions == [{"id": "q1", "text": "Why?", "type": "text"}]

    @pytest.mark.asyncio
    async def test_set_live_and_toggle(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft())

        assert (await survey_store.set_live(test_db, survey.id)).status == "live"
        assert (await survey_store.set_live(test_db, survey.id)).status == "live"
        assert (await survey_store.toggle_status(test_db, survey.id)).status == "draft"
        assert (await survey_store.toggle_status(test_db, survey.id)).status == "live"

    @pytest.mark.asyncio
    async def test_duplicate(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft(), user_id="user-7")
        await survey_store.set_live(test_db, survey.id)

        copy = await survey_store.duplicate_survey(test_db, survey.id)

        assert copy.id != survey.id
        assert copy.title == "Team Pulse (Copy)"
        assert copy.status == "draft"
        assert copy.user_id == "user-7"
        assert copy.questions == survey.questions


class TestResponses:
    @pytest.mark.asyncio
    async def test_submit_and_list(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft())
        first = await survey_store.submit_response(test_db, survey.id, make_answers("5"))
        second = await survey_store.submit_response(test_db, survey.id, make_answers("2", "Ops"))

        responses = await survey_store.list_responses(test_db, survey.id)
        assert [r.id for r in responses] == [second.id, first.id]
        assert responses[1].answers[0] == {"question_id": "q1", "response": "5"}
        assert await survey_store.count_responses(test_db, survey.id) == 2

    @pytest.mark.asyncio
    async def test_out_of_option_answers_accepted(self, test_db):
        survey = await survey_store.create_survey(test_db, make_draft())
        response = await survey_store.submit_response(test_db, survey.id, make_answers(team="Marketing"))
        assert response.answers[1]["response"] == "Marketing"

    @pytest.mark.asyncio
    async def test_submit_to_missing_survey(self, test_db):
        with pytest.raises(NotFoundError):
            await survey_store.submit_response(test_db, "nope", make_answers())

    @pytest.mark.asyncio
    async def test_list_all_spans_surveys(self, test_db):
        one = await survey_store.create_survey(test_db, make_draft("One"))
        two = await survey_store.create_survey(test_db, make_draft("Two"))
        await survey_store.submit_response(test_db, one.id, make_answers())
        await survey_store.submit_response(test_db, two.id, make_answers())

        assert len(await survey_store.list_all_responses(test_db)) == 2


class TestDeleteSurvey:
    """Deleting leaves no response pointing at the survey, and the survey gone."""

    @pytest.mark.asyncio
    async def test_delete_removes_responses(self, fk_db):
        survey = await survey_store.create_survey(fk_db, make_draft())
        other = await survey_store.create_survey(fk_db, make_draft("Other"))
        survey_id, other_id = survey.id, other.id
        await survey_store.submit_response(fk_db, survey_id, make_answers())
        await survey_store.submit_response(fk_db, survey_id, make_answers())
        await survey_store.submit_response(fk_db, other_id, make_answers())

        await survey_store.delete_survey(fk_db, survey_id)

        assert await remaining_responses(fk_db, survey_id) == []
        assert [s.id for s in await survey_store.list_surveys(fk_db)] == [other_id]
        assert await survey_store.count_responses(fk_db, other_id) == 1

    @pytest.mark.asyncio
    async def test_foreign_key_fallback(self, fk_db, monkeypatch):
        survey = await survey_store.create_survey(fk_db, make_draft())
        survey_id = survey.id
        await survey_store.submit_response(fk_db, survey_id, make_answers())
        await survey_store.submit_response(fk_db, survey_id, make_answers())

        async def failing_bulk_delete(db, sid):
            raise SQLAlchemyError("bulk delete unavailable")

        monkeypatch.setattr(survey_store, "_delete_responses_for", failing_bulk_delete)

        await survey_store.delete_survey(fk_db, survey_id)

        assert await remaining_responses(fk_db, survey_id) == []
        assert await survey_store.list_surveys(fk_db) == []

        # Detached rather than deleted
        result = await fk_db.execute(select(SurveyResponse).where(SurveyResponse.survey_id.is_(None)))
        assert len(result.scalars().all()) == 2

    @pytest.mark.asyncio
    async def test_non_foreign_key_failure_surfaces(self, fk_db, monkeypatch):
        survey = await survey_store.create_survey(fk_db, make_draft())
        survey_id = survey.id

        async def failing_delete(db, sid):
            raise SQLAlchemyError("database gone")

        monkeypatch.setattr(survey_store, "_delete_survey_row", failing_delete)

        with pytest.raises(PersistenceError) as exc_info:
            await survey_store.delete_survey(fk_db, survey_id)
        assert exc_info.value.status_code == 503

        result = await fk_db.execute(select(Survey).where(Survey.id == survey_id))
        assert result.scalar_one_or_none() is not None

    @pytest.mark.asyncio
    async def test_delete_missing(self, fk_db):
        with pytest.raises(NotFoundError):
            await survey_store.delete_survey(fk_db, "nope")
