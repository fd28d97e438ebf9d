"""Tests for the LLM-backed generation and synthesis workflows."""

import json
from datetime import datetime

import pytest

from app.exceptions import GenerationParseError, ValidationError, ExternalServiceError
from app.schemas.survey import Question, SurveyResponseOut
from app.services.survey_generation import (
    strip_code_fence,
    coerce_survey_payload,
    parse_survey_content,
    generate_survey,
    regenerate_question,
    build_synthesis_payload,
    clean_synthesis_text,
    synthesize_results,
    synthesize_markdown_report,
    SurveyPayloadError,
    UNKNOWN_QUESTION,
)

VALID_SURVEY = {
    "title": "Checkout Feedback",
    "description": "How did checkout go?",
    "questions": [
        {"id": "q1", "text": "How would you rate checkout?", "type": "rating"},
        {"id": "q2", "text": "Which payment method?", "type": "multiple_choice", "options": ["Card", "PayPal"]},
    ],
}


class TestCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


class TestCoercion:
    """Validate-then-coerce of the model's JSON."""

    def test_valid_payload(self):
        draft = coerce_survey_payload(VALID_SURVEY)
        assert draft.title == "Checkout Feedback"
        assert [q.id for q in draft.questions] == ["q1", "q2"]
        assert draft.questions[1].options == ["Card", "PayPal"]

    @pytest.mark.parametrize("missing", ["title", "description"])
    def test_missing_required_field_rejected(self, missing):
        payload = {k: v for k, v in VALID_SURVEY.items() if k != missing}
        with pytest.raises(SurveyPayloadError):
            coerce_survey_payload(payload)

    def test_questions_must_be_array(self):
        with pytest.raises(SurveyPayloadError):
            coerce_survey_payload({**VALID_SURVEY, "questions": {"q1": "Why?"}})

    def test_not_an_object(self):
        with pytest.raises(SurveyPayloadError):
            coerce_survey_payload(["not", "a", "survey"])

    def test_question_without_text_rejected(self):
        with pytest.raises(SurveyPayloadError):
            coerce_survey_payload({**VALID_SURVEY, "questions": [{"id": "q1", "type": "text"}]})

    def test_defaults_for_id_and_type(self):
        draft = coerce_survey_payload({**VALID_SURVEY, "questions": [{"text": "A"}, {"text": "B"}]})
        assert [(q.id, q.type) for q in draft.questions] == [("q1", "text"), ("q2", "text")]

    def test_options_dropped_for_non_choice(self):
        payload = {**VALID_SURVEY, "questions": [{"id": "q1", "text": "Rate it", "type": "rating", "options": ["1"]}]}
        assert coerce_survey_payload(payload).questions[0].options is None

    def test_choice_without_options_gets_empty_list(self):
        payload = {**VALID_SURVEY, "questions": [{"id": "q1", "text": "Pick", "type": "multiple_choice"}]}
        assert coerce_survey_payload(payload).questions[0].options == []


class TestParseContent:
    def test_fenced_json(self):
        draft = parse_survey_content("```json\n" + json.dumps(VALID_SURVEY) + "\n```")
        assert draft.title == "Checkout Feedback"

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(GenerationParseError) as exc_info:
            parse_survey_content("Sure! Here is your survey: ...")
        assert exc_info.value.status_code == 502
        assert exc_info.value.raw_content == "Sure! Here is your survey: ..."

    def test_missing_field_raises_parse_error(self):
        with pytest.raises(GenerationParseError):
            parse_survey_content(json.dumps({"title": "T", "questions": []}))


class TestGenerateSurvey:
    @pytest.mark.asyncio
    async def test_generates_draft(self, fake_gateway):
        fake_gateway.contents = [json.dumps(VALID_SURVEY)]
        draft = await generate_survey(fake_gateway, "A survey about checkout", "csat")

        assert draft.title == "Checkout Feedback"
        messages = fake_gateway.calls[0]["messages"]
        assert messages[0]["role"] == "system"
        assert "Customer Satisfaction (CSAT)" in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "A survey about checkout"}

    @pytest.mark.asyncio
    async def test_free_form_prompt_has_no_type_guidance(self, fake_gateway):
        fake_gateway.contents = [json.dumps(VALID_SURVEY)]
        await generate_survey(fake_gateway, "Anything")
        assert "must follow" not in fake_gateway.calls[0]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self, fake_gateway):
        with pytest.raises(ValidationError):
            await generate_survey(fake_gateway, "   ")
        assert fake_gateway.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_answer(self, fake_gateway):
        fake_gateway.contents = ["I cannot help with that."]
        with pytest.raises(GenerationParseError):
            await generate_survey(fake_gateway, "A survey")

    @pytest.mark.asyncio
    async def test_service_error_propagates(self, fake_gateway):
        fake_gateway.contents = [ExternalServiceError("Generation", "HTTP 500")]
        with pytest.raises(ExternalServiceError):
            await generate_survey(fake_gateway, "A survey")


class TestRegenerateQuestion:
    @pytest.mark.asyncio
    async def test_keeps_id_type_and_options(self, fake_gateway):
        fake_gateway.contents = ["  Which plan suits you best?  "]
        question = Question(id="q3", text="Which plan?", type="multiple_choice", options=["Free", "Pro"])

        new_question = await regenerate_question(fake_gateway, question)

        assert new_question.text == "Which plan suits you best?"
        assert new_question.id == "q3"
        assert new_question.options == ["Free", "Pro"]
        assert "multiple_choice" in fake_gateway.calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_empty_answer(self, fake_gateway):
        fake_gateway.contents = [""]
        with pytest.raises(GenerationParseError):
            await regenerate_question(fake_gateway, Question(id="q1", text="Why?"))


def _responses():
    return [
        SurveyResponseOut(
            id="r1",
            survey_id="s1",
            created_at=datetime(2024, 5, 1, 12, 0, 0),
            answers=[
                {"question_id": "q1", "response": "4"},
                {"question_id": "gone", "response": "orphan"},
            ],
        ),
    ]


class TestSynthesis:
    def test_payload_resolves_question_text(self):
        questions = [Question(id="q1", text="Rate us", type="rating")]
        payload = build_synthesis_payload(questions, _responses())

        assert payload == [{
            "submittedAt": "2024-05-01T12:00:00",
            "answers": [
                {"question": "Rate us", "response": "4", "type": "rating"},
                {"question": UNKNOWN_QUESTION, "response": "orphan", "type": "text"},
            ],
        }]

    def test_clean_text(self):
        raw = "## Key Findings\n- Users love **speed**\n1. Fast\n\n\n\nDetails   "
        assert clean_synthesis_text(raw) == "Key Findings\n• Users love speed\nFast\n\nDetails"

    @pytest.mark.asyncio
    async def test_synthesize_results_cleans_output(self, fake_gateway):
        fake_gateway.contents = ["# Key Findings\n- Mostly positive"]
        questions = [Question(id="q1", text="Rate us", type="rating")]

        result = await synthesize_results(fake_gateway, "Feedback", questions, _responses())

        assert result == "Key Findings\n• Mostly positive"
        user_prompt = fake_gateway.calls[0]["messages"][1]["content"]
        assert "Feedback" in user_prompt
        assert "Rate us" in user_prompt

    @pytest.mark.asyncio
    async def test_synthesize_results_empty_answer(self, fake_gateway):
        fake_gateway.contents = ["   "]
        with pytest.raises(GenerationParseError):
            await synthesize_results(fake_gateway, "Feedback", [], _responses())

    @pytest.mark.asyncio
    async def test_markdown_report_kept_verbatim(self, fake_gateway):
        fake_gateway.contents = ["## Summary\n- **Good**"]
        result = await synthesize_markdown_report(fake_gateway, "Feedback", [], _responses())

        assert result == "## Summary\n- **Good**"
        assert fake_gateway.calls[0]["max_tokens"] == 2000
