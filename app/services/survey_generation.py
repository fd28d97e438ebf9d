"""
Survey Generation Service

LLM-backed workflows:
- Generate a survey from a natural-language description
- Re-word a single question
- Synthesize a narrative analysis of collected responses

Model output is untyped text. Survey JSON goes through two steps: parse into
a plain tree, then coerce into the strict Survey/Question shape, rejecting a
payload that lacks a title, a description or a questions array.
"""

import json
import logging
import re
from typing import Any, Optional, Sequence

from app.exceptions import GenerationParseError, ValidationError
from app.schemas.survey import SurveyDraft, Question, QuestionType, SurveyResponseOut
from app.services.ai_gateway import AIGateway
from app.services import prompts

logger = logging.getLogger(__name__)

UNKNOWN_QUESTION = "Unknown Question"

CODE_FENCE_OPEN_RE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
CODE_FENCE_CLOSE_RE = re.compile(r"\n?```$")


class SurveyPayloadError(ValueError):
    """Model JSON does not describe a survey."""


def strip_code_fence(content: str) -> str:
    """Remove a markdown code fence wrapped around the model's JSON."""
    cleaned = (content or "").strip()
    cleaned = CODE_FENCE_OPEN_RE.sub("", cleaned, count=1)
    cleaned = CODE_FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def _coerce_question(raw: Any, index: int) -> Question:
    if not isinstance(raw, dict):
        raise SurveyPayloadError(f"Question {index + 1} is not an object")
    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        raise SurveyPayloadError(f"Question {index + 1} has no text")

    question_type = raw.get("type") or QuestionType.TEXT.value
    options = None
    if question_type == QuestionType.MULTIPLE_CHOICE.value:
        raw_options = raw.get("options") or []
        if not isinstance(raw_options, list):
            raise SurveyPayloadError(f"Question {index + 1} options are not a list")
        options = [str(option) for option in raw_options]

    return Question(
        id=str(raw.get("id") or f"q{index + 1}"),
        text=text,
        type=str(question_type),
        options=options,
    )


def coerce_survey_payload(data: Any) -> SurveyDraft:
    """Validate a parsed model answer and shape it into a SurveyDraft.

    Missing ``id`` defaults to ``q<position>``, missing ``type`` to ``text``;
    ``options`` are kept for multiple-choice questions only.
    """
    if not isinstance(data, dict):
        raise SurveyPayloadError("Survey payload is not an object")
    if not data.get("title") or not data.get("description"):
        raise SurveyPayloadError("Invalid survey structure: title and description are required")
    if not isinstance(data.get("questions"), list):
        raise SurveyPayloadError("Invalid survey structure: questions must be an array")

    return SurveyDraft(
        title=str(data["title"]),
        description=str(data["description"]),
        questions=[_coerce_question(q, i) for i, q in enumerate(data["questions"])],
    )


def parse_survey_content(content: str) -> SurveyDraft:
    """Turn the raw model text into a SurveyDraft or raise GenerationParseError."""
    try:
        data = json.loads(strip_code_fence(content))
        return coerce_survey_payload(data)
    except (json.JSONDecodeError, SurveyPayloadError) as e:
        logger.error(f"Parse error: {e}")
        logger.error(f"Raw content: {content}")
        raise GenerationParseError(raw_content=content)


async def generate_survey(gateway: AIGateway, prompt: str, survey_type: Optional[str] = None) -> SurveyDraft:
    """Ask the model for a survey matching the user's description."""
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt must not be empty")

    result = await gateway.chat_completion(
        messages=[
            {"role": "system", "content": prompts.build_generation_prompt(survey_type)},
            {"role": "user", "content": prompt},
        ],
    )
    draft = parse_survey_content(result.get("content", ""))
    logger.info(f"Generated survey '{draft.title}' with {len(draft.questions)} questions")
    return draft


async def regenerate_question(gateway: AIGateway, question: Question) -> Question:
    """Re-word one question, keeping its id, type and options."""
    result = await gateway.chat_completion(
        messages=[
            {"role": "system", "content": prompts.REGENERATE_QUESTION_SYSTEM_PROMPT},
            {"role": "user", "content": prompts.build_regenerate_prompt(question.type, question.text)},
        ],
    )
    new_text = (result.get("content") or "").strip()
    if not new_text:
        raise GenerationParseError("Failed to regenerate question. Please try again.")
    return question.model_copy(update={"text": new_text})


# ============================================================================
# Synthesis
# ============================================================================


def build_synthesis_payload(
    questions: Sequence[Question],
    responses: Sequence[SurveyResponseOut],
) -> list[dict]:
    """Resolve each answer to its question's text for the analysis prompt."""
    by_id = {question.id: question for question in questions}
    payload = []
    for response in responses:
        answers = []
        for answer in response.answers:
            question = by_id.get(answer.question_id)
            answers.append({
                "question": question.text if question else UNKNOWN_QUESTION,
                "response": answer.response,
                "type": question.type if question else QuestionType.TEXT.value,
            })
        payload.append({
            "submittedAt": response.created_at.isoformat() if response.created_at else None,
            "answers": answers,
        })
    return payload


def clean_synthesis_text(content: str) -> str:
    """Reduce the model's analysis to plain text with bullet points."""
    text = re.sub(r"[#*`]", "", content)
    text = re.sub(r"[-–—]", "•", text)
    text = re.sub(r"^\d+\.\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    return text.strip()


async def synthesize_results(
    gateway: AIGateway,
    title: str,
    questions: Sequence[Question],
    responses: Sequence[SurveyResponseOut],
) -> str:
    """Plain-text findings / details / recommendations summary."""
    payload = build_synthesis_payload(questions, responses)
    result = await gateway.chat_completion(
        messages=[
            {"role": "system", "content": prompts.SYNTHESIS_SYSTEM_PROMPT},
            {"role": "user", "content": prompts.build_analysis_prompt(title, json.dumps(payload, indent=2))},
        ],
    )
    content = result.get("content") or ""
    if not content.strip():
        raise GenerationParseError("No synthesis results returned")
    return clean_synthesis_text(content)


async def synthesize_markdown_report(
    gateway: AIGateway,
    title: str,
    questions: Sequence[Question],
    responses: Sequence[SurveyResponseOut],
) -> str:
    """Longer markdown-sectioned synthesis, returned as the model wrote it."""
    logger.info(f"Processing survey: {title}, responses={len(responses)}")
    payload = build_synthesis_payload(questions, responses)
    result = await gateway.chat_completion(
        messages=[
            {"role": "system", "content": prompts.REPORT_SYSTEM_PROMPT},
            {"role": "user", "content": prompts.build_analysis_prompt(title, json.dumps(payload, indent=2))},
        ],
        max_tokens=2000,
    )
    content = result.get("content") or ""
    if not content.strip():
        raise GenerationParseError("Failed to synthesize results")
    return content
