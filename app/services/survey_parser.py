"""
Text-to-Survey Parser

Turns freeform text (a raw model answer, or text pasted by the creator) into a
structured survey without calling any external service.

Layout expected, loosely:

    Title: Customer Feedback
    A short description line
    1. What do you like most?
    2. Which plan are you on?
    - Free
    - Pro

The parser is heuristic and never raises: anything it cannot make sense of
degrades to a survey with a single placeholder question.
"""

import re
from typing import Optional

from app.schemas.survey import SurveyDraft, Question, QuestionType

DEFAULT_TITLE = "Untitled Survey"
DEFAULT_DESCRIPTION = "No description provided"
PLACEHOLDER_QUESTION_TEXT = "No questions were found in the response"

TITLE_PREFIX_RE = re.compile(r"^(?:title:|survey:|#:?)\s*", re.IGNORECASE)
QUESTION_LINE_RE = re.compile(r"^\d+[.)]")
QUESTION_MARKER_RE = re.compile(r"^\d+[.)]\s*")
OPTION_MARKER_RE = re.compile(r"^[-*]\s*")

# Checked in order, first match wins
RATING_KEYWORDS = ("rate", "scale", "satisfaction", "how satisfied")
YES_NO_KEYWORDS = ("do you agree", "would you agree", "is it true")
CHOICE_KEYWORDS = ("select", "choose", "which", "pick")
OPEN_TEXT_KEYWORDS = ("explain", "describe", "what", "how", "why")


def infer_question_type(line: str) -> str:
    """Guess a question's type from the wording of its numbered line."""
    lowered = line.lower()
    if any(keyword in lowered for keyword in RATING_KEYWORDS):
        return QuestionType.RATING.value
    if any(keyword in lowered for keyword in YES_NO_KEYWORDS) or ("yes" in lowered and "no" in lowered):
        return QuestionType.YES_NO.value
    if any(keyword in lowered for keyword in CHOICE_KEYWORDS):
        return QuestionType.MULTIPLE_CHOICE.value
    if any(keyword in lowered for keyword in OPEN_TEXT_KEYWORDS):
        return QuestionType.TEXT.value
    return QuestionType.TEXT.value


def _extract_title(line: Optional[str]) -> str:
    if line is None:
        return DEFAULT_TITLE
    return TITLE_PREFIX_RE.sub("", line.strip(), count=1).strip() or DEFAULT_TITLE


def _start_question(line: str, ordinal: int) -> dict:
    question_type = infer_question_type(line)
    question = {
        "id": f"q{ordinal}",
        "text": QUESTION_MARKER_RE.sub("", line, count=1),
        "type": question_type,
        "options": None,
    }
    if question_type == QuestionType.MULTIPLE_CHOICE.value:
        question["options"] = []
    return question


def convert_text_to_survey(text: Optional[str]) -> SurveyDraft:
    """Convert a block of freeform text into a survey draft.

    The first non-blank line is the title (a ``Title:``, ``Survey:`` or ``#``
    label is dropped), the second is the description, and numbered lines from
    the third onward start questions. ``-``/``*`` lines become options of the
    current question and turn it into a multiple-choice question.
    """
    lines = [line for line in (text or "").split("\n") if line.strip()]

    title = _extract_title(lines[0] if lines else None)
    description = lines[1].strip() if len(lines) > 1 else DEFAULT_DESCRIPTION

    questions: list[dict] = []
    current: dict = {}

    for raw_line in lines[2:]:
        line = raw_line.strip()

        if QUESTION_LINE_RE.match(line):
            if current.get("text"):
                questions.append(current)
            current = _start_question(line, len(questions) + 1)
        elif line.startswith(("-", "*")) and current.get("text"):
            if current.get("options") is None:
                current["type"] = QuestionType.MULTIPLE_CHOICE.value
                current["options"] = []
            current["options"].append(OPTION_MARKER_RE.sub("", line, count=1).strip())
        # Anything else is commentary; question text never continues across lines

    if current.get("text"):
        questions.append(current)

    if not questions:
        questions = [{
            "id": "q1",
            "text": PLACEHOLDER_QUESTION_TEXT,
            "type": QuestionType.TEXT.value,
            "options": None,
        }]

    return SurveyDraft(
        title=title,
        description=description,
        questions=[Question(**question) for question in questions],
    )
