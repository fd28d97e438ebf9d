"""
Survey Response Aggregation & Scoring

Pure functions over submitted responses:
- Per-question tallies for charts (choice counts, rating distribution, raw text)
- Five standardised survey scores: NPS, SUS, CSAT, CES, TSM
- Detection of which standardised type a stored survey follows

Scores are computed over every answer of every response, not per question,
and return 0 when no answer passes the type's filter. Nothing here performs
I/O or keeps state between calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from app.schemas.survey import (
    Question, QuestionType, SurveyResponseOut, QuestionResult, ChartPoint, ScoreCard,
)

RATING_LABELS = ["1", "2", "3", "4", "5"]
NPS_SCALE = list(range(0, 11))
DEFAULT_RATING_SCALE = [1, 2, 3, 4, 5]

# Canonical System Usability Scale statements, in scoring order
SUS_QUESTIONS = [
    "I think that I would like to use this design frequently.",
    "I found the system unnecessarily complex.",
    "I thought the design was easy to use.",
    "I think that I would need the support of a technical person to be able to use this design.",
    "I found the various functions in this design were well integrated.",
    "I thought there was too much inconsistency in this design.",
    "I would imagine that most people would learn to use this design very quickly.",
    "I found the design very cumbersome to use.",
    "I felt very confident using the design.",
    "I needed to learn a lot of things before I could get going with this design.",
]


# ============================================================================
# Per-question aggregation
# ============================================================================


def _answers_for(responses: Iterable[SurveyResponseOut], question_id: str) -> list[str]:
    return [
        answer.response
        for response in responses
        for answer in response.answers
        if answer.question_id == question_id
    ]


def _tally(values: Iterable[str], seed: Sequence[str] = ()) -> list[ChartPoint]:
    counts: dict[str, int] = {label: 0 for label in seed}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return [ChartPoint(name=name, value=count) for name, count in counts.items()]


def aggregate_responses(
    responses: Sequence[SurveyResponseOut],
    questions: Sequence[Question],
) -> dict[str, QuestionResult]:
    """Group answers by question and tally them according to question type.

    - multiple_choice / yes_no: count of each literal answer
    - rating: counts for "1".."5" (always present, in order), then any other
      literal answer in first-seen order
    - text: no tally, the raw answers in submission order

    Questions of an unknown type get no entry.
    """
    result: dict[str, QuestionResult] = {}

    for question in questions:
        values = _answers_for(responses, question.id)

        if question.type in (QuestionType.MULTIPLE_CHOICE.value, QuestionType.YES_NO.value):
            data = _tally(values)
            result[question.id] = QuestionResult(
                question_id=question.id, text=question.text, type=question.type, data=data,
            )
        elif question.type == QuestionType.RATING.value:
            result[question.id] = QuestionResult(
                question_id=question.id,
                text=question.text,
                type=question.type,
                data=_tally(values, seed=RATING_LABELS),
                scale=rating_scale(question),
            )
        elif question.type == QuestionType.TEXT.value:
            result[question.id] = QuestionResult(
                question_id=question.id, text=question.text, type=question.type, data=[], responses=values,
            )

    return result


def is_nps_question(question: Question) -> bool:
    """The one rating question answered on a 0-10 scale."""
    text = question.text.lower()
    return "recommend" in text and "scale of 0 to 10" in text


def rating_scale(question: Question) -> list[int]:
    return NPS_SCALE if is_nps_question(question) else DEFAULT_RATING_SCALE


# ============================================================================
# Scoring formulas
# ============================================================================


def _to_number(value: str) -> Optional[float]:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _numeric_answers(responses: Iterable[SurveyResponseOut], low: float, high: float) -> list[float]:
    scores = []
    for response in responses:
        for answer in response.answers:
            number = _to_number(answer.response)
            if number is not None and low <= number <= high:
                scores.append(number)
    return scores


def _task_outcomes(responses: Iterable[SurveyResponseOut]) -> list[int]:
    outcomes = []
    for response in responses:
        for answer in response.answers:
            value = answer.response.lower()
            if value in ("success", "failure"):
                outcomes.append(1 if value == "success" else 0)
    return outcomes


def nps_score(responses: Sequence[SurveyResponseOut]) -> float:
    """(% promoters [9-10]) - (% detractors [0-6]), as a number from -100 to 100."""
    scores = _numeric_answers(responses, 0, 10)
    if not scores:
        return 0
    promoters = len([score for score in scores if score >= 9])
    detractors = len([score for score in scores if score <= 6])
    return ((promoters / len(scores)) - (detractors / len(scores))) * 100


def sus_score(responses: Sequence[SurveyResponseOut]) -> float:
    """System Usability Scale, 0-100.

    Answers are matched to the ten SUS statements by position only: even
    (0-based) positions contribute ``score - 1``, odd positions ``5 - score``.
    A non-numeric answer contributes nothing but still occupies its position.
    """
    totals = []
    for response in responses:
        total = 0.0
        for index, answer in enumerate(response.answers):
            score = _to_number(answer.response)
            if score is None:
                continue
            if index % 2 == 0:
                total += score - 1
            else:
                total += 5 - score
        totals.append(total)

    if not totals:
        return 0
    return (sum(totals) / len(totals)) * 2.5


def csat_score(responses: Sequence[SurveyResponseOut]) -> float:
    """Average 1-5 satisfaction rating scaled to a percentage."""
    scores = _numeric_answers(responses, 1, 5)
    if not scores:
        return 0
    return (sum(scores) / len(scores)) * 20


def ces_score(responses: Sequence[SurveyResponseOut]) -> float:
    """Average 1-7 effort rating, unscaled."""
    scores = _numeric_answers(responses, 1, 7)
    if not scores:
        return 0
    return sum(scores) / len(scores)


def tsm_score(responses: Sequence[SurveyResponseOut]) -> float:
    """Share of "success" among success/failure answers, as a percentage."""
    outcomes = _task_outcomes(responses)
    if not outcomes:
        return 0
    return (sum(outcomes) / len(outcomes)) * 100


def _has_any_answer(responses: Sequence[SurveyResponseOut]) -> bool:
    return any(response.answers for response in responses)


# ============================================================================
# Survey type registry
# ============================================================================


@dataclass(frozen=True)
class SurveyTypeDefinition:
    id: str
    label: str
    description: str
    formula: str
    calculate_score: Callable[[Sequence[SurveyResponseOut]], float]
    has_qualifying_answers: Callable[[Sequence[SurveyResponseOut]], bool]
    is_percentage: bool = False


SURVEY_TYPES: dict[str, SurveyTypeDefinition] = {
    "nps": SurveyTypeDefinition(
        id="nps",
        label="Net Promoter Score (NPS)",
        description="Measure customer loyalty and likelihood to recommend your product or service to others",
        formula="NPS = (% Promoters [9-10]) - (% Detractors [0-6])",
        calculate_score=nps_score,
        has_qualifying_answers=lambda responses: bool(_numeric_answers(responses, 0, 10)),
        is_percentage=True,
    ),
    "sus": SurveyTypeDefinition(
        id="sus",
        label="System Usability Scale (SUS)",
        description="Standardized questionnaire for assessing the perceived usability of a product or system",
        formula=(
            "SUS = [(Q1-1) + (5-Q2) + (Q3-1) + (5-Q4) + (Q5-1) + (5-Q6) + (Q7-1) + (5-Q8) "
            "+ (Q9-1) + (5-Q10)] × 2.5"
        ),
        calculate_score=sus_score,
        has_qualifying_answers=_has_any_answer,
    ),
    "csat": SurveyTypeDefinition(
        id="csat",
        label="Customer Satisfaction (CSAT)",
        description="Evaluate overall customer satisfaction with your product or service",
        formula=(
            "CSAT = (Sum of all satisfaction ratings) / (Total number of responses) × 20 "
            "[to convert to percentage]"
        ),
        calculate_score=csat_score,
        has_qualifying_answers=lambda responses: bool(_numeric_answers(responses, 1, 5)),
        is_percentage=True,
    ),
    "ces": SurveyTypeDefinition(
        id="ces",
        label="Customer Effort Score (CES)",
        description="Measure how easy it is for customers to interact with your product or service",
        formula=(
            "CES = Average of effort ratings (1-7 scale, where 1 is very low effort "
            "and 7 is very high effort)"
        ),
        calculate_score=ces_score,
        has_qualifying_answers=lambda responses: bool(_numeric_answers(responses, 1, 7)),
    ),
    "tsm": SurveyTypeDefinition(
        id="tsm",
        label="Task Success Metric (TSM)",
        description="Evaluate the effectiveness of a design in enabling users to complete specific tasks",
        formula="TSM = (Number of successfully completed tasks / Total number of attempted tasks) × 100",
        calculate_score=tsm_score,
        has_qualifying_answers=lambda responses: bool(_task_outcomes(responses)),
    ),
}


def get_survey_type(type_id: Optional[str]) -> Optional[SurveyTypeDefinition]:
    if not type_id:
        return None
    return SURVEY_TYPES.get(type_id.lower())


def score_survey(type_id: str, responses: Sequence[SurveyResponseOut]) -> Optional[float]:
    """Score responses with the named formula; None when no answer qualifies."""
    survey_type = get_survey_type(type_id)
    if survey_type is None or not survey_type.has_qualifying_answers(responses):
        return None
    return survey_type.calculate_score(responses)


def build_score_card(type_id: str, responses: Sequence[SurveyResponseOut]) -> Optional[ScoreCard]:
    survey_type = get_survey_type(type_id)
    if survey_type is None:
        return None
    score = score_survey(survey_type.id, responses)
    return ScoreCard(
        survey_type=survey_type.id,
        label=survey_type.label,
        formula=survey_type.formula,
        score=round(score, 2) if score is not None else None,
        is_percentage=survey_type.is_percentage,
    )


def detect_survey_type(questions: Sequence[Question]) -> Optional[str]:
    """Recognise a standardised survey from its question wording."""
    if any(is_nps_question(q) for q in questions):
        return "nps"
    if len(questions) == 10 and any("I think that I would like to use this" in q.text for q in questions):
        return "sus"
    if any("satisfaction" in q.text.lower() and q.type == QuestionType.RATING.value for q in questions):
        return "csat"
    if any("effort" in q.text.lower() and q.type == QuestionType.RATING.value for q in questions):
        return "ces"
    if any("task" in q.text.lower() and "success" in q.text.lower() for q in questions):
        return "tsm"
    return None
