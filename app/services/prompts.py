"""Prompt templates for the generation service."""

from typing import Optional

from app.services.survey_scoring import SUS_QUESTIONS, get_survey_type

NPS_GUIDANCE = """
- Include the standard NPS question: "On a scale of 0 to 10, how likely are you to recommend this product/service to a friend or colleague?"
- Use a rating type question with a 0-10 scale
- Add follow-up questions to understand the reasons for their score"""

SUS_GUIDANCE = (
    "\n- Include all 10 standard SUS questions in this exact order:\n"
    + "\n".join(f'{i}. "{text}"' for i, text in enumerate(SUS_QUESTIONS, start=1))
    + """
- Use a rating type question with a 1-5 scale for all questions
- Maintain the alternating positive/negative question pattern"""
)

CSAT_GUIDANCE = """
- Include satisfaction rating questions using a 1-5 scale
- Add questions about specific aspects of the product/service
- Include open-ended questions for detailed feedback"""

CES_GUIDANCE = """
- Include effort assessment questions using a 1-7 scale
- Focus on the ease/difficulty of specific interactions
- Add questions about potential improvements"""

TSM_GUIDANCE = """
- Include specific task completion questions with success/failure options
- Add questions about task difficulty and user confidence
- Include questions about obstacles encountered during tasks"""

TYPE_GUIDANCE = {
    "nps": NPS_GUIDANCE,
    "sus": SUS_GUIDANCE,
    "csat": CSAT_GUIDANCE,
    "ces": CES_GUIDANCE,
    "tsm": TSM_GUIDANCE,
}

SURVEY_JSON_CONTRACT = """
Return ONLY a raw JSON object (no markdown, no code blocks, no backticks) with this structure:
{
  "title": "Survey Title",
  "description": "Survey Description",
  "questions": [
    {
      "id": "q1",
      "text": "Question Text",
      "type": "multiple_choice|text|rating|yes_no",
      "options": ["Option 1", "Option 2"]  // Only for multiple_choice type
    }
  ]
}

Important rules:
- Response must be ONLY the raw JSON object
- Do not include ```json or any other markdown
- Each question must have a unique id (q1, q2, etc.)
- Question types must be one of: multiple_choice, text, rating, yes_no
- Multiple choice questions must include 3-5 relevant options
- Make questions clear, unbiased, and relevant to survey goals"""


def build_generation_prompt(survey_type: Optional[str] = None) -> str:
    """System prompt for turning a user's description into survey JSON."""
    definition = get_survey_type(survey_type)
    label = f"{definition.label} " if definition else ""
    prompt = f"You are a survey design expert. Create a well-structured {label}survey based on the user's requirements."
    if definition:
        prompt += f"\nThis survey must follow the {definition.label} format:\n{TYPE_GUIDANCE[definition.id]}\n"
    return prompt + "\n" + SURVEY_JSON_CONTRACT


REGENERATE_QUESTION_SYSTEM_PROMPT = (
    "You are a survey design expert. Generate a new version of the provided question "
    "while maintaining the same topic and type."
)


def build_regenerate_prompt(question_type: str, question_text: str) -> str:
    return f"Regenerate this {question_type} question with the same theme but different wording: {question_text}"


SYNTHESIS_SYSTEM_PROMPT = """You are a survey analysis expert. Analyze the survey responses and provide a clear, simple text summary. Format your response in three sections:

1. Key Findings
Present 3-4 main findings from the survey. Each finding should be a simple, clear statement on a new line starting with a bullet point (•).

2. Response Details
Break down the responses by question, including:
- Notable trends in the data
- Relevant percentages or numbers
- Patterns in responses

3. Recommendations
Provide 2-3 clear, actionable recommendations based on the survey results.

Important formatting rules:
- Use only plain text
- Start each point with a bullet point (•)
- No special characters or formatting
- Keep language clear and concise
- Use simple line breaks between sections"""

REPORT_SYSTEM_PROMPT = """You are a survey analysis expert. Analyze the survey responses and provide a comprehensive synthesis of the results. Include:
1. Key findings and patterns
2. Common themes in responses
3. Notable insights
4. Any significant correlations
5. Summary statistics where applicable
Format the response in clear sections with markdown headings."""


def build_analysis_prompt(survey_title: str, responses_json: str) -> str:
    return f'Please analyze this survey titled "{survey_title}" with the following responses: {responses_json}'
