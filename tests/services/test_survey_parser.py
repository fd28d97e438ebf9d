"""Tests for the freeform text to survey parser."""

from app.services.survey_parser import (
    convert_text_to_survey,
    infer_question_type,
    DEFAULT_TITLE,
    DEFAULT_DESCRIPTION,
    PLACEHOLDER_QUESTION_TEXT,
)


class TestTitleAndDescription:
    """First two non-blank lines."""

    def test_title_prefix_stripped(self):
        survey = convert_text_to_survey("Title: Customer Feedback\nTell us about your visit")
        assert survey.title == "Customer Feedback"
        assert survey.description == "Tell us about your visit"

    def test_other_prefixes_case_insensitive(self):
        assert convert_text_to_survey("SURVEY: Onboarding\nx").title == "Onboarding"
        assert convert_text_to_survey("# Team Pulse\nx").title == "Team Pulse"

    def test_blank_lines_skipped(self):
        survey = convert_text_to_survey("\n\n  Quarterly Check-in  \n\nHow are things going\n")
        assert survey.title == "Quarterly Check-in"
        assert survey.description == "How are things going"

    def test_defaults_when_missing(self):
        survey = convert_text_to_survey("Only a title")
        assert survey.title == "Only a title"
        assert survey.description == DEFAULT_DESCRIPTION

    def test_prefix_only_title_falls_back(self):
        assert convert_text_to_survey("Title:\nDesc").title == DEFAULT_TITLE


class TestQuestions:
    """Numbered lines from the third line onward."""

    def test_reference_example(self):
        text = "Title: T\nDesc\n1. What is your name?\n2. Rate our service\n- a\n- b"
        survey = convert_text_to_survey(text)

        assert survey.title == "T"
        assert survey.description == "Desc"
        assert len(survey.questions) == 2

        first, second = survey.questions
        assert first.id == "q1"
        assert first.text == "What is your name?"
        assert first.type == "text"
        assert first.options is None

        # Dash lines override the keyword guess
        assert second.id == "q2"
        assert second.text == "Rate our service"
        assert second.type == "multiple_choice"
        assert second.options == ["a", "b"]

    def test_empty_input_gives_placeholder(self):
        for text in ("", "   \n\n", None):
            survey = convert_text_to_survey(text)
            assert survey.title == DEFAULT_TITLE
            assert survey.description == DEFAULT_DESCRIPTION
            assert len(survey.questions) == 1
            assert survey.questions[0].id == "q1"
            assert survey.questions[0].text == PLACEHOLDER_QUESTION_TEXT
            assert survey.questions[0].type == "text"

    def test_ids_sequential_regardless_of_numbering(self):
        text = "T\nD\n7. Why did you join?\n3) Describe your role\n42. Explain your goals"
        survey = convert_text_to_survey(text)
        assert [q.id for q in survey.questions] == ["q1", "q2", "q3"]
        assert [q.text for q in survey.questions] == [
            "Why did you join?",
            "Describe your role",
            "Explain your goals",
        ]

    def test_choice_keyword_starts_empty_options(self):
        survey = convert_text_to_survey("T\nD\n1. Which plan are you on?")
        question = survey.questions[0]
        assert question.type == "multiple_choice"
        assert question.options == []

    def test_options_set_once_for_choice_question(self):
        text = "T\nD\n1. Pick a colour\n* Red\n* Blue\n- Green"
        question = convert_text_to_survey(text).questions[0]
        assert question.type == "multiple_choice"
        assert question.options == ["Red", "Blue", "Green"]

    def test_dash_lines_before_any_question_dropped(self):
        text = "T\nD\n- stray option\n1. Why?"
        survey = convert_text_to_survey(text)
        assert len(survey.questions) == 1
        assert survey.questions[0].options is None

    def test_commentary_lines_ignored(self):
        text = "T\nD\n1. Why did you leave?\nThis line continues nothing\n2. Describe the issue"
        survey = convert_text_to_survey(text)
        assert [q.text for q in survey.questions] == ["Why did you leave?", "Describe the issue"]

    def test_options_belong_to_latest_question(self):
        text = "T\nD\n1. Why?\n2. Choose one\n- A\n- B\n3. Describe it"
        survey = convert_text_to_survey(text)
        assert survey.questions[0].options is None
        assert survey.questions[1].options == ["A", "B"]
        assert survey.questions[2].options is None

    def test_numbered_title_lines_not_questions(self):
        survey = convert_text_to_survey("1. First\n2. Second")
        assert survey.title == "1. First"
        assert survey.description == "2. Second"
        assert survey.questions[0].text == PLACEHOLDER_QUESTION_TEXT


class TestTypeInference:
    """Keyword precedence: rating, yes/no, choice, text."""

    def test_rating_keywords(self):
        assert infer_question_type("1. Rate the checkout") == "rating"
        assert infer_question_type("2. On a scale of 1-5, how easy was it?") == "rating"
        assert infer_question_type("3. How satisfied are you?") == "rating"

    def test_yes_no_keywords(self):
        assert infer_question_type("1. Do you agree with the new policy?") == "yes_no"
        assert infer_question_type("2. Is it true that you renewed?") == "yes_no"
        assert infer_question_type("3. Answer yes or no: did it work?") == "yes_no"

    def test_choice_keywords(self):
        assert infer_question_type("1. Select your region") == "multiple_choice"
        assert infer_question_type("2. Which feature matters most?") == "multiple_choice"

    def test_rating_beats_choice(self):
        assert infer_question_type("1. Which would you rate highest?") == "rating"

    def test_default_text(self):
        assert infer_question_type("1. Anything else?") == "text"
        assert infer_question_type("2. Describe your day") == "text"


class TestPurity:
    def test_same_input_same_output(self):
        text = "T\nD\n1. Which plan?\n- Free\n- Pro"
        assert convert_text_to_survey(text) == convert_text_to_survey(text)
