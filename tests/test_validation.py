"""
Tests for answer validation and progress tracking.
"""

import logging

from grove_quiz.quiz.schema import (
    BinaryQuestion,
    Condition,
    ConditionOperator,
    ConditionalLogic,
    LikertQuestion,
    MultiChoiceQuestion,
    ChoiceOption,
    QuizOptions,
    SliderQuestion,
    TextInputQuestion,
)
from grove_quiz.quiz.state import create_quiz_state, update_answer
from grove_quiz.validation import (
    ValidationError,
    ValidationErrorCode,
    FieldValidators,
    ValidationResult,
    calculate_progress,
    compose_validators,
    format_validation_errors,
    get_error_for_question,
    get_unanswered_questions,
    get_visible_question_count,
    get_visible_question_index,
    is_empty,
    is_quiz_complete,
    is_valid_email,
    sanitize_text,
    validate_answer,
    validate_email_capture,
    validate_quiz_state,
)


def codes(result):
    return [e.code for e in result.errors]


def gated_on_q1_yes(question_id, required=True):
    return BinaryQuestion(
        id=question_id,
        required=required,
        conditional_display=ConditionalLogic(conditions=[
            Condition(question_id="q1", operator=ConditionOperator.EQUALS, value="yes"),
        ]),
    )


class TestEmptiness:
    """Tests for is_empty."""

    def test_empty_values(self):
        assert is_empty(None)
        assert is_empty("")
        assert is_empty("   ")
        assert is_empty([])

    def test_non_empty_values(self):
        assert not is_empty(0)
        assert not is_empty(False)
        assert not is_empty("a")
        assert not is_empty(["a"])


class TestValidateAnswer:
    """Tests for single-answer validation."""

    def test_required_missing(self):
        """Test that a missing required answer gives exactly one error."""
        question = TextInputQuestion(id="name", min_length=3)
        result = validate_answer(question, "  ")

        assert not result.is_valid
        assert codes(result) == [ValidationErrorCode.REQUIRED]
        assert result.errors[0].question_id == "name"

    def test_optional_missing_is_valid(self):
        question = TextInputQuestion(id="name", required=False, min_length=3)

        assert validate_answer(question, None).is_valid

    def test_zero_satisfies_required(self):
        """Test that 0 is an answer."""
        assert validate_answer(BinaryQuestion(id="b"), 0).is_valid

    def test_idempotent(self):
        """Test that validating twice gives equal results."""
        question = MultiChoiceQuestion(id="m", min_selections=2)

        assert validate_answer(question, ["A"]) == validate_answer(question, ["A"])

    def test_multi_choice_bounds(self):
        question = MultiChoiceQuestion(
            id="m",
            options=[ChoiceOption(text=t, letter=t) for t in "ABCD"],
            min_selections=2,
            max_selections=3,
        )

        assert codes(validate_answer(question, ["A"])) == [ValidationErrorCode.MIN_SELECTIONS]
        assert codes(validate_answer(question, ["A", "B", "C", "D"])) == [ValidationErrorCode.MAX_SELECTIONS]
        assert validate_answer(question, ["A", "B"]).is_valid

    def test_multi_choice_messages(self):
        """Test singular/plural wording."""
        one = MultiChoiceQuestion(id="m", max_selections=1)
        result = validate_answer(one, ["A", "B"])

        assert result.errors[0].message == "Please select no more than 1 option"

    def test_text_lengths(self):
        question = TextInputQuestion(id="t", min_length=3, max_length=5)

        assert codes(validate_answer(question, "ab")) == [ValidationErrorCode.MIN_LENGTH]
        assert codes(validate_answer(question, "abcdef")) == [ValidationErrorCode.MAX_LENGTH]
        assert validate_answer(question, "abcd").is_valid

    def test_text_pattern(self):
        question = TextInputQuestion(id="email", validation_pattern=r"^[^@\s]+@[^@\s]+$")

        assert validate_answer(question, "a@b.co").is_valid
        assert codes(validate_answer(question, "nope")) == [ValidationErrorCode.PATTERN]

    def test_invalid_pattern_is_skipped(self, caplog):
        """Test that a broken pattern never blocks the answer."""
        question = TextInputQuestion(id="t", validation_pattern="([")

        with caplog.at_level(logging.WARNING):
            result = validate_answer(question, "anything")

        assert result.is_valid
        assert "Invalid validation pattern" in caplog.text

    def test_slider_range(self):
        question = SliderQuestion(id="s", min=1, max=10)

        assert validate_answer(question, 1).is_valid
        assert validate_answer(question, "10").is_valid
        assert codes(validate_answer(question, 11)) == [ValidationErrorCode.OUT_OF_RANGE]
        assert codes(validate_answer(question, "lots")) == [ValidationErrorCode.INVALID_FORMAT]

    def test_likert_must_be_numeric(self):
        question = LikertQuestion(id="l")

        assert validate_answer(question, 4).is_valid
        assert codes(validate_answer(question, "agree")) == [ValidationErrorCode.INVALID_FORMAT]

    def test_result_to_dict(self):
        result = validate_answer(BinaryQuestion(id="b"), None)

        assert result.to_dict() == {
            "is_valid": False,
            "errors": [{"question_id": "b", "message": "This question requires an answer", "code": "required"}],
        }


class TestQuizStateValidation:
    """Tests for whole-state validation and completeness."""

    def test_hidden_questions_are_skipped(self):
        """Test that hidden required questions do not fail validation."""
        questions = [BinaryQuestion(id="q1", required=False), gated_on_q1_yes("q2")]

        assert validate_quiz_state(questions, create_quiz_state("v")).is_valid

    def test_visible_required_missing(self):
        questions = [BinaryQuestion(id="q1"), gated_on_q1_yes("q2")]
        state = update_answer(create_quiz_state("v"), "q1", "yes")

        result = validate_quiz_state(questions, state)

        assert not result.is_valid
        assert get_error_for_question(result.errors, "q2").code == ValidationErrorCode.REQUIRED
        assert get_error_for_question(result.errors, "q1") is None

    def test_required_but_hidden_not_unanswered(self):
        """Test that a hidden required question is not reported or counted."""
        questions = [BinaryQuestion(id="q1"), gated_on_q1_yes("q2")]
        state = update_answer(create_quiz_state("v"), "q1", "no")

        assert get_unanswered_questions(questions, state) == []
        assert is_quiz_complete(questions, state)
        assert calculate_progress(questions, state) == 100

    def test_gate_does_not_block_completeness(self):
        """Test that a gated question is hidden while its gate is unanswered."""
        questions = [BinaryQuestion(id="q1", required=False), gated_on_q1_yes("q2")]

        assert is_quiz_complete(questions, create_quiz_state("v"))

    def test_unanswered_questions(self):
        questions = [BinaryQuestion(id="q1"), BinaryQuestion(id="q2"), BinaryQuestion(id="q3", required=False)]
        state = update_answer(create_quiz_state("v"), "q1", 1)

        assert [q.id for q in get_unanswered_questions(questions, state)] == ["q2"]
        assert not is_quiz_complete(questions, state)


class TestProgress:
    """Tests for progress tracking."""

    def test_progress_rounds(self):
        questions = [BinaryQuestion(id=f"q{i}") for i in range(3)]
        state = update_answer(create_quiz_state("p"), "q0", 1)

        assert calculate_progress(questions, state) == 33
        assert calculate_progress(questions, update_answer(state, "q1", 0)) == 67

    def test_progress_ignores_hidden(self):
        """Test that hidden questions are in neither numerator nor denominator."""
        questions = [BinaryQuestion(id="q1"), gated_on_q1_yes("q2"), BinaryQuestion(id="q3")]
        state = update_answer(create_quiz_state("p"), "q1", "no")

        assert calculate_progress(questions, state) == 50

    def test_progress_with_no_visible_questions(self):
        assert calculate_progress([], create_quiz_state("p")) == 100

    def test_visible_index_and_count(self):
        questions = [BinaryQuestion(id="q1"), gated_on_q1_yes("q2"), BinaryQuestion(id="q3")]
        state = update_answer(create_quiz_state("p"), "q1", "no")

        assert get_visible_question_count(questions, state) == 2
        assert get_visible_question_index(questions, 2, state) == 1


class TestFormatting:
    """Tests for error formatting."""

    def test_format_single(self):
        error = ValidationError(question_id="q", message="Bad", code=ValidationErrorCode.PATTERN)

        assert format_validation_errors([error]) == "Bad"

    def test_format_many(self):
        errors = [
            ValidationError(question_id="a", message="One", code=ValidationErrorCode.REQUIRED),
            ValidationError(question_id="b", message="Two", code=ValidationErrorCode.REQUIRED),
        ]

        assert format_validation_errors(errors) == "Please fix 2 issues:\n• One\n• Two"

    def test_format_none(self):
        assert format_validation_errors(ValidationResult.ok().errors) == ""


class TestStaleAnswers:
    """Tests for answers left behind a gate that was changed later."""

    def test_hidden_answer_is_excluded(self):
        questions = [BinaryQuestion(id="q1"), gated_on_q1_yes("q2"), BinaryQuestion(id="q3")]
        state = update_answer(create_quiz_state("p"), "q1", "yes")
        state = update_answer(state, "q2", "")
        state = update_answer(state, "q1", "no")

        assert calculate_progress(questions, state) == 50
        assert [q.id for q in get_unanswered_questions(questions, state)] == ["q3"]
        assert validate_quiz_state(questions, state).errors[0].question_id == "q3"


class TestEmailHelpers:
    """Tests for sanitize_text and is_valid_email."""

    def test_sanitize_text(self):
        assert sanitize_text("  <script>hi</script> there ") == "hi there"
        assert sanitize_text("JavaScript:alert(1)") == "alert(1)"

    def test_is_valid_email(self):
        assert is_valid_email("sam@example.com")
        assert not is_valid_email("sam@example")
        assert not is_valid_email("sam @example.com")
        assert not is_valid_email("sam@example.com\n")


class TestFieldValidators:
    """Tests for form field validators and composition."""

    def test_required(self):
        assert FieldValidators.required("  ") == "This field is required"
        assert FieldValidators.required("x") is None

    def test_empty_values_pass_optional_checks(self):
        for validator in (
            FieldValidators.email,
            FieldValidators.min_length(3),
            FieldValidators.max_length(1),
            FieldValidators.pattern(r"^\d+$", "Digits only"),
        ):
            assert validator("") is None
            assert validator(None) is None

    def test_lengths_and_pattern(self):
        assert FieldValidators.min_length(3)("ab") == "Must be at least 3 characters"
        assert FieldValidators.max_length(2)("abc") == "Must be no more than 2 characters"
        assert FieldValidators.pattern(r"^\d+$", "Digits only")("12a") == "Digits only"
        assert FieldValidators.pattern(r"^\d+$", "Digits only")("123") is None

    def test_range(self):
        check = FieldValidators.range(1, 10)

        assert check("5") is None
        assert check(11) == "Must be between 1 and 10"
        assert check("many") == "Must be a number"

    def test_compose_returns_first_error(self):
        check = compose_validators(FieldValidators.required, FieldValidators.email)

        assert check("") == "This field is required"
        assert check("nope") == "Please enter a valid email address"
        assert check("sam@example.com") is None

    def test_email_capture_options(self):
        optional = QuizOptions(collect_email=True)
        required = QuizOptions(collect_email=True, email_required=True)

        assert validate_email_capture(optional, "") is None
        assert validate_email_capture(required, "") == "This field is required"
        assert validate_email_capture(QuizOptions(), "bad") == "Please enter a valid email address"
