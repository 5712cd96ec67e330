"""
Answer validation

Gates engine transitions: a single answer is checked against its question,
and whole answer sets are checked against the currently visible questions.
Errors are returned as data, never raised.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .conditions import is_visible, to_number
from .quiz.schema import (
    MultiChoiceQuestion,
    Question,
    QuestionType,
    QuizOptions,
    SliderQuestion,
    TextInputQuestion,
)
from .quiz.state import QuizState


logger = logging.getLogger(__name__)


class ValidationErrorCode(str, Enum):
    """Stable error codes surfaced to the renderer."""
    REQUIRED = "required"
    MIN_LENGTH = "min-length"
    MAX_LENGTH = "max-length"
    PATTERN = "pattern"
    MIN_SELECTIONS = "min-selections"
    MAX_SELECTIONS = "max-selections"
    OUT_OF_RANGE = "out-of-range"
    INVALID_FORMAT = "invalid-format"


@dataclass(frozen=True)
class ValidationError:
    """A single problem with an answer."""
    question_id: str
    message: str
    code: ValidationErrorCode
    field: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "question_id": self.question_id,
            "message": self.message,
            "code": self.code.value,
        }
        if self.field:
            result["field"] = self.field
        return result


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one answer or a whole answer set."""
    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def from_errors(cls, errors: list[ValidationError]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=tuple(errors))

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": [e.to_dict() for e in self.errors]}


def is_empty(value: Any) -> bool:
    """None, a blank string or an empty sequence."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


# =============================================================================
# TYPE-SPECIFIC VALIDATORS
# =============================================================================

def _validate_multi_choice(question: MultiChoiceQuestion, value: Any) -> list[ValidationError]:
    errors = []
    selections = value if isinstance(value, (list, tuple)) else []

    if question.min_selections and len(selections) < question.min_selections:
        errors.append(ValidationError(
            question_id=question.id,
            message=f"Please select at least {question.min_selections} option{_plural(question.min_selections)}",
            code=ValidationErrorCode.MIN_SELECTIONS,
        ))

    if question.max_selections and len(selections) > question.max_selections:
        errors.append(ValidationError(
            question_id=question.id,
            message=f"Please select no more than {question.max_selections} option{_plural(question.max_selections)}",
            code=ValidationErrorCode.MAX_SELECTIONS,
        ))

    return errors


def _validate_text_input(question: TextInputQuestion, value: Any) -> list[ValidationError]:
    errors = []
    text = str(value)

    if question.min_length and len(text) < question.min_length:
        errors.append(ValidationError(
            question_id=question.id,
            message=f"Please enter at least {question.min_length} characters",
            code=ValidationErrorCode.MIN_LENGTH,
        ))

    if question.max_length and len(text) > question.max_length:
        errors.append(ValidationError(
            question_id=question.id,
            message=f"Please enter no more than {question.max_length} characters",
            code=ValidationErrorCode.MAX_LENGTH,
        ))

    if question.validation_pattern:
        try:
            matched = re.search(question.validation_pattern, text) is not None
        except re.error as e:
            logger.warning(f"Invalid validation pattern on {question.id}: {e}")
            matched = True
        if not matched:
            errors.append(ValidationError(
                question_id=question.id,
                message="Please enter a valid format",
                code=ValidationErrorCode.PATTERN,
            ))

    return errors


def _validate_slider(question: SliderQuestion, value: Any) -> list[ValidationError]:
    number = to_number(value)
    if number is None:
        return [ValidationError(
            question_id=question.id,
            message="Please select a value",
            code=ValidationErrorCode.INVALID_FORMAT,
        )]

    if number < question.min or number > question.max:
        return [ValidationError(
            question_id=question.id,
            message=f"Please select a value between {question.min} and {question.max}",
            code=ValidationErrorCode.OUT_OF_RANGE,
        )]

    return []


def _validate_likert(question: Question, value: Any) -> list[ValidationError]:
    if to_number(value) is None:
        return [ValidationError(
            question_id=question.id,
            message="Please select a rating",
            code=ValidationErrorCode.INVALID_FORMAT,
        )]
    return []


_TYPE_VALIDATORS: dict[QuestionType, Callable[[Any, Any], list[ValidationError]]] = {
    QuestionType.MULTI_CHOICE: _validate_multi_choice,
    QuestionType.TEXT_INPUT: _validate_text_input,
    QuestionType.SLIDER: _validate_slider,
    QuestionType.LIKERT: _validate_likert,
}


# =============================================================================
# MAIN VALIDATION FUNCTIONS
# =============================================================================

def validate_answer(question: Question, value: Any) -> ValidationResult:
    """
    Validate a single answer against its question requirements.

    Args:
        question: The question being answered
        value: Candidate answer value

    Returns:
        ValidationResult; a missing required answer yields exactly one
        `required` error and no further checks
    """
    if question.required and is_empty(value):
        return ValidationResult.from_errors([ValidationError(
            question_id=question.id,
            message="This question requires an answer",
            code=ValidationErrorCode.REQUIRED,
        )])

    if is_empty(value):
        return ValidationResult.ok()

    validator = _TYPE_VALIDATORS.get(question.type)
    if validator is None:
        return ValidationResult.ok()

    return ValidationResult.from_errors(validator(question, value))


def validate_quiz_state(questions: list[Question], state: QuizState) -> ValidationResult:
    """Validate every visible question's stored answer."""
    errors: list[ValidationError] = []

    for question in questions:
        if not is_visible(question, state):
            continue
        result = validate_answer(question, state.answer_value(question.id))
        errors.extend(result.errors)

    return ValidationResult.from_errors(errors)


def get_unanswered_questions(questions: list[Question], state: QuizState) -> list[Question]:
    """Visible required questions without a non-empty answer."""
    return [
        q for q in questions
        if q.required and is_visible(q, state) and is_empty(state.answer_value(q.id))
    ]


def is_quiz_complete(questions: list[Question], state: QuizState) -> bool:
    """Whether all visible required questions are answered."""
    return not get_unanswered_questions(questions, state)


# =============================================================================
# PROGRESS TRACKING
# =============================================================================

def calculate_progress(questions: list[Question], state: QuizState) -> int:
    """Rounded percentage of visible questions with a non-empty answer."""
    visible = [q for q in questions if is_visible(q, state)]
    if not visible:
        return 100

    answered = [q for q in visible if not is_empty(state.answer_value(q.id))]
    return int(len(answered) * 100 / len(visible) + 0.5)


def get_visible_question_index(questions: list[Question], current_index: int, state: QuizState) -> int:
    """Number of visible questions before position current_index."""
    return sum(1 for q in questions[:max(0, current_index)] if is_visible(q, state))


def get_visible_question_count(questions: list[Question], state: QuizState) -> int:
    return sum(1 for q in questions if is_visible(q, state))


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def get_error_for_question(errors, question_id: str) -> Optional[ValidationError]:
    """First error reported for a question."""
    for error in errors:
        if error.question_id == question_id:
            return error
    return None


def format_validation_errors(errors) -> str:
    """Format validation errors for display."""
    errors = list(errors)
    if not errors:
        return ""
    if len(errors) == 1:
        return errors[0].message
    lines = "\n".join(f"• {e.message}" for e in errors)
    return f"Please fix {len(errors)} issues:\n{lines}"


# =============================================================================
# FORM FIELD VALIDATORS
# =============================================================================

FieldValidator = Callable[[Any], Optional[str]]

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_HTML_TAG = re.compile(r"<[^>]*>")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_text(text: str) -> str:
    """Strip HTML tags and `javascript:` protocols from free text."""
    return _JS_PROTOCOL.sub("", _HTML_TAG.sub("", text)).strip()


def is_valid_email(email: str) -> bool:
    return _EMAIL_PATTERN.fullmatch(email) is not None


class FieldValidators:
    """
    Validators for form fields outside the question flow (email capture).

    Each validator takes a value and returns an error message or None.
    Factories return a configured validator. Empty values pass everything
    except `required` and `range`.
    """

    @staticmethod
    def required(value: Any) -> Optional[str]:
        return "This field is required" if is_empty(value) else None

    @staticmethod
    def email(value: Any) -> Optional[str]:
        if is_empty(value):
            return None
        return None if is_valid_email(str(value)) else "Please enter a valid email address"

    @staticmethod
    def min_length(minimum: int) -> FieldValidator:
        def check(value: Any) -> Optional[str]:
            if is_empty(value) or len(str(value)) >= minimum:
                return None
            return f"Must be at least {minimum} characters"
        return check

    @staticmethod
    def max_length(maximum: int) -> FieldValidator:
        def check(value: Any) -> Optional[str]:
            if is_empty(value) or len(str(value)) <= maximum:
                return None
            return f"Must be no more than {maximum} characters"
        return check

    @staticmethod
    def pattern(regex: str, message: str) -> FieldValidator:
        compiled = re.compile(regex)

        def check(value: Any) -> Optional[str]:
            if is_empty(value) or compiled.search(str(value)):
                return None
            return message
        return check

    @staticmethod
    def range(minimum: float, maximum: float) -> FieldValidator:
        def check(value: Any) -> Optional[str]:
            number = to_number(value)
            if number is None:
                return "Must be a number"
            if minimum <= number <= maximum:
                return None
            return f"Must be between {minimum} and {maximum}"
        return check


def compose_validators(*validators: FieldValidator) -> FieldValidator:
    """Run validators in order; the first error wins."""
    def check(value: Any) -> Optional[str]:
        for validator in validators:
            error = validator(value)
            if error:
                return error
        return None
    return check


def validate_email_capture(options: QuizOptions, email: Any) -> Optional[str]:
    """
    Check a captured email against the quiz options.

    The address is required only when both `collect_email` and
    `email_required` are set; a non-empty address must always be well formed.
    """
    checks = [FieldValidators.email]
    if options.collect_email and options.email_required:
        checks.insert(0, FieldValidators.required)
    return compose_validators(*checks)(email)
