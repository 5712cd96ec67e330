"""
grove-quiz: declarative quiz state and scoring engine.

Drives branching self-assessment quizzes: conditional display, answer
validation, navigation, progress snapshots and explainable scoring.
"""

__version__ = "0.1.0"
__author__ = "Autumn Brown"
__email__ = "autumn@grove.place"

from .config import config, Config
from .quiz import Quiz, QuizState, QuizAnswer, Question, EXAMPLE_QUIZ
from .conditions import evaluate_condition, evaluate_conditions, is_visible
from .validation import (
    ValidationError,
    ValidationErrorCode,
    ValidationResult,
    validate_answer,
    validate_quiz_state,
    calculate_progress,
    is_quiz_complete,
    FieldValidators,
    compose_validators,
    is_valid_email,
    sanitize_text,
)
from .scoring import QuizResult, ResultDimension, AnswerContribution, ScoringEngine, calculate_results
from .events import EventType, QuizEvent, EventEmitter
from .engine import QuizEngine, QuizStatus, Snapshot

__all__ = [
    # Config
    "config",
    "Config",
    # Definitions and state
    "Quiz",
    "QuizState",
    "QuizAnswer",
    "Question",
    "EXAMPLE_QUIZ",
    # Conditional display
    "evaluate_condition",
    "evaluate_conditions",
    "is_visible",
    # Validation
    "ValidationError",
    "ValidationErrorCode",
    "ValidationResult",
    "validate_answer",
    "validate_quiz_state",
    "calculate_progress",
    "is_quiz_complete",
    "FieldValidators",
    "compose_validators",
    "is_valid_email",
    "sanitize_text",
    # Scoring
    "QuizResult",
    "ResultDimension",
    "AnswerContribution",
    "ScoringEngine",
    "calculate_results",
    # Engine
    "EventType",
    "QuizEvent",
    "EventEmitter",
    "QuizEngine",
    "QuizStatus",
    "Snapshot",
]
