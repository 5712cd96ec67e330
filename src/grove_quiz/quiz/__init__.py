"""
Quiz definitions for grove-quiz

Declarative quiz schema, per-attempt state and bundled presets.
"""

from .schema import (
    QuestionType,
    LogicOperator,
    ConditionOperator,
    ScoringType,
    Condition,
    ConditionalLogic,
    ScoreContribution,
    ChoiceOption,
    ScenarioOption,
    ImageOption,
    LikertScale,
    MatrixRow,
    MatrixColumn,
    RankingItem,
    SingleChoiceQuestion,
    MultiChoiceQuestion,
    BinaryQuestion,
    LikertQuestion,
    SliderQuestion,
    ScenarioQuestion,
    MatrixQuestion,
    RankingQuestion,
    TextInputQuestion,
    ImageChoiceQuestion,
    Question,
    question_from_dict,
    ScoreThreshold,
    ScoringCategory,
    GroundZeroConfig,
    ScoringConfig,
    CTAConfig,
    ResultBlurb,
    QuizSection,
    QuizOptions,
    Quiz,
)
from .state import QuizAnswer, QuizState, create_quiz_state, clone_state, update_answer
from .presets import WAR_MASK_SCORING, ARCHETYPE_SCORING, EXAMPLE_QUIZ

__all__ = [
    # Enums
    "QuestionType",
    "LogicOperator",
    "ConditionOperator",
    "ScoringType",
    # Logic and options
    "Condition",
    "ConditionalLogic",
    "ScoreContribution",
    "ChoiceOption",
    "ScenarioOption",
    "ImageOption",
    "LikertScale",
    "MatrixRow",
    "MatrixColumn",
    "RankingItem",
    # Questions
    "SingleChoiceQuestion",
    "MultiChoiceQuestion",
    "BinaryQuestion",
    "LikertQuestion",
    "SliderQuestion",
    "ScenarioQuestion",
    "MatrixQuestion",
    "RankingQuestion",
    "TextInputQuestion",
    "ImageChoiceQuestion",
    "Question",
    "question_from_dict",
    # Scoring configuration
    "ScoreThreshold",
    "ScoringCategory",
    "GroundZeroConfig",
    "ScoringConfig",
    # Quiz
    "CTAConfig",
    "ResultBlurb",
    "QuizSection",
    "QuizOptions",
    "Quiz",
    # State
    "QuizAnswer",
    "QuizState",
    "create_quiz_state",
    "clone_state",
    "update_answer",
    # Presets
    "WAR_MASK_SCORING",
    "ARCHETYPE_SCORING",
    "EXAMPLE_QUIZ",
]
