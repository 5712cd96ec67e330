"""
Quiz scoring

Converts a completed answer set into per-category scores and a categorical
result:
1. Accumulate category scores from each answer's contributions
2. Build the explainability trail
3. Resolve primary and secondary dimensions
4. Detect the ground-zero composite condition
5. Build the result key

Scoring is pure and deterministic: identical inputs give identical results.
It ignores conditional visibility and never mutates its inputs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from .conditions import strict_equals, to_number, to_text
from .quiz.schema import (
    BinaryQuestion,
    LikertQuestion,
    MultiChoiceQuestion,
    Question,
    Quiz,
    ScenarioQuestion,
    ScoreContribution,
    ScoringConfig,
    ScoringType,
    SingleChoiceQuestion,
    SliderQuestion,
)
from .quiz.state import QuizState


logger = logging.getLogger(__name__)


WAR_CATEGORIES = ("abandonment", "exposure", "entrapment", "erasure")
MASK_CATEGORIES = ("flooded", "armored", "phantom", "analyzer")

GROUND_ZERO_KEY = "ground-zero"
UNKNOWN_CATEGORY = "unknown"
DEFAULT_MAX_SCORE = 10


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class ResultDimension:
    """One resolved scoring dimension (primary or secondary)."""
    category: str
    score: float
    percentage: Optional[float] = None
    level: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "score": self.score,
            "percentage": self.percentage,
            "level": self.level,
        }


@dataclass(frozen=True)
class AnswerContribution:
    """What a single answer added to the scores."""
    question_id: str
    question_label: str
    answer_text: str
    categories: tuple[ScoreContribution, ...] = ()

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "question_label": self.question_label,
            "answer_text": self.answer_text,
            "categories": [c.to_dict() for c in self.categories],
        }


@dataclass(frozen=True)
class QuizResult:
    """Final result of a quiz attempt. Never mutated once produced."""
    result_key: str
    primary: ResultDimension
    scores: dict[str, float]
    timestamp: datetime
    secondary: Optional[ResultDimension] = None
    contributions: tuple[AnswerContribution, ...] = ()
    is_ground_zero: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "result_key": self.result_key,
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "scores": dict(self.scores),
            "contributions": [c.to_dict() for c in self.contributions],
            "is_ground_zero": self.is_ground_zero,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


# =============================================================================
# CONTRIBUTIONS
# =============================================================================

def _choice_contributions(question, value: Any) -> list[ScoreContribution]:
    option = question.find_option(value)
    if option is None:
        return []
    return list(option.scores) + option.legacy_contributions()


def _multi_choice_contributions(question: MultiChoiceQuestion, value: Any) -> list[ScoreContribution]:
    values = value if isinstance(value, (list, tuple)) else [value]
    contributions = []
    for selected in values:
        option = question.find_option(selected)
        if option is not None:
            contributions.extend(option.scores)
    return contributions


def _binary_contributions(question: BinaryQuestion, value: Any) -> list[ScoreContribution]:
    if question.scoring_category and strict_equals(value, question.positive_value):
        return [ScoreContribution(category=question.scoring_category, value=1)]
    return []


def _likert_contributions(question: LikertQuestion, value: Any) -> list[ScoreContribution]:
    score = to_number(value)
    if score is None or not question.scoring_category:
        return []
    if question.reverse_coded:
        score = question.scale.points - score + 1
    return [ScoreContribution(category=question.scoring_category, value=score)]


def _slider_contributions(question: SliderQuestion, value: Any) -> list[ScoreContribution]:
    score = to_number(value)
    if score is None or not question.scoring_category:
        return []
    return [ScoreContribution(category=question.scoring_category, value=score)]


_CONTRIBUTION_RULES: dict[type, Callable[[Any, Any], list[ScoreContribution]]] = {
    SingleChoiceQuestion: _choice_contributions,
    ScenarioQuestion: _choice_contributions,
    MultiChoiceQuestion: _multi_choice_contributions,
    BinaryQuestion: _binary_contributions,
    LikertQuestion: _likert_contributions,
    SliderQuestion: _slider_contributions,
}


def get_score_contributions(question: Question, value: Any) -> list[ScoreContribution]:
    """Contributions a single answer makes, per the question variant's rule."""
    rule = _CONTRIBUTION_RULES.get(type(question))
    if rule is None:
        logger.debug(f"No scoring rule for {question.type.value} question {question.id}")
        return []
    return rule(question, value)


def get_answer_text(question: Question, value: Any) -> str:
    """Human-readable form of an answer."""
    if isinstance(question, (SingleChoiceQuestion, ScenarioQuestion)):
        option = question.find_option(value)
        return option.text if option and option.text else to_text(value)

    if isinstance(question, MultiChoiceQuestion) and isinstance(value, (list, tuple)):
        texts = []
        for selected in value:
            option = question.find_option(selected)
            texts.append(option.text if option and option.text else to_text(selected))
        return ", ".join(texts)

    if isinstance(question, BinaryQuestion):
        if strict_equals(value, question.positive_value):
            return question.positive_label or "Yes"
        return question.negative_label or "No"

    return to_text(value)


# =============================================================================
# SCORING ENGINE
# =============================================================================

class ScoringEngine:
    """
    Scores quiz attempts against one scoring configuration.

    Answers are processed in question definition order so floating point
    accumulation is reproducible regardless of answer insertion order.
    """

    def __init__(self, scoring: ScoringConfig, questions: list[Question]):
        self.config = scoring
        self.questions = list(questions)

    @classmethod
    def for_quiz(cls, quiz: Quiz) -> "ScoringEngine":
        return cls(quiz.scoring, quiz.questions)

    def _answered_questions(self, state: QuizState):
        for question in self.questions:
            answer = state.answers.get(question.id)
            if answer is not None:
                yield question, answer.value

    def calculate_results(self, state: QuizState) -> QuizResult:
        """Calculate complete quiz results from a state."""
        scores = self.calculate_category_scores(state)
        contributions = self.get_answer_contributions(state)

        primary, secondary = self.determine_primary_result(scores)
        is_ground_zero = self.check_ground_zero(scores)

        if is_ground_zero:
            result_key = GROUND_ZERO_KEY
        else:
            result_key = self.build_result_key(primary, secondary, scores)

        return QuizResult(
            result_key=result_key,
            primary=primary,
            secondary=secondary,
            scores=scores,
            contributions=tuple(contributions),
            is_ground_zero=is_ground_zero,
            timestamp=state.completed_at or state.started_at,
            metadata=dict(state.metadata),
        )

    def calculate_category_scores(self, state: QuizState) -> dict[str, float]:
        """Scores for every configured category (plus any extra ones contributed to)."""
        scores: dict[str, float] = {c.id: 0 for c in self.config.categories}

        for question, value in self._answered_questions(state):
            for contrib in get_score_contributions(question, value):
                scores[contrib.category] = scores.get(contrib.category, 0) + contrib.weighted_value

        return scores

    def get_answer_contributions(self, state: QuizState) -> list[AnswerContribution]:
        """Explainability trail, skipping answers that contributed nothing."""
        trail = []
        for question, value in self._answered_questions(state):
            contribs = get_score_contributions(question, value)
            if not contribs:
                continue
            trail.append(AnswerContribution(
                question_id=question.id,
                question_label=question.label or question.id,
                answer_text=get_answer_text(question, value),
                categories=tuple(contribs),
            ))
        return trail

    def estimate_max_score(self, category_id: str) -> float:
        """
        Sum of every option contribution toward a category.

        Falls back to 10 when no option scores the category.
        """
        total = 0
        for question in self.questions:
            if not isinstance(question, (SingleChoiceQuestion, ScenarioQuestion, MultiChoiceQuestion)):
                continue
            for option in question.options:
                for contrib in option.scores:
                    if contrib.category == category_id:
                        total += contrib.weighted_value
                if not isinstance(question, MultiChoiceQuestion):
                    for contrib in option.legacy_contributions():
                        if contrib.category == category_id:
                            total += contrib.value
        return total or DEFAULT_MAX_SCORE

    def get_score_level(self, category_id: str, score: float) -> str:
        category = self.config.get_category(category_id)
        if category is None:
            return "unknown"
        return category.level_for(score)

    def _dimension(self, category_id: str, score: float) -> ResultDimension:
        category = self.config.get_category(category_id)
        max_score = (category.max_score if category else None) or self.estimate_max_score(category_id)
        return ResultDimension(
            category=category_id,
            score=score,
            percentage=(score / max_score) * 100 if max_score > 0 else 0,
            level=self.get_score_level(category_id, score),
        )

    def determine_primary_result(
        self, scores: dict[str, float]
    ) -> tuple[ResultDimension, Optional[ResultDimension]]:
        """Top two positive categories; ties keep category iteration order."""
        ranked = sorted(
            ((cat, score) for cat, score in scores.items() if score > 0),
            key=lambda item: -item[1],
        )

        if not ranked:
            return ResultDimension(category=UNKNOWN_CATEGORY, score=0), None

        primary = self._dimension(*ranked[0])
        secondary = self._dimension(*ranked[1]) if len(ranked) > 1 else None
        return primary, secondary

    def check_ground_zero(self, scores: dict[str, float]) -> bool:
        """Whether enough war categories score high and close together."""
        gz = self.config.ground_zero_threshold
        if gz is None:
            return False

        qualifying = [
            scores.get(war, 0) for war in WAR_CATEGORIES
            if scores.get(war, 0) >= gz.min_score
        ]
        if not qualifying or len(qualifying) < gz.min_categories:
            return False

        return (max(qualifying) - min(qualifying)) <= gz.max_spread

    def build_result_key(
        self,
        primary: ResultDimension,
        secondary: Optional[ResultDimension],
        scores: dict[str, float],
    ) -> str:
        """Result key such as "abandonment-flooded"."""
        if self.config.type == ScoringType.COMPOSITE:
            top_war = get_top_from_list(scores, WAR_CATEGORIES)
            top_mask = get_top_from_list(scores, MASK_CATEGORIES)
            if top_war and top_mask:
                return f"{top_war}-{top_mask}"

        if secondary is not None:
            return f"{primary.category}-{secondary.category}"

        return primary.category


def get_top_from_list(scores: dict[str, float], categories) -> Optional[str]:
    """Highest positive category from a fixed list; first seen wins ties."""
    top = None
    top_score = 0
    for category in categories:
        score = scores.get(category, 0)
        if score > top_score:
            top_score = score
            top = category
    return top


def calculate_results(
    scoring: ScoringConfig,
    questions: list[Question],
    state: QuizState,
) -> QuizResult:
    """
    Score a quiz attempt.

    Args:
        scoring: The quiz's scoring configuration
        questions: Full question list (visibility is ignored)
        state: Attempt state; answers to unknown questions are skipped

    Returns:
        QuizResult; an empty state gives all-zero scores and the "unknown" key
    """
    return ScoringEngine(scoring, questions).calculate_results(state)


# =============================================================================
# SCORING UTILITIES
# =============================================================================

def calculate_percentage(score: float, max_score: float) -> int:
    """Rounded percentage; 0 when max_score is not positive."""
    if max_score <= 0:
        return 0
    return int((score / max_score) * 100 + 0.5)


def normalize_scores(scores: dict[str, float], max_scores: dict[str, float]) -> dict[str, int]:
    """Scores as rounded percentages of their maxima (default maximum 10)."""
    return {
        category: calculate_percentage(score, max_scores.get(category) or DEFAULT_MAX_SCORE)
        for category, score in scores.items()
    }


def get_top_categories(scores: dict[str, float], n: int = 3) -> list[dict]:
    ranked = sorted(scores.items(), key=lambda item: -item[1])
    return [{"category": category, "score": score} for category, score in ranked[:n]]


def scores_are_tied(score1: float, score2: float, threshold: float = 2) -> bool:
    """Whether two scores are within a tie threshold."""
    return abs(score1 - score2) <= threshold


def calculate_spread(scores: dict[str, float]) -> float:
    """Difference between the highest and lowest score."""
    if not scores:
        return 0
    values = list(scores.values())
    return max(values) - min(values)


def group_contributions_by_category(
    contributions: list[AnswerContribution],
) -> dict[str, list[AnswerContribution]]:
    grouped: dict[str, list[AnswerContribution]] = {}
    for contrib in contributions:
        for category in contrib.categories:
            grouped.setdefault(category.category, []).append(contrib)
    return grouped


def format_scores_for_bars(
    scores: dict[str, float],
    label_fn: Callable[[str], str] = lambda key: key,
) -> list[dict]:
    """Bar chart rows, highest score first."""
    rows = [{"key": key, "label": label_fn(key), "value": value} for key, value in scores.items()]
    return sorted(rows, key=lambda row: -row["value"])


# =============================================================================
# CATEGORY LABELS
# =============================================================================

WAR_LABELS = {
    "abandonment": "Abandonment War",
    "exposure": "Exposure War",
    "entrapment": "Entrapment War",
    "erasure": "Erasure War",
}

MASK_LABELS = {
    "flooded": "Flooded Mirror",
    "armored": "Armored Mirror",
    "phantom": "Phantom Performer",
    "analyzer": "Hyper Analyzer",
}

ARCHETYPE_LABELS = {
    "fixer": "The Fixer",
    "vanisher": "The Vanisher",
    "analyzer": "The Analyzer",
    "warrior": "The Warrior",
    "chameleon": "The Chameleon",
    "performer": "The Performer",
}


def label_war(key: str) -> str:
    return WAR_LABELS.get(key, key)


def label_mask(key: str) -> str:
    return MASK_LABELS.get(key, key)


def label_archetype(key: str) -> str:
    return ARCHETYPE_LABELS.get(key, key)
