"""
Quiz schema and data structures

Defines the declarative quiz definition: question variants, options,
conditional display logic, scoring configuration and result templates.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union
from enum import Enum
from pathlib import Path
import json


AnswerValue = Union[str, int, float, list]


class QuestionType(str, Enum):
    """Types of quiz questions."""
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    BINARY = "binary"
    LIKERT = "likert"
    SLIDER = "slider"
    SCENARIO = "scenario"
    MATRIX = "matrix"
    RANKING = "ranking"
    TEXT_INPUT = "text-input"
    IMAGE_CHOICE = "image-choice"


class LogicOperator(str, Enum):
    """How the conditions of a ConditionalLogic block combine."""
    AND = "AND"
    OR = "OR"


class ConditionOperator(str, Enum):
    """Comparison applied by a single display condition."""
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not-contains"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"
    IN_RANGE = "in-range"


class ScoringType(str, Enum):
    """Scoring strategy of a quiz."""
    HIGHEST_WINS = "highest-wins"
    THRESHOLD = "threshold"
    WEIGHTED_AVERAGE = "weighted-average"
    COMPOSITE = "composite"
    SPECTRUM = "spectrum"


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


# =============================================================================
# CONDITIONAL LOGIC
# =============================================================================

@dataclass
class Condition:
    """A single comparison against a prior answer."""
    question_id: str
    operator: ConditionOperator
    value: Any = None

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "operator": getattr(self.operator, "value", self.operator),
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Condition":
        return cls(
            question_id=data["question_id"],
            operator=ConditionOperator(data["operator"]),
            value=data.get("value"),
        )


@dataclass
class ConditionalLogic:
    """Boolean expression deciding whether a question is part of the run."""
    conditions: list[Condition] = field(default_factory=list)
    operator: LogicOperator = LogicOperator.AND

    def to_dict(self) -> dict:
        return {
            "operator": getattr(self.operator, "value", self.operator),
            "conditions": [c.to_dict() for c in self.conditions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConditionalLogic":
        return cls(
            conditions=[Condition.from_dict(c) for c in data.get("conditions", [])],
            operator=LogicOperator(data.get("operator", "AND")),
        )


# =============================================================================
# OPTIONS & SCALES
# =============================================================================

@dataclass
class ScoreContribution:
    """Points an answer adds to a scoring category."""
    category: str
    value: float
    weight: Optional[float] = None

    @property
    def weighted_value(self) -> float:
        """Value multiplied by weight (weight defaults to 1)."""
        weight = 1 if self.weight is None else self.weight
        return self.value * weight

    def to_dict(self) -> dict:
        return _drop_none({"category": self.category, "value": self.value, "weight": self.weight})

    @classmethod
    def from_dict(cls, data: dict) -> "ScoreContribution":
        return cls(category=data["category"], value=data["value"], weight=data.get("weight"))


@dataclass
class ChoiceOption:
    """An option for choice-bearing questions."""
    text: str
    letter: Optional[str] = None
    value: Optional[Union[str, int, float]] = None
    scores: list[ScoreContribution] = field(default_factory=list)
    # Legacy single-category tags, each worth one point
    mask: Optional[str] = None
    war: Optional[str] = None
    archetype: Optional[str] = None
    meta_stage: Optional[str] = None
    icon: Optional[str] = None
    image_url: Optional[str] = None

    def matches(self, answer: Any) -> bool:
        """Whether a stored answer selects this option (by letter or value)."""
        if answer is None or isinstance(answer, bool):
            return False
        return (self.letter is not None and self.letter == answer) or (
            self.value is not None and self.value == answer
        )

    def legacy_contributions(self) -> list[ScoreContribution]:
        """Implicit one-point contributions from the war/mask/archetype tags."""
        return [
            ScoreContribution(category=tag, value=1)
            for tag in (self.war, self.mask, self.archetype)
            if tag
        ]

    def to_dict(self) -> dict:
        result = _drop_none({
            "letter": self.letter,
            "text": self.text,
            "value": self.value,
            "mask": self.mask,
            "war": self.war,
            "archetype": self.archetype,
            "meta_stage": self.meta_stage,
            "icon": self.icon,
            "image_url": self.image_url,
        })
        if self.scores:
            result["scores"] = [s.to_dict() for s in self.scores]
        return result

    @classmethod
    def _kwargs(cls, data: dict) -> dict:
        return {
            "text": data.get("text", ""),
            "letter": data.get("letter"),
            "value": data.get("value"),
            "scores": [ScoreContribution.from_dict(s) for s in data.get("scores", [])],
            "mask": data.get("mask"),
            "war": data.get("war"),
            "archetype": data.get("archetype"),
            "meta_stage": data.get("meta_stage"),
            "icon": data.get("icon"),
            "image_url": data.get("image_url"),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChoiceOption":
        return cls(**cls._kwargs(data))


@dataclass
class ScenarioOption(ChoiceOption):
    """A choice option for scenario questions."""
    consequence: Optional[str] = None
    intensity: Optional[float] = None

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(_drop_none({"consequence": self.consequence, "intensity": self.intensity}))
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioOption":
        return cls(
            **cls._kwargs(data),
            consequence=data.get("consequence"),
            intensity=data.get("intensity"),
        )


@dataclass
class ImageOption:
    """A visual option for image-choice questions."""
    id: str
    image_url: str
    alt: str = ""
    label: Optional[str] = None
    scores: list[ScoreContribution] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = _drop_none({
            "id": self.id,
            "image_url": self.image_url,
            "alt": self.alt,
            "label": self.label,
        })
        if self.scores:
            result["scores"] = [s.to_dict() for s in self.scores]
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ImageOption":
        return cls(
            id=data["id"],
            image_url=data.get("image_url", ""),
            alt=data.get("alt", ""),
            label=data.get("label"),
            scores=[ScoreContribution.from_dict(s) for s in data.get("scores", [])],
        )


@dataclass
class LikertScale:
    """Rating scale for likert questions."""
    points: int = 5
    labels: list[str] = field(default_factory=list)
    values: Optional[list[float]] = None

    def to_dict(self) -> dict:
        return _drop_none({"points": self.points, "labels": self.labels, "values": self.values})

    @classmethod
    def from_dict(cls, data: dict) -> "LikertScale":
        return cls(
            points=data.get("points", 5),
            labels=list(data.get("labels", [])),
            values=data.get("values"),
        )


@dataclass
class MatrixRow:
    id: str
    text: str
    scoring_category: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({"id": self.id, "text": self.text, "scoring_category": self.scoring_category})

    @classmethod
    def from_dict(cls, data: dict) -> "MatrixRow":
        return cls(id=data["id"], text=data.get("text", ""), scoring_category=data.get("scoring_category"))


@dataclass
class MatrixColumn:
    id: str
    label: str
    value: float = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "MatrixColumn":
        return cls(id=data["id"], label=data.get("label", ""), value=data.get("value", 0))


@dataclass
class RankingItem:
    id: str
    text: str
    scoring_category: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({"id": self.id, "text": self.text, "scoring_category": self.scoring_category})

    @classmethod
    def from_dict(cls, data: dict) -> "RankingItem":
        return cls(id=data["id"], text=data.get("text", ""), scoring_category=data.get("scoring_category"))


# =============================================================================
# QUESTION VARIANTS
# =============================================================================

@dataclass
class BaseQuestion:
    """
    Fields shared by every question variant.

    Subclasses set the `type` class attribute and add their own fields.
    """
    type: ClassVar[QuestionType]

    id: str
    text: str = ""
    subtext: Optional[str] = None
    label: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = True
    conditional_display: Optional[ConditionalLogic] = None

    def _variant_dict(self) -> dict:
        return {}

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {}

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "required": self.required,
        }
        result.update(_drop_none({
            "subtext": self.subtext,
            "label": self.label,
            "help_text": self.help_text,
        }))
        if self.conditional_display is not None:
            result["conditional_display"] = self.conditional_display.to_dict()
        result.update(self._variant_dict())
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "BaseQuestion":
        logic = data.get("conditional_display")
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            subtext=data.get("subtext"),
            label=data.get("label"),
            help_text=data.get("help_text"),
            required=data.get("required", True),
            conditional_display=ConditionalLogic.from_dict(logic) if logic else None,
            **cls._variant_kwargs(data),
        )


@dataclass
class SingleChoiceQuestion(BaseQuestion):
    """One answer from multiple options."""
    type: ClassVar[QuestionType] = QuestionType.SINGLE_CHOICE

    options: list[ChoiceOption] = field(default_factory=list)
    randomize_options: bool = False

    def find_option(self, answer: Any) -> Optional[ChoiceOption]:
        for option in self.options:
            if option.matches(answer):
                return option
        return None

    def _variant_dict(self) -> dict:
        return {
            "options": [o.to_dict() for o in self.options],
            "randomize_options": self.randomize_options,
        }

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "options": [ChoiceOption.from_dict(o) for o in data.get("options", [])],
            "randomize_options": data.get("randomize_options", False),
        }


@dataclass
class MultiChoiceQuestion(BaseQuestion):
    """Multiple answers allowed."""
    type: ClassVar[QuestionType] = QuestionType.MULTI_CHOICE

    options: list[ChoiceOption] = field(default_factory=list)
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    randomize_options: bool = False

    def find_option(self, answer: Any) -> Optional[ChoiceOption]:
        for option in self.options:
            if option.matches(answer):
                return option
        return None

    def _variant_dict(self) -> dict:
        result = {
            "options": [o.to_dict() for o in self.options],
            "randomize_options": self.randomize_options,
        }
        result.update(_drop_none({
            "min_selections": self.min_selections,
            "max_selections": self.max_selections,
        }))
        return result

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "options": [ChoiceOption.from_dict(o) for o in data.get("options", [])],
            "min_selections": data.get("min_selections"),
            "max_selections": data.get("max_selections"),
            "randomize_options": data.get("randomize_options", False),
        }


@dataclass
class BinaryQuestion(BaseQuestion):
    """Yes/No or Agree/Disagree."""
    type: ClassVar[QuestionType] = QuestionType.BINARY

    positive_label: Optional[str] = None  # Rendered as "Yes" when unset
    negative_label: Optional[str] = None  # Rendered as "No" when unset
    positive_value: Any = 1
    negative_value: Any = 0
    scoring_category: Optional[str] = None

    def _variant_dict(self) -> dict:
        return _drop_none({
            "positive_label": self.positive_label,
            "negative_label": self.negative_label,
            "positive_value": self.positive_value,
            "negative_value": self.negative_value,
            "scoring_category": self.scoring_category,
        })

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "positive_label": data.get("positive_label"),
            "negative_label": data.get("negative_label"),
            "positive_value": data.get("positive_value", 1),
            "negative_value": data.get("negative_value", 0),
            "scoring_category": data.get("scoring_category"),
        }


@dataclass
class LikertQuestion(BaseQuestion):
    """Scale rating (1-5, 1-7, etc.)."""
    type: ClassVar[QuestionType] = QuestionType.LIKERT

    scale: LikertScale = field(default_factory=LikertScale)
    reverse_coded: bool = False
    scoring_category: Optional[str] = None

    def _variant_dict(self) -> dict:
        return _drop_none({
            "scale": self.scale.to_dict(),
            "reverse_coded": self.reverse_coded,
            "scoring_category": self.scoring_category,
        })

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "scale": LikertScale.from_dict(data.get("scale", {})),
            "reverse_coded": data.get("reverse_coded", False),
            "scoring_category": data.get("scoring_category"),
        }


@dataclass
class SliderQuestion(BaseQuestion):
    """Continuous scale between inclusive numeric bounds."""
    type: ClassVar[QuestionType] = QuestionType.SLIDER

    min: float = 0
    max: float = 100
    step: Optional[float] = None
    min_label: Optional[str] = None
    max_label: Optional[str] = None
    default_value: Optional[float] = None
    scoring_category: Optional[str] = None

    def _variant_dict(self) -> dict:
        return _drop_none({
            "min": self.min,
            "max": self.max,
            "step": self.step,
            "min_label": self.min_label,
            "max_label": self.max_label,
            "default_value": self.default_value,
            "scoring_category": self.scoring_category,
        })

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "min": data.get("min", 0),
            "max": data.get("max", 100),
            "step": data.get("step"),
            "min_label": data.get("min_label"),
            "max_label": data.get("max_label"),
            "default_value": data.get("default_value"),
            "scoring_category": data.get("scoring_category"),
        }


@dataclass
class ScenarioQuestion(BaseQuestion):
    """Situational response."""
    type: ClassVar[QuestionType] = QuestionType.SCENARIO

    scenario: str = ""
    options: list[ScenarioOption] = field(default_factory=list)

    def find_option(self, answer: Any) -> Optional[ScenarioOption]:
        for option in self.options:
            if option.matches(answer):
                return option
        return None

    def _variant_dict(self) -> dict:
        return {"scenario": self.scenario, "options": [o.to_dict() for o in self.options]}

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "scenario": data.get("scenario", ""),
            "options": [ScenarioOption.from_dict(o) for o in data.get("options", [])],
        }


@dataclass
class MatrixQuestion(BaseQuestion):
    """Grid of related items."""
    type: ClassVar[QuestionType] = QuestionType.MATRIX

    rows: list[MatrixRow] = field(default_factory=list)
    columns: list[MatrixColumn] = field(default_factory=list)

    def _variant_dict(self) -> dict:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "columns": [c.to_dict() for c in self.columns],
        }

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "rows": [MatrixRow.from_dict(r) for r in data.get("rows", [])],
            "columns": [MatrixColumn.from_dict(c) for c in data.get("columns", [])],
        }


@dataclass
class RankingQuestion(BaseQuestion):
    """Order items by preference."""
    type: ClassVar[QuestionType] = QuestionType.RANKING

    items: list[RankingItem] = field(default_factory=list)
    min_rank: Optional[int] = None
    max_rank: Optional[int] = None

    def _variant_dict(self) -> dict:
        result = {"items": [i.to_dict() for i in self.items]}
        result.update(_drop_none({"min_rank": self.min_rank, "max_rank": self.max_rank}))
        return result

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "items": [RankingItem.from_dict(i) for i in data.get("items", [])],
            "min_rank": data.get("min_rank"),
            "max_rank": data.get("max_rank"),
        }


@dataclass
class TextInputQuestion(BaseQuestion):
    """Free text response."""
    type: ClassVar[QuestionType] = QuestionType.TEXT_INPUT

    placeholder: str = ""
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    validation_pattern: Optional[str] = None
    rows: Optional[int] = None  # textarea height

    def _variant_dict(self) -> dict:
        result = _drop_none({
            "min_length": self.min_length,
            "max_length": self.max_length,
            "validation_pattern": self.validation_pattern,
            "rows": self.rows,
        })
        if self.placeholder:
            result["placeholder"] = self.placeholder
        return result

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "placeholder": data.get("placeholder", ""),
            "min_length": data.get("min_length"),
            "max_length": data.get("max_length"),
            "validation_pattern": data.get("validation_pattern"),
            "rows": data.get("rows"),
        }


@dataclass
class ImageChoiceQuestion(BaseQuestion):
    """Visual options."""
    type: ClassVar[QuestionType] = QuestionType.IMAGE_CHOICE

    options: list[ImageOption] = field(default_factory=list)
    columns: Optional[int] = None  # grid layout

    def _variant_dict(self) -> dict:
        result = {"options": [o.to_dict() for o in self.options]}
        if self.columns is not None:
            result["columns"] = self.columns
        return result

    @classmethod
    def _variant_kwargs(cls, data: dict) -> dict:
        return {
            "options": [ImageOption.from_dict(o) for o in data.get("options", [])],
            "columns": data.get("columns"),
        }


Question = Union[
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
]

QUESTION_CLASSES: dict[QuestionType, type] = {
    QuestionType.SINGLE_CHOICE: SingleChoiceQuestion,
    QuestionType.MULTI_CHOICE: MultiChoiceQuestion,
    QuestionType.BINARY: BinaryQuestion,
    QuestionType.LIKERT: LikertQuestion,
    QuestionType.SLIDER: SliderQuestion,
    QuestionType.SCENARIO: ScenarioQuestion,
    QuestionType.MATRIX: MatrixQuestion,
    QuestionType.RANKING: RankingQuestion,
    QuestionType.TEXT_INPUT: TextInputQuestion,
    QuestionType.IMAGE_CHOICE: ImageChoiceQuestion,
}


def question_from_dict(data: dict) -> Question:
    """
    Build the right question variant from its dict form.

    Raises:
        ValueError: If the type is not a known QuestionType
        KeyError: If the question has no id
    """
    q_type = QuestionType(data.get("type", ""))
    return QUESTION_CLASSES[q_type].from_dict(data)


# =============================================================================
# SCORING CONFIGURATION
# =============================================================================

@dataclass
class ScoreThreshold:
    """Maps an inclusive score range to a named level."""
    min: float
    max: float
    level: str
    label: Optional[str] = None
    description: Optional[str] = None

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max

    def to_dict(self) -> dict:
        return _drop_none({
            "min": self.min,
            "max": self.max,
            "level": self.level,
            "label": self.label,
            "description": self.description,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "ScoreThreshold":
        return cls(
            min=data["min"],
            max=data["max"],
            level=data["level"],
            label=data.get("label"),
            description=data.get("description"),
        )


@dataclass
class ScoringCategory:
    """A named scoring dimension."""
    id: str
    name: str = ""
    display_name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    max_score: Optional[float] = None
    thresholds: list[ScoreThreshold] = field(default_factory=list)

    def level_for(self, score: float) -> str:
        """Level of the first threshold containing the score."""
        for threshold in self.thresholds:
            if threshold.contains(score):
                return threshold.level
        return "unknown"

    def to_dict(self) -> dict:
        result = _drop_none({
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
            "max_score": self.max_score,
        })
        if self.thresholds:
            result["thresholds"] = [t.to_dict() for t in self.thresholds]
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ScoringCategory":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            display_name=data.get("display_name"),
            description=data.get("description"),
            color=data.get("color"),
            icon=data.get("icon"),
            max_score=data.get("max_score"),
            thresholds=[ScoreThreshold.from_dict(t) for t in data.get("thresholds", [])],
        )


@dataclass
class GroundZeroConfig:
    """Detection of several war categories scoring high and close together."""
    min_categories: int
    max_spread: float
    min_score: float

    def to_dict(self) -> dict:
        return {
            "min_categories": self.min_categories,
            "max_spread": self.max_spread,
            "min_score": self.min_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroundZeroConfig":
        return cls(
            min_categories=data["min_categories"],
            max_spread=data["max_spread"],
            min_score=data["min_score"],
        )


@dataclass
class ScoringConfig:
    """Scoring strategy and categories of a quiz."""
    type: ScoringType = ScoringType.HIGHEST_WINS
    categories: list[ScoringCategory] = field(default_factory=list)
    ground_zero_threshold: Optional[GroundZeroConfig] = None

    def get_category(self, category_id: str) -> Optional[ScoringCategory]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def to_dict(self) -> dict:
        result = {
            "type": self.type.value,
            "categories": [c.to_dict() for c in self.categories],
        }
        if self.ground_zero_threshold is not None:
            result["ground_zero_threshold"] = self.ground_zero_threshold.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ScoringConfig":
        gz = data.get("ground_zero_threshold")
        return cls(
            type=ScoringType(data.get("type", "highest-wins")),
            categories=[ScoringCategory.from_dict(c) for c in data.get("categories", [])],
            ground_zero_threshold=GroundZeroConfig.from_dict(gz) if gz else None,
        )


# =============================================================================
# QUIZ STRUCTURE
# =============================================================================

@dataclass
class CTAConfig:
    """Call to action shown with a result."""
    text: str
    url: str
    icon: Optional[str] = None
    variant: Optional[str] = None  # "primary", "secondary" or "ghost"

    def to_dict(self) -> dict:
        return _drop_none({"text": self.text, "url": self.url, "icon": self.icon, "variant": self.variant})

    @classmethod
    def from_dict(cls, data: dict) -> "CTAConfig":
        return cls(text=data["text"], url=data["url"], icon=data.get("icon"), variant=data.get("variant"))


@dataclass
class ResultBlurb:
    """Result template keyed by result key."""
    title: str
    blurb: str = ""
    subtitle: Optional[str] = None
    clinical_note: Optional[str] = None
    nervous_system_note: Optional[str] = None
    do_this_week: list[str] = field(default_factory=list)
    avoid: list[str] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)
    primary_cta: Optional[CTAConfig] = None
    secondary_cta: Optional[CTAConfig] = None

    def to_dict(self) -> dict:
        result = _drop_none({
            "title": self.title,
            "subtitle": self.subtitle,
            "blurb": self.blurb,
            "clinical_note": self.clinical_note,
            "nervous_system_note": self.nervous_system_note,
        })
        for key in ("do_this_week", "avoid", "scripts"):
            if getattr(self, key):
                result[key] = list(getattr(self, key))
        if self.primary_cta:
            result["primary_cta"] = self.primary_cta.to_dict()
        if self.secondary_cta:
            result["secondary_cta"] = self.secondary_cta.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ResultBlurb":
        primary = data.get("primary_cta")
        secondary = data.get("secondary_cta")
        return cls(
            title=data["title"],
            blurb=data.get("blurb", ""),
            subtitle=data.get("subtitle"),
            clinical_note=data.get("clinical_note"),
            nervous_system_note=data.get("nervous_system_note"),
            do_this_week=list(data.get("do_this_week", [])),
            avoid=list(data.get("avoid", [])),
            scripts=list(data.get("scripts", [])),
            primary_cta=CTAConfig.from_dict(primary) if primary else None,
            secondary_cta=CTAConfig.from_dict(secondary) if secondary else None,
        )


@dataclass
class QuizSection:
    id: str
    title: str
    question_ids: list[str] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "question_ids": list(self.question_ids),
        })

    @classmethod
    def from_dict(cls, data: dict) -> "QuizSection":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            question_ids=list(data.get("question_ids", [])),
            description=data.get("description"),
        )


@dataclass
class QuizOptions:
    """Per-quiz behaviour switches."""
    randomize_questions: bool = False
    show_progress: bool = True
    show_question_numbers: bool = True
    allow_back_navigation: bool = False
    require_all_questions: bool = False
    show_results_breakdown: bool = False
    collect_email: bool = False
    email_required: bool = False
    gender_selection: bool = False
    save_progress: bool = True

    def to_dict(self) -> dict:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: dict) -> "QuizOptions":
        known = cls.__dataclass_fields__
        return cls(**{k: bool(v) for k, v in data.items() if k in known})


@dataclass
class Quiz:
    """
    A complete declarative quiz definition.

    Loaded from JSON or built in code; never mutated by the engine.
    """
    id: str
    title: str
    questions: list[Question] = field(default_factory=list)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    results: dict[str, ResultBlurb] = field(default_factory=dict)
    options: QuizOptions = field(default_factory=QuizOptions)
    sections: list[QuizSection] = field(default_factory=list)
    version: str = "1.0.0"
    subtitle: Optional[str] = None
    description: Optional[str] = None
    estimated_time: Optional[str] = None

    def get_question(self, question_id: str) -> Optional[Question]:
        """Find a question by id."""
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def get_result_blurb(self, result_key: str) -> Optional[ResultBlurb]:
        """Result template for a computed result key, if authored."""
        return self.results.get(result_key)

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "title": self.title,
            "version": self.version,
            "questions": [q.to_dict() for q in self.questions],
            "scoring": self.scoring.to_dict(),
            "results": {k: v.to_dict() for k, v in self.results.items()},
            "options": self.options.to_dict(),
        }
        result.update(_drop_none({
            "subtitle": self.subtitle,
            "description": self.description,
            "estimated_time": self.estimated_time,
        }))
        if self.sections:
            result["sections"] = [s.to_dict() for s in self.sections]
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Quiz":
        return cls(
            id=data["id"],
            title=data.get("title", data["id"]),
            questions=[question_from_dict(q) for q in data.get("questions", [])],
            scoring=ScoringConfig.from_dict(data.get("scoring", {})),
            results={k: ResultBlurb.from_dict(v) for k, v in data.get("results", {}).items()},
            options=QuizOptions.from_dict(data.get("options", {})),
            sections=[QuizSection.from_dict(s) for s in data.get("sections", [])],
            version=str(data.get("version", "1.0.0")),
            subtitle=data.get("subtitle"),
            description=data.get("description"),
            estimated_time=data.get("estimated_time"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Quiz":
        return cls.from_dict(json.loads(text))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Quiz":
        """Load a quiz definition from a JSON file."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))
