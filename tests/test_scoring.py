"""
Tests for the scoring engine.
"""

from datetime import datetime, timezone

import pytest

from grove_quiz.quiz.schema import (
    BinaryQuestion,
    ChoiceOption,
    GroundZeroConfig,
    LikertQuestion,
    LikertScale,
    MatrixQuestion,
    MultiChoiceQuestion,
    ScenarioOption,
    ScenarioQuestion,
    ScoreContribution,
    ScoreThreshold,
    ScoringCategory,
    ScoringConfig,
    ScoringType,
    SingleChoiceQuestion,
    SliderQuestion,
)
from grove_quiz.quiz.presets import EXAMPLE_QUIZ, WAR_MASK_SCORING
from grove_quiz.quiz.state import QuizState, QuizAnswer
from grove_quiz.scoring import (
    GROUND_ZERO_KEY,
    ScoringEngine,
    calculate_percentage,
    calculate_results,
    calculate_spread,
    format_scores_for_bars,
    get_answer_text,
    get_score_contributions,
    get_top_categories,
    group_contributions_by_category,
    label_mask,
    label_war,
    normalize_scores,
    scores_are_tied,
)


STARTED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
COMPLETED = datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc)


def make_state(answers: dict, completed: bool = True) -> QuizState:
    return QuizState(
        quiz_id="scoring",
        answers={qid: QuizAnswer(qid, value, STARTED) for qid, value in answers.items()},
        started_at=STARTED,
        completed_at=COMPLETED if completed else None,
    )


def slider_questions(categories) -> list:
    """One slider per category; the answer is the category's score."""
    return [SliderQuestion(id=f"s-{c}", scoring_category=c) for c in categories]


def slider_answers(scores: dict) -> dict:
    return {f"s-{c}": v for c, v in scores.items()}


ALL_CATEGORIES = [c.id for c in WAR_MASK_SCORING.categories]


class TestContributions:
    """Tests for per-variant contribution rules."""

    def test_single_choice_scores_and_legacy_tags(self):
        question = SingleChoiceQuestion(id="q", options=[
            ChoiceOption(text="A", letter="A", war="abandonment", mask="flooded",
                         scores=[ScoreContribution("exposure", 2, weight=1.5)]),
        ])
        contribs = get_score_contributions(question, "A")

        assert [(c.category, c.weighted_value) for c in contribs] == [
            ("exposure", 3.0), ("abandonment", 1), ("flooded", 1),
        ]

    def test_unmatched_option(self):
        question = SingleChoiceQuestion(id="q", options=[ChoiceOption(text="A", letter="A")])

        assert get_score_contributions(question, "Z") == []

    def test_scenario_uses_option_rules(self):
        question = ScenarioQuestion(id="q", options=[
            ScenarioOption(text="Run", value="run", archetype="vanisher"),
        ])

        assert [c.category for c in get_score_contributions(question, "run")] == ["vanisher"]

    def test_multi_choice_union(self):
        """Test that selected options' explicit scores are summed."""
        question = MultiChoiceQuestion(id="q", options=[
            ChoiceOption(text="A", letter="A", scores=[ScoreContribution("fixer", 1)], war="erasure"),
            ChoiceOption(text="B", letter="B", scores=[ScoreContribution("fixer", 2)]),
            ChoiceOption(text="C", letter="C", scores=[ScoreContribution("warrior", 5)]),
        ])
        contribs = get_score_contributions(question, ["A", "B"])

        assert [(c.category, c.value) for c in contribs] == [("fixer", 1), ("fixer", 2)]

    def test_binary(self):
        question = BinaryQuestion(id="q", scoring_category="abandonment")

        assert [c.value for c in get_score_contributions(question, 1)] == [1]
        assert get_score_contributions(question, 0) == []
        assert get_score_contributions(question, True) == []

    def test_likert_and_reverse_coding(self):
        plain = LikertQuestion(id="q", scoring_category="flooded")
        reverse = LikertQuestion(id="r", scale=LikertScale(points=5), reverse_coded=True, scoring_category="flooded")

        assert get_score_contributions(plain, 4)[0].value == 4
        assert get_score_contributions(reverse, 4)[0].value == 2
        assert get_score_contributions(plain, "3")[0].value == 3
        assert get_score_contributions(plain, "agree") == []

    def test_slider(self):
        question = SliderQuestion(id="q", scoring_category="analyzer")

        assert get_score_contributions(question, 42)[0].value == 42
        assert get_score_contributions(SliderQuestion(id="x"), 42) == []

    def test_unscored_variant(self):
        assert get_score_contributions(MatrixQuestion(id="m"), {"r1": "c1"}) == []

    def test_answer_text(self):
        single = SingleChoiceQuestion(id="q", options=[ChoiceOption(text="Alpha", letter="A")])
        multi = MultiChoiceQuestion(id="m", options=[
            ChoiceOption(text="Alpha", letter="A"), ChoiceOption(text="Beta", letter="B"),
        ])
        binary = BinaryQuestion(id="b", positive_label="Yes, I spiral")

        assert get_answer_text(single, "A") == "Alpha"
        assert get_answer_text(single, "Z") == "Z"
        assert get_answer_text(multi, ["A", "B"]) == "Alpha, Beta"
        assert get_answer_text(binary, 1) == "Yes, I spiral"
        assert get_answer_text(binary, 0) == "No"
        assert get_answer_text(SliderQuestion(id="s"), 7.0) == "7"


class TestScoringEngine:
    """Tests for result calculation."""

    @pytest.fixture
    def engine(self):
        return ScoringEngine(WAR_MASK_SCORING, slider_questions(ALL_CATEGORIES))

    def test_ground_zero_example(self, engine):
        """Test three close, high war scores override the composite key."""
        state = make_state(slider_answers({
            "abandonment": 4, "exposure": 3, "entrapment": 3, "erasure": 1, "flooded": 5,
        }))
        result = engine.calculate_results(state)

        assert result.is_ground_zero is True
        assert result.result_key == GROUND_ZERO_KEY == "ground-zero"

    def test_ground_zero_spread_too_wide(self, engine):
        scores = {"abandonment": 7, "exposure": 3, "entrapment": 3, "erasure": 0}

        assert not engine.check_ground_zero(scores)

    def test_ground_zero_needs_config(self):
        engine = ScoringEngine(ScoringConfig(type=ScoringType.COMPOSITE), [])

        assert not engine.check_ground_zero({"abandonment": 5, "exposure": 5, "entrapment": 5})

    def test_composite_key_example(self, engine):
        """Test that the top war and top mask name the result."""
        state = make_state(slider_answers({
            "abandonment": 5, "exposure": 2, "entrapment": 1, "erasure": 0,
            "flooded": 3, "armored": 1, "phantom": 0, "analyzer": 0,
        }))
        result = engine.calculate_results(state)

        assert not result.is_ground_zero
        assert result.result_key == "abandonment-flooded"
        assert result.primary.category == "abandonment"
        assert result.secondary.category == "flooded"

    def test_composite_falls_back_without_mask(self, engine):
        """Test highest-wins naming when no mask scored."""
        state = make_state(slider_answers({"abandonment": 5, "exposure": 2}))

        assert engine.calculate_results(state).result_key == "abandonment-exposure"

    def test_highest_wins_key(self):
        config = ScoringConfig(categories=[ScoringCategory(id="fixer"), ScoringCategory(id="warrior")])
        engine = ScoringEngine(config, slider_questions(["fixer", "warrior"]))

        assert engine.calculate_results(make_state(slider_answers({"fixer": 2}))).result_key == "fixer"
        assert engine.calculate_results(
            make_state(slider_answers({"fixer": 2, "warrior": 3}))
        ).result_key == "warrior-fixer"

    def test_ties_keep_category_order(self):
        config = ScoringConfig(categories=[ScoringCategory(id="fixer"), ScoringCategory(id="warrior")])
        engine = ScoringEngine(config, slider_questions(["warrior", "fixer"]))
        result = engine.calculate_results(make_state(slider_answers({"warrior": 2, "fixer": 2})))

        assert result.primary.category == "fixer"
        assert result.secondary.category == "warrior"

    def test_empty_state(self, engine):
        """Test that no answers give the unknown result."""
        result = engine.calculate_results(make_state({}, completed=False))

        assert result.result_key == "unknown"
        assert result.primary.category == "unknown"
        assert result.primary.score == 0
        assert result.secondary is None
        assert result.contributions == ()
        assert set(result.scores) == set(ALL_CATEGORIES)
        assert all(score == 0 for score in result.scores.values())
        assert result.timestamp == STARTED

    def test_unknown_questions_are_skipped(self, engine):
        state = make_state({"not-a-question": 5, "s-erasure": 2})

        assert engine.calculate_category_scores(state)["erasure"] == 2

    def test_contribution_sums_match_scores(self):
        """Test that the trail adds up to the score map exactly."""
        result = calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, make_state({
            "q1": 1, "q2": "A", "q3": 4,
        }))

        totals = {}
        for contrib in result.contributions:
            for c in contrib.categories:
                totals[c.category] = totals.get(c.category, 0) + c.weighted_value

        assert totals == {k: v for k, v in result.scores.items() if v}
        assert result.scores["abandonment"] == 2
        assert result.scores["flooded"] == 5
        assert result.result_key == "abandonment-flooded"

    def test_trail_omits_zero_contributions(self):
        result = calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, make_state({
            "q1": 0, "q2": "B",
        }))

        assert [c.question_id for c in result.contributions] == ["q2"]
        assert result.contributions[0].answer_text == "I go cold and detached"
        assert result.contributions[0].question_label == "Conflict response"

    def test_deterministic(self):
        """Test that identical inputs give identical results."""
        state = make_state({"q1": 1, "q2": "C", "q3": 2})
        first = calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, state)
        second = calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, state)

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert first.timestamp == COMPLETED

    def test_does_not_mutate_state(self):
        state = make_state({"q1": 1, "q2": "A"})
        before = state.to_dict()
        calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, state)

        assert state.to_dict() == before

    def test_percentage_and_levels(self):
        config = ScoringConfig(categories=[
            ScoringCategory(id="fixer", max_score=8, thresholds=[
                ScoreThreshold(min=0, max=3, level="low"),
                ScoreThreshold(min=4, max=8, level="high"),
            ]),
        ])
        engine = ScoringEngine(config, slider_questions(["fixer"]))
        result = engine.calculate_results(make_state(slider_answers({"fixer": 6})))

        assert result.primary.percentage == 75
        assert result.primary.level == "high"
        assert engine.get_score_level("fixer", 3.5) == "unknown"
        assert engine.get_score_level("nope", 1) == "unknown"

    def test_estimate_max_score(self):
        engine = ScoringEngine.for_quiz(EXAMPLE_QUIZ)

        assert engine.estimate_max_score("abandonment") == 2
        assert engine.estimate_max_score("flooded") == 1
        assert engine.estimate_max_score("entrapment") == 10

    def test_unconfigured_category_is_reported(self):
        engine = ScoringEngine(ScoringConfig(), slider_questions(["extra"]))

        assert engine.calculate_category_scores(make_state({"s-extra": 3})) == {"extra": 3}

    def test_metadata_carried(self):
        state = make_state({"q1": 1})
        state.metadata["stage"] = "pre"
        result = ScoringEngine.for_quiz(EXAMPLE_QUIZ).calculate_results(state)

        assert result.metadata == {"stage": "pre"}
        assert result.to_dict()["metadata"] == {"stage": "pre"}


class TestScoringUtilities:
    """Tests for score helpers."""

    def test_calculate_percentage(self):
        assert calculate_percentage(1, 3) == 33
        assert calculate_percentage(5, 0) == 0

    def test_normalize_scores(self):
        assert normalize_scores({"a": 5, "b": 2}, {"a": 10}) == {"a": 50, "b": 20}

    def test_top_categories(self):
        top = get_top_categories({"a": 1, "b": 5, "c": 3}, n=2)

        assert top == [{"category": "b", "score": 5}, {"category": "c", "score": 3}]

    def test_ties_and_spread(self):
        assert scores_are_tied(4, 3)
        assert not scores_are_tied(6, 3)
        assert calculate_spread({"a": 1, "b": 6}) == 5
        assert calculate_spread({}) == 0

    def test_group_contributions(self):
        result = calculate_results(EXAMPLE_QUIZ.scoring, EXAMPLE_QUIZ.questions, make_state({
            "q1": 1, "q2": "A",
        }))
        grouped = group_contributions_by_category(list(result.contributions))

        assert [c.question_id for c in grouped["abandonment"]] == ["q1", "q2"]
        assert [c.question_id for c in grouped["flooded"]] == ["q2"]

    def test_bars_and_labels(self):
        rows = format_scores_for_bars({"exposure": 1, "abandonment": 4}, label_war)

        assert rows[0] == {"key": "abandonment", "label": "Abandonment War", "value": 4}
        assert label_mask("phantom") == "Phantom Performer"
        assert label_war("unknown") == "unknown"

    def test_ground_zero_config_round_trip(self):
        gz = GroundZeroConfig(min_categories=3, max_spread=2, min_score=3)

        assert GroundZeroConfig.from_dict(gz.to_dict()) == gz
