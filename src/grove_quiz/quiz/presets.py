"""
Preset scoring configurations and an example quiz

Starting points for new quizzes: copy and adjust rather than mutate.
"""

from .schema import (
    BinaryQuestion,
    ChoiceOption,
    CTAConfig,
    GroundZeroConfig,
    LikertQuestion,
    LikertScale,
    Quiz,
    QuizOptions,
    ResultBlurb,
    ScoringCategory,
    ScoringConfig,
    ScoringType,
    SingleChoiceQuestion,
)


def _war_mask_categories(with_colors: bool = True) -> list[ScoringCategory]:
    palette = [
        ("abandonment", "Abandonment", "Abandonment War", "#a33b5c"),
        ("exposure", "Exposure", "Exposure War", "#7c5cbf"),
        ("entrapment", "Entrapment", "Entrapment War", "#c9763d"),
        ("erasure", "Erasure", "Erasure War", "#5c8a8c"),
        ("flooded", "Flooded", "Flooded Mirror", "#4a90d9"),
        ("armored", "Armored", "Armored Mirror", "#888888"),
        ("phantom", "Phantom", "Phantom Performer", "#9b59b6"),
        ("analyzer", "Analyzer", "Hyper Analyzer", "#27ae60"),
    ]
    return [
        ScoringCategory(id=cid, name=name, display_name=display, color=color if with_colors else None)
        for cid, name, display, color in palette
    ]


# Four wars, four masks; ground zero when 3+ wars score >= 3 within 2 points
WAR_MASK_SCORING = ScoringConfig(
    type=ScoringType.COMPOSITE,
    categories=_war_mask_categories(),
    ground_zero_threshold=GroundZeroConfig(min_categories=3, max_spread=2, min_score=3),
)

ARCHETYPE_SCORING = ScoringConfig(
    type=ScoringType.HIGHEST_WINS,
    categories=[
        ScoringCategory(id="fixer", name="Fixer", display_name="The Fixer"),
        ScoringCategory(id="vanisher", name="Vanisher", display_name="The Vanisher"),
        ScoringCategory(id="analyzer", name="Analyzer", display_name="The Analyzer"),
        ScoringCategory(id="warrior", name="Warrior", display_name="The Warrior"),
        ScoringCategory(id="chameleon", name="Chameleon", display_name="The Chameleon"),
        ScoringCategory(id="performer", name="Performer", display_name="The Performer"),
    ],
)


EXAMPLE_QUIZ = Quiz(
    id="example-quiz",
    title="Example Assessment",
    subtitle="A demonstration of the quiz system",
    description="This is an example quiz showing various question types and scoring.",
    version="1.0.0",
    estimated_time="3 min",
    questions=[
        BinaryQuestion(
            id="q1",
            label="Quick check",
            text="When someone cancels plans, do you assume the worst?",
            positive_label="Yes, I spiral",
            negative_label="No, I stay calm",
            scoring_category="abandonment",
        ),
        SingleChoiceQuestion(
            id="q2",
            label="Conflict response",
            text="During an argument, what happens first?",
            options=[
                ChoiceOption(letter="A", text="I flood with emotion", mask="flooded", war="abandonment"),
                ChoiceOption(letter="B", text="I go cold and detached", mask="armored", war="exposure"),
                ChoiceOption(letter="C", text="I try to fix everything", mask="phantom", war="abandonment"),
                ChoiceOption(letter="D", text="I analyze what went wrong", mask="analyzer", war="erasure"),
            ],
        ),
        LikertQuestion(
            id="q3",
            label="Self-assessment",
            text='I often feel like I\'m "too much" for people.',
            scale=LikertScale(
                points=5,
                labels=["Strongly Disagree", "Disagree", "Neutral", "Agree", "Strongly Agree"],
            ),
            scoring_category="flooded",
        ),
    ],
    scoring=ScoringConfig(
        type=ScoringType.COMPOSITE,
        categories=_war_mask_categories(with_colors=False),
        ground_zero_threshold=GroundZeroConfig(min_categories=3, max_spread=2, min_score=3),
    ),
    results={
        "abandonment-flooded": ResultBlurb(
            title="Abandonment War + Flooded Mirror",
            blurb="Your system is on high alert for loss and rejection.",
            nervous_system_note="The panic is your body trying to keep you safe.",
            do_this_week=[
                "Practice one grounding technique when panic hits",
                "Notice the trigger before the spiral",
            ],
            avoid=["Testing behaviors", "Seeking reassurance compulsively"],
            primary_cta=CTAConfig(text="Learn More", url="/survivor-types/fixer"),
        ),
    },
    options=QuizOptions(
        show_progress=True,
        show_question_numbers=True,
        allow_back_navigation=True,
        require_all_questions=True,
        show_results_breakdown=True,
    ),
)
