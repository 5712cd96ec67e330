"""
Command-line interface for grove-quiz

Scores and validates recorded answers against a quiz definition from the
terminal, and prints the bundled example quiz as a starting point.
"""

import asyncio
import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .adapters import DeliveryError, get_delivery
from .config import config
from .engine import build_delivery_payload
from .quiz import EXAMPLE_QUIZ, Quiz, QuizState, create_quiz_state, update_answer
from .quiz.state import utcnow
from .scoring import QuizResult, ScoringEngine, format_scores_for_bars, normalize_scores
from .validation import (
    calculate_progress,
    format_validation_errors,
    get_unanswered_questions,
    validate_quiz_state,
)


logger = logging.getLogger(__name__)

BAR_WIDTH = 20


class CLIError(Exception):
    """Input problem reported to the user with exit status 1."""
    pass


def load_quiz(path: str) -> Quiz:
    try:
        return Quiz.load(path)
    except OSError as e:
        raise CLIError(f"Could not read quiz definition {path}: {e}") from e
    except (ValueError, KeyError, TypeError) as e:
        raise CLIError(f"Invalid quiz definition {path}: {e}") from e


def load_answers(path: str) -> dict[str, Any]:
    """Read an answers file: a JSON object mapping question id to value."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise CLIError(f"Could not read answers {path}: {e}") from e
    except ValueError as e:
        raise CLIError(f"Invalid answers JSON {path}: {e}") from e

    if not isinstance(data, dict):
        raise CLIError(f"Answers file {path} must contain a JSON object")
    return data


def build_state(quiz: Quiz, answers: dict[str, Any]) -> QuizState:
    """Completed state holding the recorded answers."""
    now = utcnow()
    state = create_quiz_state(quiz.id, started_at=now)
    for question_id, value in answers.items():
        if quiz.get_question(question_id) is None:
            logger.warning(f"Ignoring answer for unknown question: {question_id}")
            continue
        state = update_answer(state, question_id, value, timestamp=now)
    state.completed_at = now
    return state


def _category_label(quiz: Quiz, category_id: str) -> str:
    category = quiz.scoring.get_category(category_id)
    if category is None:
        return category_id
    return category.display_name or category.name or category_id


def format_result(quiz: Quiz, result: QuizResult, breakdown: bool = False) -> str:
    """Terminal report for a scored attempt."""
    engine = ScoringEngine.for_quiz(quiz)
    lines = ["", "=" * 60, f"RESULT: {result.result_key}", "=" * 60]

    blurb = quiz.get_result_blurb(result.result_key)
    if blurb:
        lines.append(f"\n{blurb.title}")
        if blurb.blurb:
            lines.append(f"  {blurb.blurb}")

    lines.append(f"\nPrimary:   {_category_label(quiz, result.primary.category)} "
                 f"({result.primary.score:g}, level {result.primary.level or 'unknown'})")
    if result.secondary:
        lines.append(f"Secondary: {_category_label(quiz, result.secondary.category)} "
                     f"({result.secondary.score:g}, level {result.secondary.level or 'unknown'})")
    if result.is_ground_zero:
        lines.append("Ground zero: several wars are active at once")

    max_scores = {}
    for category_id in result.scores:
        category = quiz.scoring.get_category(category_id)
        max_scores[category_id] = (category.max_score if category else None) or engine.estimate_max_score(category_id)
    percentages = normalize_scores(result.scores, max_scores)

    lines.append("\nScores:")
    for row in format_scores_for_bars(result.scores, lambda key: _category_label(quiz, key)):
        pct = min(percentages[row["key"]], 100)
        bar = "#" * int(pct * BAR_WIDTH / 100)
        lines.append(f"  {row['label']:<20} {bar:<{BAR_WIDTH}} {row['value']:g}")

    if breakdown and result.contributions:
        lines.append("\nBreakdown:")
        for contrib in result.contributions:
            parts = ", ".join(f"{c.category} +{c.weighted_value:g}" for c in contrib.categories)
            lines.append(f"  {contrib.question_label}: {contrib.answer_text} -> {parts}")

    lines.append("")
    return "\n".join(lines)


async def deliver_result(url: str, payload: dict) -> bool:
    """POST a result to a webhook; failures are reported, not raised."""
    delivery = get_delivery("webhook", url=url, timeout=config.delivery.timeout_seconds)
    try:
        await delivery.deliver(payload)
        return True
    except DeliveryError as e:
        print(f"Warning: Could not deliver result: {e}", file=sys.stderr)
        return False
    finally:
        await delivery.aclose()


def cmd_score(args) -> int:
    quiz = load_quiz(args.quiz)
    state = build_state(quiz, load_answers(args.answers))
    result = ScoringEngine.for_quiz(quiz).calculate_results(state)

    if args.json:
        output = result.to_dict()
        blurb = quiz.get_result_blurb(result.result_key)
        output["blurb"] = blurb.to_dict() if blurb else None
        print(json.dumps(output, indent=2))
    else:
        print(format_result(quiz, result, breakdown=args.breakdown))

    webhook = args.webhook or config.delivery.webhook_url
    if webhook:
        payload = build_delivery_payload(quiz.id, result, state, utcnow())
        if asyncio.run(deliver_result(webhook, payload)) and not args.json:
            print(f"Result delivered to {webhook}")

    return 0


def cmd_validate(args) -> int:
    quiz = load_quiz(args.quiz)
    state = build_state(quiz, load_answers(args.answers))

    validation = validate_quiz_state(quiz.questions, state)
    unanswered = get_unanswered_questions(quiz.questions, state)
    progress = calculate_progress(quiz.questions, state)

    if args.json:
        output = validation.to_dict()
        output["unanswered"] = [q.id for q in unanswered]
        output["progress"] = progress
        print(json.dumps(output, indent=2))
    else:
        print(f"Progress: {progress}%")
        if validation.is_valid:
            print("All visible answers are valid")
        else:
            print(format_validation_errors(validation.errors))
        if unanswered:
            print(f"Unanswered required: {', '.join(q.id for q in unanswered)}")

    return 0 if validation.is_valid else 1


def cmd_example(args) -> int:
    print(EXAMPLE_QUIZ.to_json())
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="grove-quiz",
        description="Score and validate quiz answers against a quiz definition",
        epilog="Example: grove-quiz score quiz.json answers.json --breakdown"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score recorded answers")
    score_parser.add_argument("quiz", help="Path to the quiz definition (JSON)")
    score_parser.add_argument("answers", help="Path to answers (JSON object of question id to value)")
    score_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON"
    )
    score_parser.add_argument(
        "--breakdown",
        action="store_true",
        help="Show what each answer contributed"
    )
    score_parser.add_argument(
        "--webhook",
        help="POST the result to this URL (default: QUIZ_WEBHOOK_URL)"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate recorded answers")
    validate_parser.add_argument("quiz", help="Path to the quiz definition (JSON)")
    validate_parser.add_argument("answers", help="Path to answers (JSON object of question id to value)")
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the report as JSON"
    )

    # Example command
    subparsers.add_parser("example", help="Print the example quiz definition")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "score": cmd_score,
        "validate": cmd_validate,
        "example": cmd_example,
    }

    try:
        return commands[args.command](args)
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
