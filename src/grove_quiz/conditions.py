"""
Conditional display logic

Decides whether a question is part of the current attempt by evaluating its
boolean expression over previously stored answers. Pure and side-effect free.

Comparisons against an unanswered question are false, except `not-equals`
and `not-contains`, which are literally true for a missing answer.
"""

import logging
import math
from typing import Any, Optional

from .quiz.schema import Condition, ConditionalLogic, ConditionOperator, LogicOperator
from .quiz.state import QuizState


logger = logging.getLogger(__name__)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def strict_equals(a: Any, b: Any) -> bool:
    """Equality that never treats booleans as numbers."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if _is_sequence(a) or _is_sequence(b):
        if not (_is_sequence(a) and _is_sequence(b)) or len(a) != len(b):
            return False
        return all(strict_equals(x, y) for x, y in zip(a, b))
    return a == b


def to_text(value: Any) -> str:
    """Text form used for substring tests."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if _is_sequence(value):
        return ",".join(to_text(v) for v in value)
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """Numeric form of an answer or condition value, or None if it has none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _contains(answer: Any, expected: Any) -> bool:
    if _is_sequence(answer):
        return any(strict_equals(item, expected) for item in answer)
    return to_text(expected) in to_text(answer)


def evaluate_condition(condition: Condition, state: QuizState) -> bool:
    """Evaluate one condition against the stored answers."""
    answered = condition.question_id in state.answers
    answer = state.answer_value(condition.question_id)
    op = condition.operator
    expected = condition.value

    if op == ConditionOperator.EQUALS:
        return answered and strict_equals(answer, expected)

    if op == ConditionOperator.NOT_EQUALS:
        return not answered or not strict_equals(answer, expected)

    if op == ConditionOperator.CONTAINS:
        return answered and _contains(answer, expected)

    if op == ConditionOperator.NOT_CONTAINS:
        return not answered or not _contains(answer, expected)

    if op in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN):
        left = to_number(answer) if answered else None
        right = to_number(expected)
        if left is None or right is None:
            return False
        return left > right if op == ConditionOperator.GREATER_THAN else left < right

    if op == ConditionOperator.IN_RANGE:
        if not _is_sequence(expected) or len(expected) != 2:
            logger.debug(f"in-range condition on {condition.question_id} needs [lo, hi], got {expected!r}")
            return False
        number = to_number(answer) if answered else None
        lo, hi = to_number(expected[0]), to_number(expected[1])
        if number is None or lo is None or hi is None:
            return False
        return lo <= number <= hi

    logger.debug(f"Unknown condition operator {op!r} on {condition.question_id}")
    return False


def evaluate_conditions(logic: ConditionalLogic, state: QuizState) -> bool:
    """
    Evaluate a conditional display expression.

    Args:
        logic: Conditions joined by AND or OR
        state: Current quiz state (read only)

    Returns:
        True if the expression holds
    """
    results = [evaluate_condition(c, state) for c in logic.conditions]

    if logic.operator == LogicOperator.AND:
        return all(results)
    if logic.operator == LogicOperator.OR:
        return any(results)

    logger.debug(f"Unknown logic operator {logic.operator!r}")
    return False


def is_visible(question, state: QuizState) -> bool:
    """Whether a question is shown given the current answers."""
    if question.conditional_display is None:
        return True
    return evaluate_conditions(question.conditional_display, state)
