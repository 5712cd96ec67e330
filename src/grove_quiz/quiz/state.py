"""
Quiz attempt state

The one mutable entity of a quiz attempt: the cursor, stored answers and
metadata. Owned by the QuizEngine; everything else receives copies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class QuizAnswer:
    """A stored answer."""
    question_id: str
    value: Any
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizAnswer":
        return cls(
            question_id=data["question_id"],
            value=data.get("value"),
            timestamp=_parse_timestamp(data["timestamp"]),
        )


@dataclass
class QuizState:
    """
    Progress through a single quiz attempt.

    current_question_index points into the engine's question order, or equals
    the question count once the quiz is complete.
    """
    quiz_id: str
    current_question_index: int = 0
    answers: dict[str, QuizAnswer] = field(default_factory=dict)
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def answer_value(self, question_id: str) -> Any:
        """Stored value for a question, or None when unanswered."""
        answer = self.answers.get(question_id)
        return answer.value if answer is not None else None

    def to_dict(self) -> dict:
        return {
            "quiz_id": self.quiz_id,
            "current_question_index": self.current_question_index,
            "answers": {qid: a.to_dict() for qid, a in self.answers.items()},
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizState":
        completed = data.get("completed_at")
        return cls(
            quiz_id=data["quiz_id"],
            current_question_index=int(data.get("current_question_index", 0)),
            answers={
                qid: QuizAnswer.from_dict(a)
                for qid, a in data.get("answers", {}).items()
            },
            started_at=_parse_timestamp(data["started_at"]),
            completed_at=_parse_timestamp(completed) if completed else None,
            metadata=dict(data.get("metadata") or {}),
        )


def create_quiz_state(quiz_id: str, started_at: Optional[datetime] = None) -> QuizState:
    """Create a fresh state positioned on the first question."""
    return QuizState(quiz_id=quiz_id, started_at=started_at or utcnow())


def clone_state(state: QuizState) -> QuizState:
    """Copy a state so the answers and metadata can be changed independently."""
    return QuizState(
        quiz_id=state.quiz_id,
        current_question_index=state.current_question_index,
        answers=dict(state.answers),
        started_at=state.started_at,
        completed_at=state.completed_at,
        metadata=dict(state.metadata),
    )


def update_answer(
    state: QuizState,
    question_id: str,
    value: Any,
    timestamp: Optional[datetime] = None,
) -> QuizState:
    """Return a copy of the state with one answer stored."""
    updated = clone_state(state)
    updated.answers[question_id] = QuizAnswer(
        question_id=question_id,
        value=value,
        timestamp=timestamp or utcnow(),
    )
    return updated
