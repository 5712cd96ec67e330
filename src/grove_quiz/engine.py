"""
Quiz Engine

The state machine that drives one quiz attempt:
1. Navigation over a (possibly shuffled) question order, honouring
   conditional display
2. Answer submission gated by validation
3. Progress and completeness queries for the renderer
4. Completion: scoring, result events and delivery

Side effects go through injected ports (snapshot store, result delivery,
random source, clock). Auto-advance and delivery run as detached asyncio
work and never block the caller.
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from .adapters import MemorySnapshotStore, ResultDelivery, SnapshotStore, get_delivery, get_store
from .conditions import is_visible
from .config import Config, config as default_config
from .events import EventEmitter, EventHandler, EventType, QuizEvent
from .quiz.schema import Question, Quiz
from .quiz.state import QuizAnswer, QuizState, clone_state, utcnow
from .scoring import QuizResult, ScoringEngine
from .validation import (
    ValidationError,
    ValidationErrorCode,
    ValidationResult,
    calculate_progress,
    get_unanswered_questions,
    get_visible_question_index,
    is_quiz_complete,
    sanitize_text,
    validate_answer,
    validate_email_capture,
)


logger = logging.getLogger(__name__)


class QuizStatus(str, Enum):
    """Lifecycle of a quiz attempt."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Snapshot:
    """Serialized progress, as written to a SnapshotStore."""
    state: QuizState
    question_order: list[int]
    saved_at: datetime

    def to_dict(self) -> dict:
        return {
            "state": self.state.to_dict(),
            "question_order": list(self.question_order),
            "saved_at": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        return cls(
            state=QuizState.from_dict(data["state"]),
            question_order=[int(i) for i in data["question_order"]],
            saved_at=datetime.fromisoformat(data["saved_at"]),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, text: str) -> "Snapshot":
        return cls.from_dict(json.loads(text))


def build_delivery_payload(quiz_id: str, result: QuizResult, state: QuizState, timestamp: datetime) -> dict:
    """JSON-ready document sent to a ResultDelivery on completion."""
    return {
        "quiz_id": quiz_id,
        "result": result.to_dict(),
        "state": state.to_dict(),
        "timestamp": timestamp.isoformat(),
    }


class QuizEngine:
    """
    Main controller for one quiz attempt.

    Owns the QuizState exclusively; queries hand out copies. Public
    operations never raise: validation problems are returned and adapter
    failures are logged.
    """

    def __init__(
        self,
        quiz: Quiz,
        config: Optional[Config] = None,
        *,
        store: Optional[SnapshotStore] = None,
        delivery: Optional[ResultDelivery] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize engine.

        Args:
            quiz: Quiz definition (read only)
            config: Engine configuration (defaults to the module config)
            store: Snapshot store for progress (defaults to in-memory)
            delivery: Where completed results are sent, if anywhere
            rng: Random source for question shuffling
            clock: Returns the current time; injected for deterministic tests
        """
        self.quiz = quiz
        self.config = config or default_config
        self.store = store if store is not None else MemorySnapshotStore()
        self.delivery = delivery

        self._rng = rng or random.Random()
        self._clock = clock or utcnow
        self._events = EventEmitter()
        self._scoring = ScoringEngine.for_quiz(quiz)
        self._tasks: set[asyncio.Task] = set()
        self._auto_advance_handle: Optional[asyncio.TimerHandle] = None

        self.status = QuizStatus.NOT_STARTED
        self.question_order = self._initialize_question_order()
        self._state = self._initialize_state()
        self._state.current_question_index = self._first_visible_index()
        self.resumed = False

        if self.persistence_enabled:
            self.resumed = self.restore_progress()

    @classmethod
    def create(cls, quiz: Quiz, config: Optional[Config] = None, **kwargs) -> "QuizEngine":
        """
        Create an engine with adapters built from configuration.

        A storage directory selects the file store; a webhook URL enables
        delivery. Explicit `store`/`delivery` kwargs win.
        """
        cfg = config or default_config
        if "store" not in kwargs and cfg.persistence.storage_dir:
            kwargs["store"] = get_store("file", directory=cfg.persistence.storage_dir)
        if "delivery" not in kwargs and cfg.delivery.webhook_url:
            kwargs["delivery"] = get_delivery(
                "webhook",
                url=cfg.delivery.webhook_url,
                timeout=cfg.delivery.timeout_seconds,
            )
        return cls(quiz, cfg, **kwargs)

    # -------------------------------------------------------------------------
    # INITIALIZATION
    # -------------------------------------------------------------------------

    def _initialize_state(self) -> QuizState:
        return QuizState(quiz_id=self.quiz.id, started_at=self._clock())

    def _initialize_question_order(self) -> list[int]:
        order = list(range(len(self.quiz.questions)))
        if self.quiz.options.randomize_questions:
            self._rng.shuffle(order)  # Fisher-Yates
        return order

    def _first_visible_index(self) -> int:
        """First visible position of the question order, or the end sentinel."""
        index = self._scan(0, 1)
        return len(self.question_order) if index is None else index

    def _reset(self) -> None:
        self._cancel_auto_advance()
        self._state = self._initialize_state()
        self.question_order = self._initialize_question_order()
        self._state.current_question_index = self._first_visible_index()
        self.status = QuizStatus.IN_PROGRESS
        self.resumed = False

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    @property
    def persistence_enabled(self) -> bool:
        return self.config.persistence.enabled and self.quiz.options.save_progress

    @property
    def storage_key(self) -> str:
        return self.config.persistence.key_for(self.quiz.id)

    def get_state(self) -> QuizState:
        """Copy of the current state."""
        return clone_state(self._state)

    def get_question(self, index: int) -> Optional[Question]:
        """Question at a position of the question order."""
        if 0 <= index < len(self.question_order):
            return self.quiz.questions[self.question_order[index]]
        return None

    @property
    def current_question(self) -> Optional[Question]:
        return self.get_question(self._state.current_question_index)

    @property
    def current_index(self) -> int:
        return self._state.current_question_index

    def get_answer(self, question_id: str) -> Optional[QuizAnswer]:
        return self._state.answers.get(question_id)

    @property
    def current_answer(self) -> Optional[QuizAnswer]:
        question = self.current_question
        return self.get_answer(question.id) if question else None

    def _ordered_questions(self) -> list[Question]:
        return [self.quiz.questions[i] for i in self.question_order]

    def get_visible_questions(self) -> list[Question]:
        """Questions shown under the current answers, in question order."""
        return [q for q in self._ordered_questions() if is_visible(q, self._state)]

    def get_progress(self) -> int:
        """Percentage (0-100) of visible questions answered."""
        return calculate_progress(self.quiz.questions, self._state)

    def is_complete(self) -> bool:
        """Whether every visible required question has an answer."""
        return is_quiz_complete(self.quiz.questions, self._state)

    def get_unanswered_questions(self) -> list[Question]:
        return get_unanswered_questions(self.quiz.questions, self._state)

    def get_total_questions(self) -> int:
        """Visible question count, for "question 3 of 10" displays."""
        return len(self.get_visible_questions())

    def get_current_visible_index(self) -> int:
        """Zero-based position of the cursor among the visible questions."""
        return get_visible_question_index(
            self._ordered_questions(), self._state.current_question_index, self._state
        )

    # -------------------------------------------------------------------------
    # ACTIONS
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start a fresh attempt."""
        self._reset()
        self._emit(EventType.STARTED, quiz_id=self.quiz.id)
        logger.debug(f"Quiz started: {self.quiz.id}")

    def submit_answer(self, value: Any) -> ValidationResult:
        """
        Submit an answer for the current question.

        Returns:
            The validation result; state is only changed when it is valid
        """
        question = self.current_question
        if question is None:
            return ValidationResult.from_errors([ValidationError(
                question_id="",
                message="No current question",
                code=ValidationErrorCode.REQUIRED,
            )])

        validation = validate_answer(question, value)
        if not validation.is_valid:
            return validation

        if isinstance(value, (list, tuple)):
            value = list(value)

        self._state.answers[question.id] = QuizAnswer(
            question_id=question.id,
            value=value,
            timestamp=self._clock(),
        )
        if self.status == QuizStatus.NOT_STARTED:
            self.status = QuizStatus.IN_PROGRESS

        self._emit(
            EventType.ANSWERED,
            question_id=question.id,
            value=value,
            question_index=self._state.current_question_index,
        )

        if self.config.engine.auto_advance:
            self._schedule_auto_advance()

        self._save_progress()

        return validation

    def _scan(self, start: int, step: int) -> Optional[int]:
        index = start
        while 0 <= index < len(self.question_order):
            if is_visible(self.get_question(index), self._state):
                return index
            index += step
        return None

    def next(self) -> bool:
        """
        Move to the next visible question.

        Returns:
            False when no visible question remains (call complete())
        """
        if self.current_question is None:
            return False

        index = self._scan(self._state.current_question_index + 1, 1)
        if index is None:
            return False

        self._move_to(index, "next")
        return True

    def previous(self) -> bool:
        """Move back to the previous visible question, if the quiz allows it."""
        if not self.quiz.options.allow_back_navigation:
            return False
        if self.status == QuizStatus.COMPLETED or self._state.current_question_index <= 0:
            return False

        index = self._scan(self._state.current_question_index - 1, -1)
        if index is None:
            return False

        self._move_to(index, "back")
        return True

    def go_to_question(self, index: int) -> bool:
        """Jump to a position of the question order if it is visible."""
        if self.status == QuizStatus.COMPLETED:
            return False

        question = self.get_question(index)
        if question is None or not is_visible(question, self._state):
            return False

        self._move_to(index, "jump")
        return True

    def skip(self) -> bool:
        """Skip the current question; required questions cannot be skipped."""
        question = self.current_question
        if question is None or question.required:
            return False

        self._emit(
            EventType.SKIPPED,
            question_id=question.id,
            question_index=self._state.current_question_index,
        )
        return self.next()

    def _move_to(self, index: int, direction: str) -> None:
        self._state.current_question_index = index
        self._emit(EventType.NAVIGATION, direction=direction, index=index)
        self._save_progress()

    def set_metadata(self, partial: Optional[dict] = None, **fields: Any) -> None:
        """Shallow-merge metadata (email, stage, UTM tags...) into the state."""
        self._state.metadata.update(partial or {})
        self._state.metadata.update(fields)
        self._save_progress()

    def set_email(self, email: Any) -> Optional[str]:
        """
        Capture the respondent's email into metadata.

        Returns:
            An error message, or None once the (sanitized) address is stored
        """
        if isinstance(email, str):
            email = sanitize_text(email)

        error = validate_email_capture(self.quiz.options, email)
        if error:
            return error

        if email:
            self.set_metadata(email=email)
        return None

    def complete(self) -> QuizResult:
        """
        Complete the quiz and compute the result.

        Delivery, if configured, is scheduled in the background; the quiz is
        complete regardless of its outcome.
        """
        self._cancel_auto_advance()

        completed_at = self._clock()
        self._state.completed_at = completed_at
        result = self._scoring.calculate_results(clone_state(self._state))

        self._state.current_question_index = len(self.question_order)
        self.status = QuizStatus.COMPLETED

        self._emit(
            EventType.COMPLETED,
            result=result,
            duration_seconds=(completed_at - self._state.started_at).total_seconds(),
        )

        if self.persistence_enabled:
            self._clear_progress()

        if self.delivery is not None:
            self._dispatch(build_delivery_payload(self.quiz.id, result, self._state, self._clock()))

        return result

    def restart(self) -> None:
        """Discard the attempt and start over with a new question order."""
        self._reset()
        self._emit(EventType.RESTARTED, quiz_id=self.quiz.id)

        if self.persistence_enabled:
            self._clear_progress()

    # -------------------------------------------------------------------------
    # AUTO-ADVANCE
    # -------------------------------------------------------------------------

    def _schedule_auto_advance(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Auto-advance needs a running event loop; skipping")
            return

        self._cancel_auto_advance()
        self._auto_advance_handle = loop.call_later(
            self.config.engine.auto_advance_delay_seconds,
            self._auto_advance,
        )

    def _auto_advance(self) -> None:
        self._auto_advance_handle = None
        self.next()

    def _cancel_auto_advance(self) -> None:
        if self._auto_advance_handle is not None:
            self._auto_advance_handle.cancel()
            self._auto_advance_handle = None

    # -------------------------------------------------------------------------
    # PERSISTENCE
    # -------------------------------------------------------------------------

    def get_snapshot(self) -> Snapshot:
        """Serializable copy of the current progress."""
        return Snapshot(
            state=clone_state(self._state),
            question_order=list(self.question_order),
            saved_at=self._clock(),
        )

    def _save_progress(self) -> None:
        if not self.persistence_enabled:
            return
        try:
            self.store.write(self.storage_key, self.get_snapshot().to_json())
        except Exception as e:
            logger.warning(f"Failed to save progress for {self.quiz.id}: {e}")

    def restore_progress(self) -> bool:
        """
        Restore progress from the snapshot store.

        Stale (older than the configured window) or malformed snapshots are
        discarded.

        Returns:
            True if a snapshot was restored
        """
        try:
            raw = self.store.read(self.storage_key)
        except Exception as e:
            logger.warning(f"Failed to read progress for {self.quiz.id}: {e}")
            return False

        if not raw:
            return False

        try:
            snapshot = Snapshot.from_json(raw)
            age = self._clock() - snapshot.saved_at
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable snapshot for {self.quiz.id}: {e}")
            self._clear_progress()
            return False

        if age > timedelta(hours=self.config.persistence.max_age_hours):
            logger.debug(f"Discarding stale snapshot for {self.quiz.id} saved at {snapshot.saved_at}")
            self._clear_progress()
            return False

        if not self._snapshot_fits(snapshot):
            logger.warning(f"Discarding snapshot for {self.quiz.id}: does not match the quiz definition")
            self._clear_progress()
            return False

        self._state = snapshot.state
        self.question_order = snapshot.question_order
        self.status = QuizStatus.IN_PROGRESS
        logger.debug(f"Progress restored for {self.quiz.id} from {snapshot.saved_at}")
        return True

    def _snapshot_fits(self, snapshot: Snapshot) -> bool:
        count = len(self.quiz.questions)
        return (
            snapshot.state.quiz_id == self.quiz.id
            and sorted(snapshot.question_order) == list(range(count))
            and 0 <= snapshot.state.current_question_index <= count
        )

    def _clear_progress(self) -> None:
        try:
            self.store.remove(self.storage_key)
        except Exception as e:
            logger.warning(f"Failed to clear progress for {self.quiz.id}: {e}")

    # -------------------------------------------------------------------------
    # DELIVERY
    # -------------------------------------------------------------------------

    def _dispatch(self, payload: dict) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; result for {self.quiz.id} not delivered")
            return

        task = loop.create_task(self._deliver(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, payload: dict) -> None:
        try:
            await self.delivery.deliver(payload)
            logger.debug(f"Result for {self.quiz.id} delivered via {self.delivery.name}")
        except Exception as e:
            logger.warning(f"Result delivery via {self.delivery.name} failed: {e}")

    async def wait_for_pending(self) -> None:
        """Wait for background deliveries (for shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Finish pending deliveries and release the delivery's resources."""
        self._cancel_auto_advance()
        await self.wait_for_pending()
        if self.delivery is not None:
            await self.delivery.aclose()

    # -------------------------------------------------------------------------
    # EVENTS
    # -------------------------------------------------------------------------

    def on(self, event_type: EventType, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to engine events; returns an unsubscribe function."""
        return self._events.on(event_type, handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        self._events.off(event_type, handler)

    def _emit(self, event_type: EventType, **data: Any) -> None:
        self._events.emit(QuizEvent(
            type=event_type,
            quiz_id=self.quiz.id,
            data=data,
            timestamp=self._clock(),
        ))
