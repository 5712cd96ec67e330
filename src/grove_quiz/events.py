"""
Quiz events

In-process publish/subscribe used by the engine to notify the rendering
layer. Delivery is synchronous, in subscription order; a failing handler is
logged and never stops the others.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from .quiz.state import utcnow


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Lifecycle events emitted by the QuizEngine."""
    STARTED = "quiz:started"
    ANSWERED = "quiz:question-answered"
    SKIPPED = "quiz:question-skipped"
    NAVIGATION = "quiz:navigation"
    COMPLETED = "quiz:completed"
    RESTARTED = "quiz:restarted"


@dataclass
class QuizEvent:
    """
    A single engine event.

    Payload keys per type:
        started / restarted: quiz_id
        answered: question_id, value, question_index
        skipped: question_id, question_index
        navigation: direction ("next", "back" or "jump"), index
        completed: result (QuizResult), duration_seconds
    """
    type: EventType
    quiz_id: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)


EventHandler = Callable[[QuizEvent], None]


class EventEmitter:
    """Handler registry with synchronous fan-out."""

    def __init__(self):
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def on(self, event_type: EventType, handler: EventHandler) -> Callable[[], None]:
        """
        Subscribe a handler.

        Returns:
            A function that unsubscribes the handler
        """
        self._handlers.setdefault(EventType(event_type), []).append(handler)

        def unsubscribe():
            self.off(event_type, handler)

        return unsubscribe

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        handlers = self._handlers.get(EventType(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: Optional[EventType] = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(EventType(event_type), []))
        return sum(len(h) for h in self._handlers.values())

    def emit(self, event: QuizEvent) -> None:
        """Deliver an event to every handler registered for its type."""
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._handlers.get(event.type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Event handler for {event.type.value} failed: {e}")

        logger.debug(f"Event {event.type.value}: {event.data}")
