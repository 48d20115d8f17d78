"""Process-wide feedback bus for user-visible status messages.

Emitters never wait for listeners. Events may arrive from worker threads and
after the overlay that triggered them has closed, so the bus keeps a short
history that the CLI can flush once the terminal is back in normal mode.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FEEDBACK_LEVELS = ("info", "error")
HISTORY_LIMIT = 200


@dataclass(frozen=True)
class FeedbackEvent:
    level: str
    message: str
    detail: object | None = None

    def format(self) -> str:
        if self.detail is None:
            return self.message
        return f"{self.message}: {self.detail}"


FeedbackListener = Callable[[FeedbackEvent], None]


class FeedbackBus:
    """Fan-out of feedback events to subscribed listeners."""

    def __init__(self, history_limit: int = HISTORY_LIMIT) -> None:
        self._lock = threading.Lock()
        self._listeners: list[FeedbackListener] = []
        self._history: deque[FeedbackEvent] = deque(maxlen=max(1, history_limit))

    def subscribe(self, listener: FeedbackListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit_feedback(self, level: str, message: str, detail: object | None = None) -> FeedbackEvent:
        if level not in FEEDBACK_LEVELS:
            raise ValueError(f"unknown feedback level: {level!r}")
        event = FeedbackEvent(level=level, message=message, detail=detail)
        if level == "error":
            exc_info = detail if isinstance(detail, BaseException) else None
            logger.error("%s", event.format(), exc_info=exc_info)
        else:
            logger.info("%s", event.format())

        with self._lock:
            self._history.append(event)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("feedback listener failed")
        return event

    def history(self) -> list[FeedbackEvent]:
        with self._lock:
            return list(self._history)


feedback = FeedbackBus()
