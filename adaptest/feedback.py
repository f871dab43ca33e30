"""
Transient algorithm feedback shown during a session.

Only one message is displayed at a time. Showing a new message replaces the
current one and restarts its expiry timer; a message that is not replaced
clears itself after the dwell time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from adaptest.clock import CooperativeScheduler, TimerHandle


class MessageKind(str, Enum):
    """Which policy produced a feedback message."""

    REWARD = "reward"
    KNOWLEDGE = "knowledge"
    SCHEDULING = "scheduling"


@dataclass(frozen=True)
class FeedbackMessage:
    kind: MessageKind
    text: str
    shown_at: float = 0.0


class FeedbackChannel:
    """Owns the currently displayed message and the timers around it."""

    def __init__(self, scheduler: CooperativeScheduler, dwell_seconds: float = 3.0):
        self.scheduler = scheduler
        self.dwell_seconds = dwell_seconds
        self.current: FeedbackMessage | None = None
        self.history: list[FeedbackMessage] = []
        self._expiry: TimerHandle | None = None
        self._delayed: list[tuple[TimerHandle, FeedbackMessage]] = []
        self._closed = False

    def show(self, kind: MessageKind, text: str) -> FeedbackMessage | None:
        """Display a message now, replacing whatever is shown."""
        if self._closed:
            return None

        if self._expiry is not None:
            self._expiry.cancel()

        message = FeedbackMessage(kind=kind, text=text, shown_at=self.scheduler.now())
        self.current = message
        self.history.append(message)
        self._expiry = self.scheduler.call_later(
            self.dwell_seconds, self._expire, label="feedback-expiry"
        )
        logger.debug(f"Feedback [{kind.value}]: {text}")
        return message

    def show_later(self, delay: float, kind: MessageKind, text: str) -> TimerHandle | None:
        """
        Display a message after ``delay`` seconds.

        Delayed messages are not cancelled by later ``show()`` calls, only by
        ``close()``.
        """
        if self._closed:
            return None

        message = FeedbackMessage(kind=kind, text=text)
        handle = self.scheduler.call_later(delay, lambda: self._fire_delayed(handle), label="feedback-delayed")
        self._delayed.append((handle, message))
        return handle

    @property
    def pending(self) -> list[FeedbackMessage]:
        """Delayed messages that have not been shown yet."""
        return [message for handle, message in self._delayed if not handle.cancelled]

    def messages_of(self, kind: MessageKind) -> list[FeedbackMessage]:
        return [m for m in self.history if m.kind == kind]

    def clear(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None
        self.current = None

    def close(self) -> None:
        """Release every timer. Nothing is shown after this."""
        self.clear()
        for handle, _ in self._delayed:
            handle.cancel()
        self._delayed.clear()
        self._closed = True

    def _fire_delayed(self, handle: TimerHandle) -> None:
        for i, (pending_handle, message) in enumerate(self._delayed):
            if pending_handle is handle:
                del self._delayed[i]
                self.show(message.kind, message.text)
                return

    def _expire(self) -> None:
        self._expiry = None
        self.current = None
